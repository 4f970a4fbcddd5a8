"""
Service-level exceptions.

Services raise these; API routes translate them into HTTP errors.
The redirect path never lets them escape (it degrades to a redirect).
"""


class TrackerError(Exception):
    """Base class for tracker errors"""


class EntityNotFoundError(TrackerError):
    """QR code or affiliate link does not exist"""


class InvalidDestinationError(TrackerError):
    """Destination URL is malformed or not on the partner allow-list"""


class SlugConflictError(TrackerError):
    """Requested custom slug is already taken"""


class PayloadTooLargeError(TrackerError):
    """Payload does not fit in a QR code at the required error correction"""
