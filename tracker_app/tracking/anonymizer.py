import hashlib
import logging

from tracker_app.config import DEFAULT_IP_HASH_SALT

logger = logging.getLogger(__name__)

IP_HASH_LENGTH = 16


def hash_ip(ip: str, salt: str) -> str:
    """Salted SHA-256 of an IP, truncated to 16 hex chars (dedup key, not a secret)."""
    digest = hashlib.sha256(f"{ip}{salt}".encode("utf-8")).hexdigest()
    return digest[:IP_HASH_LENGTH]


class IPAnonymizer:
    """
    Turns raw client IPs into stable ip_hash values.

    Deterministic for a given salt, so uniqueness can be computed without
    ever storing a raw IP. Running with the built-in default salt works
    but is logged as a configuration warning.
    """

    def __init__(self, salt: str = DEFAULT_IP_HASH_SALT):
        self.salt = salt
        self.uses_default_salt = salt == DEFAULT_IP_HASH_SALT
        if self.uses_default_salt:
            logger.warning(
                "IP_HASH_SALT is not configured; using the built-in default salt. "
                "Set IP_HASH_SALT in production."
            )

    def hash(self, ip: str) -> str:
        return hash_ip(ip, self.salt)
