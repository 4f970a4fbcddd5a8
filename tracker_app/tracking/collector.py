"""
Builds a TrackingRecord from an inbound request.

Synchronous and cheap: header parsing and classification only. The geo
lookup and the uniqueness read happen later in the redirect pipeline.
"""

import re
import uuid
from typing import Mapping, Optional

from starlette.requests import Request

from tracker_app.geo.models import GeoResult
from tracker_app.tracking.anonymizer import IPAnonymizer
from tracker_app.tracking.models import ScanMethod, TrackingRecord, UTMParams
from tracker_app.tracking.referral import detect_social_network
from tracker_app.tracking.user_agent import parse_user_agent


UNKNOWN_IP = "0.0.0.0"
DEFAULT_MAX_LENGTH = 500

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")

_LANGUAGE_RE = re.compile(r"^([a-zA-Z]{2}(?:-[a-zA-Z]{2})?)")
_SCANNER_REFERER_RE = re.compile(r"qr|scanner|camera|lens", re.IGNORECASE)
_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def get_client_ip(headers: Mapping[str, str]) -> str:
    """
    Client IP by proxy-header precedence:
    X-Forwarded-For (first hop) > X-Real-IP > CF-Connecting-IP > 0.0.0.0
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()

    return UNKNOWN_IP


def extract_utm_params(query_params: Mapping[str, str]) -> UTMParams:
    return UTMParams(**{field: query_params.get(field) for field in UTM_FIELDS})


def _parse_float(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def extract_cdn_geo(headers: Mapping[str, str]) -> GeoResult:
    """Cloudflare geo headers, when the edge provides them."""
    return GeoResult(
        country=headers.get("cf-ipcountry") or None,
        region=headers.get("cf-region") or None,
        city=headers.get("cf-ipcity") or None,
        timezone=headers.get("cf-timezone") or None,
        latitude=_parse_float(headers.get("cf-iplat")),
        longitude=_parse_float(headers.get("cf-iplon")),
    )


def extract_language(headers: Mapping[str, str]) -> Optional[str]:
    """First language tag of Accept-Language (e.g. "pt-BR")."""
    accept_language = headers.get("accept-language")
    if not accept_language:
        return None
    match = _LANGUAGE_RE.match(accept_language.strip())
    return match.group(1) if match else None


def detect_scan_method(referer: Optional[str]) -> ScanMethod:
    """
    Camera scans arrive without a Referer (or from a scanner app);
    clicks inside a web page carry an http(s) Referer.
    """
    if not referer:
        return ScanMethod.CAMERA
    if _SCANNER_REFERER_RE.search(referer):
        return ScanMethod.CAMERA
    if _HTTP_URL_RE.match(referer):
        return ScanMethod.LINK_CLICK
    return ScanMethod.UNKNOWN


def truncate(value: Optional[str], max_length: int) -> Optional[str]:
    if not value:
        return None
    return value[:max_length]


class TrackingCollector:
    """
    Turns request headers and query string into a TrackingRecord.
    
    Collaborators are injected (anonymizer with its salt, truncation
    length) so this class never touches global settings.
    """

    def __init__(self, anonymizer: IPAnonymizer, max_length: int = DEFAULT_MAX_LENGTH):
        self.anonymizer = anonymizer
        self.max_length = max_length

    def collect(self, request: Request) -> TrackingRecord:
        return self.collect_from(request.headers, request.query_params)

    def collect_from(
        self,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> TrackingRecord:
        # Header names are case-insensitive; plain dicts get normalised
        headers = {key.lower(): value for key, value in headers.items()}

        client_ip = get_client_ip(headers)
        raw_user_agent = headers.get("user-agent")
        raw_referer = headers.get("referer")

        ua_info = parse_user_agent(raw_user_agent)

        return TrackingRecord(
            client_ip=client_ip,
            ip_hash=self.anonymizer.hash(client_ip),
            session_id=str(uuid.uuid4()),
            user_agent=truncate(raw_user_agent, self.max_length),
            device=ua_info.device,
            is_mobile=ua_info.is_mobile,
            browser=ua_info.browser,
            browser_version=ua_info.browser_version,
            platform=ua_info.platform,
            os_version=ua_info.os_version,
            is_bot=ua_info.is_bot,
            referer=truncate(raw_referer, self.max_length),
            utm=extract_utm_params(query_params),
            social_network=detect_social_network(raw_referer, raw_user_agent),
            language=extract_language(headers),
            scan_method=detect_scan_method(raw_referer),
            cdn_geo=extract_cdn_geo(headers),
        )
