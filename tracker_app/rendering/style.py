import base64
import binascii
import logging
import re
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

LOGO_SIZE_MIN = 10
LOGO_SIZE_MAX = 25

_DATA_URI_PREFIX_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


class ModuleStyle(str, Enum):
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    DIAMOND = "diamond"


def clamp_logo_size(percent: int) -> int:
    """Logos above 25% of the code eat too much error correction."""
    return max(LOGO_SIZE_MIN, min(LOGO_SIZE_MAX, int(percent)))


def decode_logo(logo: Optional[str]) -> Optional[bytes]:
    """
    Decode a base64 logo (optionally a data: URI) to raw bytes.

    Returns None for an empty or undecodable value; the code is then
    rendered without a logo.
    """
    if not logo:
        return None
    payload = _DATA_URI_PREFIX_RE.sub("", logo.strip())
    try:
        return base64.b64decode(payload, validate=False) or None
    except (binascii.Error, ValueError) as e:
        logger.warning("Ignoring logo that is not valid base64: %s", e)
        return None


class RenderStyle(BaseModel):
    """
    Fully resolved style consumed by the renderer.
    
    Built per request by merging caller fields over DEFAULT_STYLE; never
    persisted as-is (the stored form is the camelCase API dict).
    """

    size: int = 400
    margin: int = 2
    dark_color: str = "#000000"
    light_color: str = "#FFFFFF"
    module_style: ModuleStyle = ModuleStyle.SQUARE
    logo: Optional[bytes] = None
    logo_size_percent: int = 20

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "RenderStyle":
        """
        Merge snake_case style fields over the defaults.

        None values are treated as "not given". logo is accepted as base64
        text and decoded here; logo_size_percent is clamped to 10..25.
        """
        values = {key: value for key, value in fields.items() if value is not None}
        if "logo" in values and isinstance(values["logo"], str):
            values["logo"] = decode_logo(values["logo"])
        if "logo_size_percent" in values:
            values["logo_size_percent"] = clamp_logo_size(values["logo_size_percent"])
        return DEFAULT_STYLE.model_copy(update=values)


DEFAULT_STYLE = RenderStyle()
