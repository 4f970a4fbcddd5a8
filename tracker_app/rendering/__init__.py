"""
QR image rendering.

The module matrix comes from python-qrcode (ModuleMatrixSource); this
package owns only styling, rasterisation and logo compositing on top of it.
"""

from .style import (
    DEFAULT_STYLE,
    LOGO_SIZE_MAX,
    LOGO_SIZE_MIN,
    ModuleStyle,
    RenderStyle,
    clamp_logo_size,
    decode_logo,
)
from .matrix import ErrorCorrection, ModuleMatrixSource, QRCodeMatrixSource
from .logo import LogoCompositor
from .renderer import FINDER_SIZE, QRStyleRenderer, is_finder_module

__all__ = [
    "DEFAULT_STYLE",
    "LOGO_SIZE_MAX",
    "LOGO_SIZE_MIN",
    "ModuleStyle",
    "RenderStyle",
    "clamp_logo_size",
    "decode_logo",
    "ErrorCorrection",
    "ModuleMatrixSource",
    "QRCodeMatrixSource",
    "LogoCompositor",
    "FINDER_SIZE",
    "QRStyleRenderer",
    "is_finder_module",
]
