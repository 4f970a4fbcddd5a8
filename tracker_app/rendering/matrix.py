"""
Module matrix sources.

QR encoding (data analysis, Reed-Solomon, masking) is delegated to
python-qrcode; a source only has to hand back the boolean module grid,
plus its own plain renderer for the unstyled fast path.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

import qrcode
from qrcode.exceptions import DataOverflowError
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from PIL import Image

from tracker_app.exceptions import PayloadTooLargeError

from .style import RenderStyle


class ErrorCorrection(str, Enum):
    """QR redundancy tiers (share of recoverable codewords)"""
    LOW = "L"  # ~7%
    MEDIUM = "M"  # ~15%
    QUARTILE = "Q"  # ~25%
    HIGH = "H"  # ~30%


_QRCODE_LEVELS = {
    ErrorCorrection.LOW: ERROR_CORRECT_L,
    ErrorCorrection.MEDIUM: ERROR_CORRECT_M,
    ErrorCorrection.QUARTILE: ERROR_CORRECT_Q,
    ErrorCorrection.HIGH: ERROR_CORRECT_H,
}


class ModuleMatrixSource(ABC):
    """Abstract source of QR module matrices"""

    @abstractmethod
    def build_matrix(self, data: str, level: ErrorCorrection) -> List[List[bool]]:
        """
        Encode data into a square module grid.

        Raises:
            PayloadTooLargeError: data exceeds version 40 at this level

        Returns:
            matrix[row][col], origin top-left, rows growing downward,
            True for dark modules. No quiet zone is included.
        """
        pass

    @abstractmethod
    def render_plain(self, data: str, level: ErrorCorrection, style: RenderStyle) -> Image.Image:
        """Render square modules with the source's own encoder (size x size, RGB)."""
        pass


class QRCodeMatrixSource(ModuleMatrixSource):
    """python-qrcode backed matrix source"""

    def _make(self, data: str, level: ErrorCorrection, border: int) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=None,
            error_correction=_QRCODE_LEVELS[level],
            box_size=1,
            border=border,
        )
        qr.add_data(data)
        try:
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as e:
            # Past version 40 some qrcode releases raise ValueError instead
            raise PayloadTooLargeError(
                f"{len(data)} characters do not fit at error correction {level.value}"
            ) from e
        return qr

    def build_matrix(self, data: str, level: ErrorCorrection) -> List[List[bool]]:
        qr = self._make(data, level, border=0)
        return [[bool(cell) for cell in row] for row in qr.modules]

    def render_plain(self, data: str, level: ErrorCorrection, style: RenderStyle) -> Image.Image:
        qr = self._make(data, level, border=style.margin)
        total_modules = qr.modules_count + 2 * style.margin
        # Integer box size at or above the target, then scaled down crisply
        qr.box_size = max(1, -(-style.size // total_modules))
        img = qr.make_image(
            fill_color=style.dark_color,
            back_color=style.light_color,
        ).get_image().convert("RGB")
        if img.size != (style.size, style.size):
            img = img.resize((style.size, style.size), Image.Resampling.NEAREST)
        return img
