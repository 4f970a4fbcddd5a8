import io
import logging
from typing import Union

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from .style import clamp_logo_size

logger = logging.getLogger(__name__)


class LogoCompositor:
    """
    Centers a logo on a rendered QR code.

    The logo is fitted ("contain") into a square of qr_size * percent / 100
    pixels, laid on a light-colored tile with 10% padding so it never touches
    dark modules, and pasted at the center. Any failure to read or place the
    logo returns the code untouched.
    """

    PADDING_RATIO = 0.1

    def composite(
        self,
        qr_image: bytes,
        logo: bytes,
        qr_size: int,
        logo_size_percent: int,
        background_color: str,
    ) -> bytes:
        try:
            base = Image.open(io.BytesIO(qr_image))
            base.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Cannot read QR image for logo compositing: %s", e)
            return qr_image

        result = self.composite_image(base, logo, qr_size, logo_size_percent, background_color)
        if result is base:
            return qr_image

        buffer = io.BytesIO()
        result.save(buffer, format="PNG")
        return buffer.getvalue()

    def composite_image(
        self,
        qr_image: Image.Image,
        logo: Union[bytes, Image.Image],
        qr_size: int,
        logo_size_percent: int,
        background_color: str,
    ) -> Image.Image:
        """Same as composite(), on PIL images. Returns qr_image itself on failure."""
        percent = clamp_logo_size(logo_size_percent)
        logo_px = qr_size * percent // 100
        padding = int(logo_px * self.PADDING_RATIO)
        tile_px = logo_px + 2 * padding

        try:
            background = ImageColor.getrgb(background_color)[:3]
            logo_image = self._load_logo(logo)
            fitted = self._fit(logo_image, logo_px, background)

            tile = Image.new("RGB", (tile_px, tile_px), background)
            tile.paste(fitted, (padding, padding), fitted)

            result = qr_image.convert("RGB")
            position = (qr_size - tile_px) // 2
            result.paste(tile, (position, position))
            return result
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning("Rendering QR code without logo: %s", e)
            return qr_image

    def _load_logo(self, logo: Union[bytes, Image.Image]) -> Image.Image:
        if isinstance(logo, Image.Image):
            return logo.convert("RGBA")
        image = Image.open(io.BytesIO(logo))
        image.load()
        return image.convert("RGBA")

    def _fit(self, logo: Image.Image, box_px: int, background) -> Image.Image:
        # contain: keep aspect ratio, letterbox with the background color
        contained = ImageOps.contain(logo, (box_px, box_px), Image.Resampling.LANCZOS)
        canvas = Image.new("RGBA", (box_px, box_px), background + (255,))
        offset = ((box_px - contained.width) // 2, (box_px - contained.height) // 2)
        canvas.alpha_composite(contained, offset)
        return canvas
