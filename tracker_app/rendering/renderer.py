"""
Styled QR rasteriser.

Square style with no logo takes the encoder's own renderer. Everything else
is drawn module by module on a supersampled Pillow canvas and downsampled,
which gives anti-aliased circles and diamonds without a vector stage.
Finder patterns are always drawn as plain squares: scanners locate the code
by them and rounded finders measurably hurt detection.
"""

import io
import logging
from typing import List, Optional

from PIL import Image, ImageColor, ImageDraw

from .logo import LogoCompositor
from .matrix import ErrorCorrection, ModuleMatrixSource, QRCodeMatrixSource
from .style import ModuleStyle, RenderStyle

logger = logging.getLogger(__name__)

FINDER_SIZE = 7
MODULE_GAP_RATIO = 0.1
ROUNDED_CORNER_RATIO = 0.3


def is_finder_module(row: int, col: int, count: int) -> bool:
    """True for modules inside one of the three 7x7 corner finder patterns."""
    far = count - FINDER_SIZE
    return (
        (row < FINDER_SIZE and col < FINDER_SIZE)
        or (row < FINDER_SIZE and col >= far)
        or (row >= far and col < FINDER_SIZE)
    )


class QRStyleRenderer:
    SUPERSAMPLE = 4

    def __init__(
        self,
        matrix_source: Optional[ModuleMatrixSource] = None,
        compositor: Optional[LogoCompositor] = None,
    ):
        self.matrix_source = matrix_source or QRCodeMatrixSource()
        self.compositor = compositor or LogoCompositor()

    @staticmethod
    def error_correction_for(style: RenderStyle) -> ErrorCorrection:
        # A centered logo hides modules; H recovers up to ~30%
        if style.logo:
            return ErrorCorrection.HIGH
        # Diamonds leave half of every dark module light
        if style.module_style == ModuleStyle.DIAMOND:
            return ErrorCorrection.QUARTILE
        return ErrorCorrection.MEDIUM

    def render(self, payload: str, style: RenderStyle) -> bytes:
        """Render payload as a size x size PNG."""
        image = self.render_image(payload, style)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def render_image(self, payload: str, style: RenderStyle) -> Image.Image:
        level = self.error_correction_for(style)

        if style.module_style == ModuleStyle.SQUARE and not style.logo:
            return self.matrix_source.render_plain(payload, level, style)

        matrix = self.matrix_source.build_matrix(payload, level)
        image = self._draw_styled(matrix, style)

        if style.logo:
            image = self.compositor.composite_image(
                image,
                style.logo,
                style.size,
                style.logo_size_percent,
                style.light_color,
            )
        return image

    def _draw_styled(self, matrix: List[List[bool]], style: RenderStyle) -> Image.Image:
        count = len(matrix)
        canvas_px = style.size * self.SUPERSAMPLE
        module_px = canvas_px / (count + 2 * style.margin)
        gap = module_px * MODULE_GAP_RATIO

        dark = ImageColor.getrgb(style.dark_color)[:3]
        light = ImageColor.getrgb(style.light_color)[:3]

        canvas = Image.new("RGB", (canvas_px, canvas_px), light)
        draw = ImageDraw.Draw(canvas)

        for row, cells in enumerate(matrix):
            for col, is_dark in enumerate(cells):
                if not is_dark:
                    continue
                x0 = (style.margin + col) * module_px
                y0 = (style.margin + row) * module_px
                x1 = x0 + module_px
                y1 = y0 + module_px

                if style.module_style == ModuleStyle.SQUARE or is_finder_module(row, col, count):
                    # Snap to whole pixels so neighbouring squares tile without seams
                    draw.rectangle(
                        [round(x0), round(y0), round(x1) - 1, round(y1) - 1],
                        fill=dark,
                    )
                elif style.module_style == ModuleStyle.CIRCLE:
                    draw.ellipse([x0 + gap, y0 + gap, x1 - gap, y1 - gap], fill=dark)
                elif style.module_style == ModuleStyle.ROUNDED:
                    draw.rounded_rectangle(
                        [x0 + gap, y0 + gap, x1 - gap, y1 - gap],
                        radius=module_px * ROUNDED_CORNER_RATIO,
                        fill=dark,
                    )
                elif style.module_style == ModuleStyle.DIAMOND:
                    # Tips on the module edges, no gap: adjacent diamonds touch
                    cx = x0 + module_px / 2
                    cy = y0 + module_px / 2
                    draw.polygon(
                        [(cx, y0), (x1, cy), (cx, y1), (x0, cy)],
                        fill=dark,
                    )

        return canvas.resize((style.size, style.size), Image.Resampling.LANCZOS)
