"""Render a logo payload into the canonical PNG encoding.

The full logo is drawn on a 152x32 canvas: the first character is one
panel wide, every following character three panels wide, with a panel gap
between characters. A single character can also be rendered on its own,
optionally cropping the empty top row of the short glyphs.
"""

from __future__ import annotations

import io
import logging

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from logolive._constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    GLYPH_PANELS,
    PANEL_SIZE,
    TALL_CHARACTERS,
    character_offset_x,
    character_width,
)
from logolive.models.logo import RGB, LogoPayload

_logger = logging.getLogger(__name__)

MAX_PIXEL_SIZE = 32


class RenderOptions(BaseModel):
    """Rendering options.

    Parameters
    ----------
    size : int
        Scale factor; every logo pixel becomes a ``size`` x ``size`` block.
    character : int or None
        Render only this character. ``None`` renders the whole logo.
    crop : bool
        With ``character``, drop the empty top panel row of short glyphs.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    size: int = Field(default=1, ge=1, le=MAX_PIXEL_SIZE)
    character: int | None = Field(default=None, ge=0, lt=len(GLYPH_PANELS))
    crop: bool = False


def _draw_character(
    canvas: Image.Image,
    char_index: int,
    panels: tuple[tuple[RGB, ...], ...],
    letter_x: int,
    letter_y: int,
) -> None:
    width, height = canvas.size
    for panel_index, pixels in enumerate(panels):
        panel_x, panel_y = GLYPH_PANELS[char_index][panel_index]
        for pixel_index, (r, g, b) in enumerate(pixels):
            x = panel_x + pixel_index % PANEL_SIZE + letter_x
            y = panel_y + pixel_index // PANEL_SIZE + letter_y
            # Panels hanging below the canvas are clipped.
            if 0 <= x < width and 0 <= y < height:
                canvas.putpixel((x, y), (r, g, b, 255))


def render_image(payload: LogoPayload, options: RenderOptions | None = None) -> Image.Image:
    """Draw *payload* into an RGBA image according to *options*.

    Raises
    ------
    ValueError
        If ``options.character`` is not present in the payload.
    """
    options = options or RenderOptions()

    if options.character is None:
        canvas = Image.new("RGBA", (CANVAS_WIDTH, CANVAS_HEIGHT), (0, 0, 0, 0))
        for char_index, panels in enumerate(payload.characters):
            _draw_character(canvas, char_index, panels, character_offset_x(char_index), 0)
    else:
        character = options.character
        if character >= len(payload.characters):
            raise ValueError(f"{character} is not a valid character")
        y = -PANEL_SIZE if options.crop and character not in TALL_CHARACTERS else 0
        canvas = Image.new("RGBA", (character_width(character), CANVAS_HEIGHT + y), (0, 0, 0, 0))
        _draw_character(canvas, character, payload.characters[character], 0, y)

    if options.size > 1:
        width, height = canvas.size
        canvas = canvas.resize((width * options.size, height * options.size), Image.Resampling.NEAREST)
    return canvas


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_png(payload: LogoPayload, options: RenderOptions | None = None) -> bytes:
    """Render *payload* to PNG bytes. Identical input gives identical bytes."""
    image = render_image(payload, options)
    data = encode_png(image)
    _logger.debug("Rendered logo %sx%s (%d bytes)", image.width, image.height, len(data))
    return data
