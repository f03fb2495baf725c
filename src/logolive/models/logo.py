"""Upstream logo payload model.

The logo API answers with ``{"logo": [...]}`` where the list holds one
entry per character, each character a list of 8x8 panels and each panel a
flat, row-major list of colour strings::

    {"logo": [[["#ff0000", "#00ff00", ...], ...], ...]}

Colour strings are ``#rrggbb`` or ``rrggbb``. Any other length means the
pixel is unlit and is rendered grey. A string of the right length that is
not hexadecimal is rejected.
"""

from __future__ import annotations

import string
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from logolive._constants import GLYPH_PANELS, PANEL_PIXELS, UNLIT_RGB

RGB = tuple[int, int, int]


def parse_color(value: str) -> RGB:
    """Convert an API colour string to an RGB triple."""
    if len(value) == 7:
        digits = value[1:]
    elif len(value) == 6:
        digits = value
    else:
        return UNLIT_RGB
    if not all(c in string.hexdigits for c in digits):
        raise ValueError(f"invalid colour {value!r}")
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


class LogoPayload(BaseModel):
    """Validated logo pixel grid.

    ``characters[c][p][i]`` is the colour of pixel ``i`` (row-major) of
    panel ``p`` of character ``c``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    characters: tuple[tuple[tuple[RGB, ...], ...], ...] = Field(alias="logo")

    @field_validator("characters", mode="before")
    @classmethod
    def _parse_grid(cls, value: Any) -> Any:
        if not isinstance(value, list):
            raise ValueError("logo must be a list of characters")
        if len(value) > len(GLYPH_PANELS):
            raise ValueError(f"logo has {len(value)} characters, at most {len(GLYPH_PANELS)} supported")

        characters: list[tuple[tuple[RGB, ...], ...]] = []
        for char_index, panels in enumerate(value):
            if not isinstance(panels, list):
                raise ValueError(f"character {char_index} must be a list of panels")
            max_panels = len(GLYPH_PANELS[char_index])
            if len(panels) > max_panels:
                raise ValueError(f"character {char_index} has {len(panels)} panels, at most {max_panels} supported")

            parsed_panels: list[tuple[RGB, ...]] = []
            for panel_index, pixels in enumerate(panels):
                if not isinstance(pixels, list):
                    raise ValueError(f"panel {char_index}/{panel_index} must be a list of colours")
                if len(pixels) > PANEL_PIXELS:
                    raise ValueError(
                        f"panel {char_index}/{panel_index} has {len(pixels)} pixels, at most {PANEL_PIXELS}"
                    )
                colors: list[RGB] = []
                for pixel in pixels:
                    if not isinstance(pixel, str):
                        raise ValueError(f"panel {char_index}/{panel_index} contains a non-string pixel")
                    colors.append(parse_color(pixel))
                parsed_panels.append(tuple(colors))
            characters.append(tuple(parsed_panels))
        return tuple(characters)
