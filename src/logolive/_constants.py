"""Internal constants shared across the library."""

UPSTREAM_URL = "https://logo-api.g2.iterate.no/logo"
USER_AGENT = "logolive/1.0"

# ------------------------------------------------------------------
# Logo geometry (in unscaled pixels)
# ------------------------------------------------------------------

PANEL_SIZE = 8
PANEL_PIXELS = PANEL_SIZE * PANEL_SIZE
CANVAS_WIDTH = 152
CANVAS_HEIGHT = 32

# Colour used for pixels the API reports without a usable colour string.
UNLIT_RGB: tuple[int, int, int] = (155, 155, 155)

# Top-left corner (x, y) of every panel, per character of the logo.
GLYPH_PANELS: tuple[tuple[tuple[int, int], ...], ...] = (
    ((0, 0), (0, 16), (0, 24), (0, 32)),
    ((0, 0), (0, 8), (8, 8), (0, 16), (0, 24), (8, 24), (16, 24)),
    ((0, 8), (8, 8), (16, 8), (0, 16), (16, 16), (0, 24), (8, 24), (16, 24)),
    ((0, 8), (8, 8), (16, 8), (0, 16), (0, 24)),
    ((8, 8), (16, 8), (0, 16), (16, 16), (0, 24), (8, 24), (16, 24)),
    ((0, 0), (0, 8), (8, 8), (0, 16), (0, 24), (8, 24), (16, 24)),
    ((0, 8), (8, 8), (16, 8), (0, 16), (16, 16), (0, 24), (8, 24)),
)

# Characters whose glyph starts at the top row; the others are cropped by
# one panel row when rendered on their own with ``crop``.
TALL_CHARACTERS: frozenset[int] = frozenset({0, 1, 5})


def character_offset_x(index: int) -> int:
    """Horizontal position of character *index* on the full canvas.

    The first character is one panel wide, the others three.
    """
    if index == 0:
        return 0
    return (index * 3 - 2) * PANEL_SIZE


def character_width(index: int) -> int:
    return PANEL_SIZE if index == 0 else PANEL_SIZE * 3
