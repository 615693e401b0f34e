"""Pointer input -> logical play-area coordinates."""

from __future__ import annotations

from .constants import GAME_HEIGHT, GAME_WIDTH


def to_logical(
    display_x: float,
    display_y: float,
    display_width: float,
    display_height: float,
) -> tuple[float, float]:
    """Scale a point on a canvas displayed at *display_width* x
    *display_height* into the 800x600 logical space.

    *display_x* / *display_y* are relative to the canvas's top-left corner.
    Points outside the canvas map outside the play area; that is allowed.

    Raises:
        ValueError: If either display dimension is not positive.
    """
    if display_width <= 0 or display_height <= 0:
        raise ValueError(
            f"display size must be positive, got {display_width}x{display_height}"
        )
    return (
        display_x * (GAME_WIDTH / display_width),
        display_y * (GAME_HEIGHT / display_height),
    )
