"""Compose decoded covers into a square grid.

Covers are placed row-major: cover ``i`` lands in column ``i % grid_dim`` and
row ``i // grid_dim``.  Every cell takes the size of the *first* cover; the
covers are pasted as-is, with no scaling, cropping or rotation.  Last.fm
serves every tier at a fixed size, so mixed sizes are not handled and simply
overlap or leave gaps.

When fewer covers than ``grid_dim ** 2`` are available the remaining cells
keep the background fill, solid black unless configured otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from PIL import Image

from .models import Collage, DecodedImage

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = "black"


class CollageComposer:
    """Blit covers onto a grid canvas.

    Attributes:
        background: Pillow colour used for cells without a cover
    """

    def __init__(self, background: str | tuple[int, int, int] = DEFAULT_BACKGROUND) -> None:
        self.background = background

    @staticmethod
    def cell_origin(index: int, grid_dim: int, cell_width: int, cell_height: int) -> tuple[int, int]:
        """Top-left corner of cell *index* on the canvas."""
        return (index % grid_dim) * cell_width, (index // grid_dim) * cell_height

    def compose(self, images: Sequence[DecodedImage], grid_dim: int) -> Collage:
        """Lay *images* out on a ``grid_dim`` x ``grid_dim`` canvas.

        Args:
            images: Decoded covers in album order
            grid_dim: Side length of the grid, in cells

        Returns:
            The composed collage

        Raises:
            ValueError: If there are no images or ``grid_dim`` is below 1
        """
        if grid_dim < 1:
            raise ValueError(f"grid_dim must be at least 1, got {grid_dim}")
        if not images:
            raise ValueError("Cannot compose a collage without images")

        cell_width, cell_height = images[0].width, images[0].height
        canvas = Image.new(
            "RGB",
            (cell_width * grid_dim, cell_height * grid_dim),
            self.background,
        )

        placed = images[: grid_dim * grid_dim]
        if len(placed) < len(images):
            logger.warning(
                "Dropping %d covers that do not fit a %dx%d grid",
                len(images) - len(placed),
                grid_dim,
                grid_dim,
            )

        for index, decoded in enumerate(placed):
            canvas.paste(
                decoded.image,
                self.cell_origin(index, grid_dim, cell_width, cell_height),
            )

        logger.info(
            "Composed %dx%d collage from %d covers (%d empty cells)",
            canvas.width,
            canvas.height,
            len(placed),
            grid_dim * grid_dim - len(placed),
        )
        return Collage(
            image=canvas,
            grid_dim=grid_dim,
            cell_width=cell_width,
            cell_height=cell_height,
            album_count=len(placed),
        )
