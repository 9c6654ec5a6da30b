"""Data models for a single collage pipeline run.

Every object here is created and discarded within one run; none of them is
persisted by the core.  :class:`CollageRequest` is the boundary value and
always carries *friendly labels*, never API tokens, so that the options a
caller persists round-trip losslessly.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

# Keys of the persisted options store.
USERNAME_KEY = "username"
PERIOD_KEY = "period"
DIMENSION_KEY = "dimension"
IMAGE_SIZE_KEY = "image-size"

OPTION_KEYS = (USERNAME_KEY, PERIOD_KEY, DIMENSION_KEY, IMAGE_SIZE_KEY)


@dataclass(frozen=True)
class CollageRequest:
    """What the caller asked for, expressed in friendly labels."""

    username: str
    period: str
    dimension: str
    image_size: str

    def to_options(self) -> dict[str, str]:
        """Return the four persisted option keys for this request."""
        return {
            USERNAME_KEY: self.username,
            PERIOD_KEY: self.period,
            DIMENSION_KEY: self.dimension,
            IMAGE_SIZE_KEY: self.image_size,
        }

    @classmethod
    def from_options(
        cls, options: Mapping[str, str], defaults: Mapping[str, str]
    ) -> CollageRequest:
        """Build a request from persisted options, filling gaps from *defaults*.

        Args:
            options: Mapping keyed by :data:`OPTION_KEYS` (extra keys ignored)
            defaults: Mapping with a value for every key in :data:`OPTION_KEYS`

        Returns:
            CollageRequest carrying the resolved labels
        """
        merged = {key: options.get(key) or defaults[key] for key in OPTION_KEYS}
        return cls(
            username=merged[USERNAME_KEY],
            period=merged[PERIOD_KEY],
            dimension=merged[DIMENSION_KEY],
            image_size=merged[IMAGE_SIZE_KEY],
        )


@dataclass(frozen=True)
class MappedParameters:
    """A request translated into the provider's wire vocabulary."""

    username: str
    period: str
    limit: int
    grid_dim: int
    image_size: str


@dataclass(frozen=True)
class AlbumImageRef:
    """Artwork reference for one album, in source (rank) order."""

    album_index: int
    image_url: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)


@dataclass
class DecodedImage:
    """Pixel data for one album cover."""

    album_index: int
    url: str
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass
class Collage:
    """The composed grid bitmap handed back to the caller.

    Attributes:
        image: Composed RGB canvas
        grid_dim: Side length of the grid, in cells
        cell_width: Width of every cell (the first cover's width)
        cell_height: Height of every cell (the first cover's height)
        album_count: Number of covers placed on the canvas
    """

    image: Image.Image
    grid_dim: int
    cell_width: int
    cell_height: int
    album_count: int

    @property
    def width(self) -> int:
        return self.cell_width * self.grid_dim

    @property
    def height(self) -> int:
        return self.cell_height * self.grid_dim

    def to_png_bytes(self) -> bytes:
        """Encode the collage as PNG."""
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, path: Path) -> Path:
        """Write the collage to *path*, creating parent directories.

        The format is inferred from the file extension.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.image.save(path)
        logger.info("Saved %dx%d collage to %s", self.width, self.height, path)
        return path
