"""Pydantic request models for the collage API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Both models carry *friendly labels* (``"1 Month"``, ``"5x5"``, ``"Large"``),
exactly what the options store persists.  Whether a label exists in its
table is checked by the core's parameter mapper, not here.

Models
------
CollageBody
    Payload for ``POST /api/collage``.
OptionsBody
    Payload for ``PUT /api/options``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fmcollage.core.models import CollageRequest


class CollageBody(BaseModel):
    """Request body for the ``POST /api/collage`` endpoint.

    Attributes:
        username: Last.fm username whose top albums are used.
        period: Period label, e.g. ``"1 Month"``.
        dimension: Grid label, e.g. ``"3x3"``.
        image_size: Image-size label, e.g. ``"Extra Large"``.  Accepted as
            ``image-size`` too, matching the persisted options key.
        timeout: Optional per-call network timeout in seconds.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(
        ...,
        min_length=1,
        description="Last.fm username.",
    )
    period: str = Field(
        ...,
        description="Period label (e.g. 'Week', '1 Year').",
    )
    dimension: str = Field(
        ...,
        description="Grid label (e.g. '3x3', '10x10').",
    )
    image_size: str = Field(
        ...,
        alias="image-size",
        description="Image-size label (e.g. 'Small', 'Extra Large').",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Network timeout in seconds.  None = configured default.",
    )

    def to_request(self) -> CollageRequest:
        """Convert to the core's boundary value."""
        return CollageRequest(
            username=self.username,
            period=self.period,
            dimension=self.dimension,
            image_size=self.image_size,
        )


class OptionsBody(BaseModel):
    """Request body for the ``PUT /api/options`` endpoint.

    Attributes:
        username: Username to remember.
        period: Period label to remember.
        dimension: Grid label to remember.
        image_size: Image-size label to remember (alias ``image-size``).
    """

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1)
    period: str
    dimension: str
    image_size: str = Field(..., alias="image-size")

    def to_request(self) -> CollageRequest:
        return CollageRequest(
            username=self.username,
            period=self.period,
            dimension=self.dimension,
            image_size=self.image_size,
        )
