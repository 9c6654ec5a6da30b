"""Option tables and parameter mapping.

The user picks three options from fixed lists of friendly labels.  Each list
is an order-preserving table that maps a label to the token Last.fm expects:

========  ===============  ======================
Table     Example label    API token
========  ===============  ======================
period    ``"1 Month"``    ``period=1month``
dimension ``"5x5"``        ``limit=25``
size      ``"Large"``      ``<image size="large">``
========  ===============  ======================

The tables are built once (:data:`DEFAULT_TABLES`) and handed to
:class:`ParameterMapper` by reference.  They are read-only views, so nothing
can change them at runtime.

The grid side length is derived from the limit as ``floor(sqrt(limit))``.
For a limit that is not a perfect square the trailing cells of the grid are
simply left empty.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .errors import UnknownOption
from .models import (
    DIMENSION_KEY,
    IMAGE_SIZE_KEY,
    PERIOD_KEY,
    USERNAME_KEY,
    CollageRequest,
    MappedParameters,
)

logger = logging.getLogger(__name__)


def _freeze(pairs: Mapping[str, str] | tuple[tuple[str, str], ...]) -> Mapping[str, str]:
    return MappingProxyType(dict(pairs))


@dataclass(frozen=True)
class OptionTables:
    """Immutable label -> token tables for the three user-facing options.

    Attributes:
        periods: Period label -> ``period`` token
        dimensions: Grid label -> ``limit`` token (a decimal string)
        image_sizes: Size label -> ``size`` attribute of ``<image>``
        default_username: Username offered before anything was saved
    """

    periods: Mapping[str, str]
    dimensions: Mapping[str, str]
    image_sizes: Mapping[str, str]
    default_username: str = "Username"

    def __post_init__(self) -> None:
        for name in ("periods", "dimensions", "image_sizes"):
            table = getattr(self, name)
            if not table:
                raise ValueError(f"Option table '{name}' must not be empty")
            object.__setattr__(self, name, _freeze(table))

    def defaults(self) -> dict[str, str]:
        """Return the default options: the first label of every table."""
        return {
            USERNAME_KEY: self.default_username,
            PERIOD_KEY: next(iter(self.periods)),
            DIMENSION_KEY: next(iter(self.dimensions)),
            IMAGE_SIZE_KEY: next(iter(self.image_sizes)),
        }

    def labels(self) -> dict[str, list[str]]:
        """Return the labels of every table, in display order."""
        return {
            PERIOD_KEY: list(self.periods),
            DIMENSION_KEY: list(self.dimensions),
            IMAGE_SIZE_KEY: list(self.image_sizes),
        }

    def with_default_username(self, username: str) -> OptionTables:
        """Return a copy of these tables with another default username."""
        return OptionTables(
            periods=self.periods,
            dimensions=self.dimensions,
            image_sizes=self.image_sizes,
            default_username=username,
        )


DEFAULT_TABLES = OptionTables(
    periods=(
        ("Week", "7day"),
        ("1 Month", "1month"),
        ("3 Months", "3month"),
        ("6 Months", "6month"),
        ("1 Year", "12month"),
    ),
    dimensions=(
        ("3x3", "9"),
        ("5x5", "25"),
        ("10x10", "100"),
    ),
    image_sizes=(
        ("Small", "small"),
        ("Medium", "medium"),
        ("Large", "large"),
        ("Extra Large", "extralarge"),
    ),
)


@dataclass(frozen=True)
class ParameterMapper:
    """Translate friendly labels into API tokens.

    Labels are expected to come from the tables themselves, but every lookup
    is still validated and an unknown label raises :class:`UnknownOption`.
    """

    tables: OptionTables = field(default=DEFAULT_TABLES)

    def map_period(self, label: str) -> str:
        return self._lookup(self.tables.periods, PERIOD_KEY, label)

    def map_limit(self, label: str) -> int:
        token = self._lookup(self.tables.dimensions, DIMENSION_KEY, label)
        try:
            return int(token)
        except ValueError as e:
            raise UnknownOption(DIMENSION_KEY, label) from e

    def map_image_size(self, label: str) -> str:
        return self._lookup(self.tables.image_sizes, IMAGE_SIZE_KEY, label)

    @staticmethod
    def grid_dimension(limit: int) -> int:
        """Side length of the grid for *limit* items: ``floor(sqrt(limit))``."""
        if limit < 1:
            raise UnknownOption("limit", limit)
        return math.isqrt(limit)

    def map_request(self, request: CollageRequest) -> MappedParameters:
        """Map every field of *request* to its wire value.

        Raises:
            UnknownOption: If a label is not in its table or the username is blank
        """
        username = request.username.strip()
        if not username:
            raise UnknownOption(USERNAME_KEY, request.username)

        limit = self.map_limit(request.dimension)
        params = MappedParameters(
            username=username,
            period=self.map_period(request.period),
            limit=limit,
            grid_dim=self.grid_dimension(limit),
            image_size=self.map_image_size(request.image_size),
        )
        logger.debug("Mapped %s to %s", request, params)
        return params

    @staticmethod
    def _lookup(table: Mapping[str, str], option: str, label: str) -> str:
        try:
            return table[label]
        except (KeyError, TypeError) as e:
            raise UnknownOption(option, label) from e
