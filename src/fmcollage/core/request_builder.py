"""Build the form body for a ``user.getTopAlbums`` request."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote_plus

from .models import MappedParameters

TOP_ALBUMS_METHOD = "user.getTopAlbums"


def build_top_albums_params(api_key: str, params: MappedParameters) -> dict[str, str]:
    """Return the request parameters for a top-albums call.

    Keys are inserted in a fixed order so the encoded body is deterministic.
    Last.fm itself does not care about the order.

    Args:
        api_key: Last.fm API key
        params: Mapped request parameters

    Returns:
        Dictionary of parameter name to string value
    """
    return {
        "api_key": api_key,
        "method": TOP_ALBUMS_METHOD,
        "user": params.username,
        "period": params.period,
        "limit": str(params.limit),
    }


def encode_form(params: Mapping[str, str]) -> str:
    """URL-encode *params* as ``key=value`` pairs joined by ``&``.

    Both keys and values are percent-encoded as UTF-8, with spaces written as
    ``+``.  The username is free text typed by a human, so ``&``, ``=`` and
    non-ASCII characters all have to survive the trip.

    Args:
        params: Parameter name to value

    Returns:
        Encoded string with no leading or trailing separator
    """
    return "&".join(
        f"{quote_plus(str(key), encoding='utf-8')}={quote_plus(str(value), encoding='utf-8')}"
        for key, value in params.items()
    )
