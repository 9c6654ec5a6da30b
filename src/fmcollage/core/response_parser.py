"""Parse a ``user.getTopAlbums`` XML body into artwork references.

A successful body looks like this (trimmed)::

    <lfm status="ok">
      <topalbums user="rj" page="1" perPage="9" totalPages="12" total="108">
        <album rank="1">
          <name>Believe</name>
          <artist><name>Cher</name></artist>
          <image size="small">https://.../34s/cover.png</image>
          <image size="medium">https://.../64s/cover.png</image>
          <image size="large">https://.../174s/cover.png</image>
          <image size="extralarge">https://.../300x300/cover.png</image>
        </album>
        ...
      </topalbums>
    </lfm>

Albums appear in rank order and that order is carried through to the grid.
An album whose artwork is missing at the requested size is skipped rather
than treated as an error.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from .errors import InvalidUser, NoRecentPlays, ResponseMalformed
from .models import AlbumImageRef

logger = logging.getLogger(__name__)

# Last.fm error code for an unknown user inside an error envelope.
USER_NOT_FOUND_CODE = "6"


def parse_top_albums(body: bytes | str, image_size: str, username: str) -> list[AlbumImageRef]:
    """Extract one artwork reference per album that has art at *image_size*.

    Args:
        body: Raw XML response body
        image_size: Image-size token to match against the ``size`` attribute
        username: Requested username, used for error reporting

    Returns:
        References in source order; albums without matching art are absent

    Raises:
        ResponseMalformed: If the body is not XML or is a provider error envelope
        InvalidUser: If the provider error envelope reports an unknown user
        NoRecentPlays: If the document contains no ``<album>`` elements
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ResponseMalformed(e) from e

    _check_envelope(root, username)

    albums = list(root.iter("album"))
    if not albums:
        raise NoRecentPlays(username)

    refs: list[AlbumImageRef] = []
    for index, album in enumerate(albums):
        url = _find_image_url(album, image_size)
        if not url:
            logger.debug("Album #%d has no '%s' artwork, skipping", index, image_size)
            continue
        refs.append(AlbumImageRef(album_index=index, image_url=url))

    logger.info(
        "Parsed %d albums for '%s', %d with '%s' artwork",
        len(albums),
        username,
        len(refs),
        image_size,
    )
    return refs


def _find_image_url(album: ET.Element, image_size: str) -> str | None:
    # Only the first variant with a matching size counts, even if it is empty.
    for image in album.iter("image"):
        if image.get("size") == image_size:
            return (image.text or "").strip() or None
    return None


def _check_envelope(root: ET.Element, username: str) -> None:
    if root.tag != "lfm" or root.get("status") != "failed":
        return

    error = root.find("error")
    code = error.get("code") if error is not None else None
    message = (error.text or "").strip() if error is not None else ""

    if code == USER_NOT_FOUND_CODE:
        raise InvalidUser(username)
    raise ResponseMalformed(f"provider error {code}: {message}" if code else "provider error")
