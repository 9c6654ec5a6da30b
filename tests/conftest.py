"""Shared pytest fixtures for fmcollage tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock
from xml.sax.saxutils import escape

import pytest
from PIL import Image

from fmcollage.core.config import CollageConfig
from fmcollage.core.models import CollageRequest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> CollageConfig:
    """Create a test configuration with temporary directories.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        CollageConfig instance for testing
    """
    return CollageConfig(
        _env_file=None,
        api_url="http://lastfm.test/2.0/",
        api_key="test-key",
        data_dir=str(temp_dir / "data"),
        outputs_dir=str(temp_dir / "outputs"),
        request_timeout=5.0,
        image_timeout=5.0,
        fetch_workers=1,
    )


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    """Factory for in-memory PNG files.

    Returns:
        Callable ``(size=(100, 100), color=(255, 0, 0)) -> bytes``
    """

    def _make(size: tuple[int, int] = (100, 100), color=(255, 0, 0)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def top_albums_xml() -> Callable[..., bytes]:
    """Factory for ``user.getTopAlbums`` XML bodies.

    Each album is given as a mapping of size token -> URL text.  A URL of
    ``""`` produces an empty ``<image>`` element, exactly as Last.fm does.

    Returns:
        Callable ``(albums, user="rj") -> bytes``
    """

    def _make(albums: list[dict[str, str]], user: str = "rj") -> bytes:
        parts = [f'<lfm status="ok"><topalbums user="{escape(user)}">']
        for rank, images in enumerate(albums, start=1):
            parts.append(f'<album rank="{rank}"><name>Album {rank}</name>')
            parts.append("<artist><name>Artist</name></artist>")
            for size, url in images.items():
                parts.append(f'<image size="{size}">{escape(url)}</image>')
            parts.append("</album>")
        parts.append("</topalbums></lfm>")
        return "".join(parts).encode("utf-8")

    return _make


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Factory for mocked ``requests.Response`` objects.

    Returns:
        Callable ``(status_code=200, content=b"") -> MagicMock``
    """

    def _make(status_code: int = 200, content: bytes = b"") -> MagicMock:
        import requests

        response = MagicMock()
        response.status_code = status_code
        response.content = content
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(
                f"{status_code} Error", response=response
            )
        return response

    return _make


@pytest.fixture
def image_session(make_response) -> Callable[[dict[str, bytes]], MagicMock]:
    """Factory for a mocked session that serves images by URL.

    Unknown URLs answer 404.

    Returns:
        Callable ``(images_by_url) -> MagicMock`` session
    """

    def _make(images_by_url: dict[str, bytes]) -> MagicMock:
        session = MagicMock()

        def _get(url, headers=None, timeout=None):
            if url in images_by_url:
                return make_response(200, images_by_url[url])
            return make_response(404)

        session.get.side_effect = _get
        return session

    return _make


@pytest.fixture
def collage_request() -> CollageRequest:
    """A valid request using labels from the default tables."""
    return CollageRequest(username="rj", period="1 Month", dimension="3x3", image_size="Large")
