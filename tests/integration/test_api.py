"""Integration tests for fmcollage.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient with a CollageGenerator whose HTTP
sessions are mocked, so the full pipeline runs without network access.
Tests cover every endpoint:

- ``GET /api/config`` — Option labels, defaults and saved options.
- ``GET /api/options`` / ``PUT /api/options`` — Options persistence.
- ``POST /api/collage`` — Collage rendering and error mapping.
"""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

import fmcollage.api.main as api_main
from fmcollage.api.main import app, status_for
from fmcollage.core.api_client import LastFMClient
from fmcollage.core.errors import CoreError, GenerationCancelled
from fmcollage.core.image_fetcher import ImageFetcher
from fmcollage.core.pipeline import CollageGenerator


class _Provider:
    """Mutable fake of the Last.fm API and its image CDN."""

    def __init__(self, make_response):
        self.make_response = make_response
        self.status = 200
        self.body = b""
        self.images: dict[str, bytes] = {}
        self.api_session = MagicMock()
        self.api_session.request.side_effect = lambda *a, **k: make_response(self.status, self.body)
        self.image_session = MagicMock()
        self.image_session.get.side_effect = self._get

    def _get(self, url, headers=None, timeout=None):
        if url in self.images:
            return self.make_response(200, self.images[url])
        return self.make_response(404)


@pytest.fixture
def provider(make_response) -> _Provider:
    return _Provider(make_response)


@pytest.fixture
def test_client(monkeypatch, test_config, provider):
    """TestClient whose generator talks to the fake provider."""
    monkeypatch.setattr(api_main, "config", test_config)

    with TestClient(app) as client:
        real_generator = app.state.generator
        app.state.generator = CollageGenerator(
            test_config,
            tables=real_generator.tables,
            client=LastFMClient(test_config.api_url, test_config.api_key, session=provider.api_session),
            fetcher=ImageFetcher(session=provider.image_session, max_workers=2),
        )
        real_generator.close()
        yield client


def _payload(**overrides) -> dict:
    payload = {"username": "rj", "period": "1 Month", "dimension": "3x3", "image-size": "Large"}
    payload.update(overrides)
    return payload


def _serve_albums(provider: _Provider, top_albums_xml, png_bytes, count: int) -> None:
    provider.body = top_albums_xml([{"large": f"http://img.test/{i}.png"} for i in range(count)])
    provider.images = {f"http://img.test/{i}.png": png_bytes((40, 40), (i, 0, 0)) for i in range(count)}


# ---------------------------------------------------------------------------
# Configuration endpoint tests.
# ---------------------------------------------------------------------------


class TestGetConfig:
    """Test GET /api/config."""

    def test_config_returns_labels(self, test_client):
        resp = test_client.get("/api/config")
        assert resp.status_code == 200
        data = resp.json()
        assert data["labels"]["period"] == ["Week", "1 Month", "3 Months", "6 Months", "1 Year"]
        assert data["labels"]["dimension"] == ["3x3", "5x5", "10x10"]
        assert data["labels"]["image-size"] == ["Small", "Medium", "Large", "Extra Large"]

    def test_config_returns_version_and_defaults(self, test_client):
        data = test_client.get("/api/config").json()
        assert "version" in data
        assert data["defaults"]["period"] == "Week"
        assert data["options"] == data["defaults"]


# ---------------------------------------------------------------------------
# Options endpoint tests.
# ---------------------------------------------------------------------------


class TestOptions:
    """Test GET/PUT /api/options."""

    def test_defaults_before_save(self, test_client):
        resp = test_client.get("/api/options")
        assert resp.status_code == 200
        assert resp.json()["dimension"] == "3x3"

    def test_put_then_get(self, test_client, test_config):
        payload = _payload(period="1 Year", dimension="10x10")
        resp = test_client.put("/api/options", json=payload)

        assert resp.status_code == 200
        assert test_client.get("/api/options").json() == payload
        assert test_config.options_file.exists()

    def test_put_unknown_label_is_400(self, test_client, test_config):
        resp = test_client.put("/api/options", json=_payload(period="Decade"))

        assert resp.status_code == 400
        assert resp.json()["error"] == "UnknownOption"
        assert not test_config.options_file.exists()

    def test_put_missing_field_is_422(self, test_client):
        resp = test_client.put("/api/options", json={"username": "rj"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Collage endpoint tests.
# ---------------------------------------------------------------------------


class TestCreateCollage:
    """Test POST /api/collage."""

    def test_returns_png(self, test_client, provider, top_albums_xml, png_bytes):
        _serve_albums(provider, top_albums_xml, png_bytes, 9)

        resp = test_client.post("/api/collage", json=_payload())

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.headers["X-Collage-Grid"] == "3x3"
        assert resp.headers["X-Collage-Albums"] == "9"
        assert Image.open(io.BytesIO(resp.content)).size == (120, 120)

    def test_success_saves_options(self, test_client, provider, top_albums_xml, png_bytes):
        _serve_albums(provider, top_albums_xml, png_bytes, 2)

        test_client.post("/api/collage", json=_payload(period="6 Months"))

        assert test_client.get("/api/options").json()["period"] == "6 Months"

    def test_failure_does_not_save_options(self, test_client, provider):
        provider.status = 404

        test_client.post("/api/collage", json=_payload(period="6 Months"))

        assert test_client.get("/api/options").json()["period"] == "Week"

    def test_invalid_user_is_404(self, test_client, provider):
        provider.status = 404

        resp = test_client.post("/api/collage", json=_payload(username="ghost"))

        assert resp.status_code == 404
        assert resp.json()["error"] == "InvalidUser"
        assert "ghost" in resp.json()["detail"]

    def test_no_recent_plays_is_422(self, test_client, provider, top_albums_xml):
        provider.body = top_albums_xml([])

        resp = test_client.post("/api/collage", json=_payload())

        assert resp.status_code == 422
        assert resp.json()["error"] == "NoRecentPlays"

    def test_no_images_is_422(self, test_client, provider, top_albums_xml):
        provider.body = top_albums_xml([{"large": ""}])

        resp = test_client.post("/api/collage", json=_payload())

        assert resp.status_code == 422
        assert resp.json()["error"] == "NoImagesAvailable"

    def test_provider_error_is_502(self, test_client, provider):
        provider.status = 500

        resp = test_client.post("/api/collage", json=_payload())

        assert resp.status_code == 502
        assert resp.json()["error"] == "RequestFailed"

    def test_broken_cover_is_502(self, test_client, provider, top_albums_xml):
        provider.body = top_albums_xml([{"large": "http://img.test/missing.png"}])

        resp = test_client.post("/api/collage", json=_payload())

        assert resp.status_code == 502
        assert resp.json()["error"] == "ImageFetchFailed"

    def test_unknown_label_is_400(self, test_client):
        resp = test_client.post("/api/collage", json=_payload(dimension="4x4"))

        assert resp.status_code == 400
        assert resp.json()["error"] == "UnknownOption"

    def test_timeout_forwarded(self, test_client, provider, top_albums_xml, png_bytes):
        _serve_albums(provider, top_albums_xml, png_bytes, 1)

        test_client.post("/api/collage", json=_payload(timeout=1.25))

        assert provider.api_session.request.call_args.kwargs["timeout"] == 1.25


class TestStatusMapping:
    """Fallback status for kinds the REST layer never triggers."""

    def test_unmapped_kind_is_500(self):
        assert status_for(GenerationCancelled("composition")) == 500
        assert status_for(CoreError("generic")) == 500
