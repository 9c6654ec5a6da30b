"""HTTP client for the Last.fm ``user.getTopAlbums`` call.

The provider is addressed with a ``GET`` request whose *body* carries the
form-encoded parameters.  The response status is classified before anything
reads the body:

=======  =========================================
Status   Outcome
=======  =========================================
200      body returned to the caller
404      :class:`~fmcollage.core.errors.InvalidUser`
other    :class:`~fmcollage.core.errors.RequestFailed`
=======  =========================================

Transport failures (refused connection, DNS, timeout) surface as
:class:`~fmcollage.core.errors.NetworkError` and are never confused with the
status-based errors above.

Each call owns its connection for a single request/response cycle.  The body
is read in full and the response is closed before the method returns, on
every exit path.
"""

from __future__ import annotations

import logging
import time

import requests

from .errors import InvalidUser, NetworkError, RequestFailed
from .models import MappedParameters
from .request_builder import build_top_albums_params, encode_form

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class LastFMClient:
    """Execute top-albums requests against the Last.fm web service.

    Attributes:
        api_url: Base URL of the web service
        api_key: Key sent as the ``api_key`` parameter
        timeout: Default timeout in seconds, overridable per call
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        user_agent: str | None = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.user_agent = user_agent

        # Only close sessions we created ourselves.
        self._owns_session = session is None
        self._session = session or requests.Session()

    def fetch_top_albums(self, params: MappedParameters, timeout: float | None = None) -> bytes:
        """Request the user's top albums and return the raw XML body.

        Args:
            params: Mapped request parameters
            timeout: Timeout in seconds for this call (defaults to ``self.timeout``)

        Returns:
            The response body as bytes

        Raises:
            InvalidUser: If the provider answers 404
            RequestFailed: If the provider answers any other non-200 status
            NetworkError: If the request could not be completed
        """
        body = encode_form(build_top_albums_params(self.api_key, params))
        headers = {"Content-Type": FORM_CONTENT_TYPE}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        effective_timeout = self.timeout if timeout is None else timeout
        logger.info(
            "Requesting top albums for '%s' (period=%s, limit=%d)",
            params.username,
            params.period,
            params.limit,
        )

        start_time = time.monotonic()
        try:
            response = self._session.request(
                "GET",
                self.api_url,
                data=body.encode("utf-8"),
                headers=headers,
                timeout=effective_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Top albums request for '%s' failed: %s", params.username, e)
            raise NetworkError(e) from e

        try:
            status = response.status_code
            if status == 404:
                raise InvalidUser(params.username)
            if status != 200:
                raise RequestFailed(status)

            try:
                content = response.content
            except requests.exceptions.RequestException as e:
                raise NetworkError(e) from e
        finally:
            response.close()

        logger.info(
            "Received %d bytes for '%s' in %.2f seconds",
            len(content),
            params.username,
            time.monotonic() - start_time,
        )
        return content

    def close(self) -> None:
        """Release the underlying session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> LastFMClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
