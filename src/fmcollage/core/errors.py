"""Error taxonomy for the collage pipeline.

Every failure the core can report derives from :class:`CoreError`.  Each
subclass names one terminal condition of a run, so callers can tell
"user not found" apart from "no plays in period" apart from "no artwork"
without parsing messages.

Callers present errors; the core only raises them.  The ``kind`` attribute
is a stable, short identifier suitable for logs and JSON error bodies.
"""

from __future__ import annotations


class CoreError(Exception):
    """Base class for every error raised by the collage pipeline."""

    kind: str = "CoreError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class UnknownOption(CoreError):
    """A label was not found in its option table."""

    kind = "UnknownOption"

    def __init__(self, option: str, label: object) -> None:
        super().__init__(f"Unknown {option} option: {label!r}")
        self.option = option
        self.label = label


class InvalidUser(CoreError):
    """The requested username does not exist on Last.fm."""

    kind = "InvalidUser"

    def __init__(self, username: str) -> None:
        super().__init__(f"User '{username}' does not exist")
        self.username = username


class RequestFailed(CoreError):
    """The API answered with a status other than 200 or 404."""

    kind = "RequestFailed"

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Request failed ({status_code})")
        self.status_code = status_code


class NetworkError(CoreError):
    """The request never completed (connection, DNS, timeout)."""

    kind = "NetworkError"

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class ResponseMalformed(CoreError):
    """The API body could not be understood."""

    kind = "ResponseMalformed"

    def __init__(self, cause: BaseException | str) -> None:
        super().__init__(f"Malformed response: {cause}")
        self.cause = cause


class NoRecentPlays(CoreError):
    """The user has no albums in the requested period."""

    kind = "NoRecentPlays"

    def __init__(self, username: str) -> None:
        super().__init__(f"User '{username}' has no plays in the selected period")
        self.username = username


class ImageFetchFailed(CoreError):
    """An artwork image could not be downloaded or decoded."""

    kind = "ImageFetchFailed"

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Could not fetch image {url}: {cause}")
        self.url = url
        self.cause = cause


class NoImagesAvailable(CoreError):
    """No album has artwork at the requested size."""

    kind = "NoImagesAvailable"

    def __init__(self, username: str) -> None:
        super().__init__(f"No album artwork available for user '{username}'")
        self.username = username


class GenerationCancelled(CoreError):
    """The caller cancelled the run between two stages."""

    kind = "GenerationCancelled"

    def __init__(self, stage: str) -> None:
        super().__init__(f"Collage generation cancelled before {stage}")
        self.stage = stage


__all__ = [
    "CoreError",
    "UnknownOption",
    "InvalidUser",
    "RequestFailed",
    "NetworkError",
    "ResponseMalformed",
    "NoRecentPlays",
    "ImageFetchFailed",
    "NoImagesAvailable",
    "GenerationCancelled",
]
