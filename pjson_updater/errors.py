"""Error types raised by pjson-updater.

Every failure the tool knows how to report is an ``UpdaterError``. The CLI
prints ``kind: message`` for these and exits non-zero; anything else is a bug
and is allowed to surface as a traceback.
"""

from __future__ import annotations


class UpdaterError(Exception):
    """Base class for all reportable failures."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(UpdaterError):
    """A required option was not supplied on the command line or in the env.

    Attributes:
        option: Name of the missing option field (e.g. "repo_name").
    """

    def __init__(self, message: str, option: str | None = None) -> None:
        super().__init__(message)
        self.option = option


class ManifestError(UpdaterError):
    """package.json is unusable or does not declare the requested package."""


class RemoteError(UpdaterError):
    """A Bitbucket API call failed.

    Attributes:
        status_code: HTTP status of the failed response, or None when the
                     request never got a response (DNS, refused, timeout).
        provider_message: Error text embedded in the response body, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        provider_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider_message = provider_message
