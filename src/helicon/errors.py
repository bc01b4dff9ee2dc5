"""Exception types for Helicon."""


class HeliconError(Exception):
    """Base exception for all Helicon errors."""


class ConfigError(HeliconError):
    """Missing or malformed configuration."""


class TransportError(HeliconError):
    """I/O, DNS, TLS or timeout failure while talking to the Service."""


class ScrapeError(HeliconError):
    """The login page or main script no longer matches the expected shape."""


class ChallengeError(HeliconError):
    """The JS instrumentation challenge could not be solved."""


class CookieParseError(HeliconError):
    """A Set-Cookie line could not be parsed."""


class StoreError(HeliconError):
    """The secret store is unavailable or rejected the operation."""


class EntryNotFoundError(StoreError):
    """No stored credentials exist for the requested account."""


class CorruptBlobError(StoreError):
    """Stored credentials could not be decoded."""


class LoginError(HeliconError):
    """The onboarding flow failed at a given stage.

    Args:
        message: Human readable description.
        stage: Name of the flow stage that failed.
        status: HTTP status of the failing response, if any.
        body: Raw response body of the failing response, if any.
    """

    def __init__(
        self,
        message: str,
        stage: str,
        status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.status = status
        self.body = body

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.args[0]}"
        if self.status is not None:
            text = f"{text} (status {self.status}, raw body: {self.body})"
        return text


class ApiError(HeliconError):
    """An authenticated API request returned a non-200 status."""

    def __init__(self, status: int, body: str, url: str = "") -> None:
        super().__init__(f"unexpected status code {status} from {url or 'API'}: {body}")
        self.status = status
        self.body = body
        self.url = url
