"""Set-Cookie parsing and session cookie containers."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from helicon.errors import CookieParseError

RFC1123 = "%a, %d %b %Y %H:%M:%S"
RFC1123Z = "%a, %d %b %Y %H:%M:%S %z"
UTC_ZONE_NAMES = ("GMT", "UTC")

_MAX_AGE_PATTERN = re.compile(r"[+-]?[0-9]+")


def _parse_expires(value: str) -> datetime:
    """Parse an Expires attribute as RFC 1123, falling back to RFC 1123Z."""
    stamp, _, zone = value.strip().rpartition(" ")
    if zone in UTC_ZONE_NAMES:
        try:
            return datetime.strptime(stamp, RFC1123).replace(tzinfo=UTC)
        except ValueError:
            pass
    try:
        return datetime.strptime(value.strip(), RFC1123Z)
    except ValueError as exc:
        raise CookieParseError(f"cannot parse Expires {value}: {exc}") from exc


@dataclass(frozen=True)
class Cookie:
    """One Set-Cookie line.

    `raw` is the verbatim line and the only field that is persisted; every
    other field is derived from it by `Cookie.parse`.
    """

    raw: str = ""
    key: str = ""
    value: str = ""
    max_age: int | None = None
    expires: datetime | None = None
    path: str = ""
    domain: str = ""
    secure: bool = False
    http_only: bool | None = None
    partitioned: bool | None = None
    same_site: str | None = None

    @classmethod
    def parse(cls, raw: str) -> "Cookie":
        """Parse a Set-Cookie line.

        Raises:
            CookieParseError: If Expires or Max-Age is malformed, or a non-empty
                line carries no name=value pair.
        """
        if not raw.strip():
            return cls(raw=raw)

        fields: dict[str, object] = {}
        key: str | None = None
        value = ""

        for segment in raw.split(";"):
            segment = segment.strip()
            if not segment:
                continue
            name, _, attr_value = segment.partition("=")
            attribute = name.strip().lower()
            if attribute == "expires":
                fields["expires"] = _parse_expires(attr_value)
            elif attribute == "path":
                fields["path"] = attr_value
            elif attribute == "domain":
                fields["domain"] = attr_value
            elif attribute == "secure":
                fields["secure"] = True
            elif attribute == "httponly":
                fields["http_only"] = True
            elif attribute == "partitioned":
                fields["partitioned"] = True
            elif attribute == "samesite":
                fields["same_site"] = attr_value
            elif attribute == "max-age":
                if not _MAX_AGE_PATTERN.fullmatch(attr_value):
                    raise CookieParseError(f"cannot parse Max-Age {attr_value} as int")
                fields["max_age"] = int(attr_value)
            elif key is None:
                key, value = name, attr_value

        if key is None:
            raise CookieParseError(f"no name=value pair in cookie: {raw!r}")
        return cls(raw=raw, key=key, value=value, **fields)  # type: ignore[arg-type]

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True when the cookie's Expires instant has passed."""
        if self.expires is None:
            return False
        if now is None:
            now = datetime.now(UTC)
        return self.expires <= now


def cookie_name(line: str) -> str:
    """Get the cookie name of a Set-Cookie line."""
    first = line.split(";", 1)[0]
    return first.partition("=")[0].strip()


def cookie_value(line: str) -> str:
    """Get the cookie value of a Set-Cookie line."""
    first = line.split(";", 1)[0]
    return first.partition("=")[2].strip()


class CookieJar:
    """Insertion-ordered cookie name/value map, replayed as a Cookie header."""

    def __init__(self, initial: Iterable[tuple[str, str]] = ()) -> None:
        self._values: dict[str, str] = dict(initial)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def to_header(self) -> str:
        """Render the jar as a Cookie request header value."""
        return "; ".join(f"{name}={value}" for name, value in self._values.items())


@dataclass(frozen=True)
class SessionCookies:
    """Credentials needed for authenticated requests.

    `bearer_token` is the anonymous bearer scraped from the web client bundle,
    already prefixed with "Bearer ". The two cookies are bound to the user.
    """

    csrf_token: Cookie
    auth_token: Cookie
    bearer_token: str

    def is_complete(self) -> bool:
        """Return True when all three credentials are present."""
        return bool(self.csrf_token.value and self.auth_token.value and self.bearer_token)
