"""Helicon - log in to X with a username and password and query its web API."""

__version__ = "0.1.0"

from helicon.auth.cookies import Cookie, SessionCookies  # noqa: E402
from helicon.config import Settings, load_settings  # noqa: E402
from helicon.helicon import Helicon  # noqa: E402

__all__ = [
    "Cookie",
    "Helicon",
    "SessionCookies",
    "Settings",
    "__version__",
    "load_settings",
]
