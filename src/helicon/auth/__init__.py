"""Login flow, challenge solving and credential storage."""

from .challenge import ChallengeSolver, PlaywrightChallengeSolver
from .cookies import Cookie, CookieJar, SessionCookies
from .keyring import KeyringStore, SecretStore, decode_session_blob, encode_session_blob

__all__ = [
    "ChallengeSolver",
    "Cookie",
    "CookieJar",
    "KeyringStore",
    "PlaywrightChallengeSolver",
    "SecretStore",
    "SessionCookies",
    "decode_session_blob",
    "encode_session_blob",
]
