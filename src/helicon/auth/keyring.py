"""Credential persistence in the Secret Service keyring.

Stored under service "helicon" with the username as account. The secret is
base64 of the three credentials joined by the ASCII unit separator (0x1F), in
order: ct0 Set-Cookie line, auth_token Set-Cookie line, bearer token (with
its "Bearer " prefix).
"""

import base64
import binascii
from typing import Protocol

from loguru import logger

from helicon.auth.cookies import SessionCookies
from helicon.errors import CorruptBlobError, EntryNotFoundError, StoreError

UNIT_SEPARATOR = "\x1f"


class SecretStore(Protocol):
    """Persists a credential blob keyed by service and account."""

    def save(self, service: str, account: str, blob: str) -> None: ...

    def load(self, service: str, account: str) -> str: ...


def encode_session_blob(session: SessionCookies) -> str:
    """Encode session credentials into a keyring blob."""
    parts = [session.csrf_token.raw, session.auth_token.raw, session.bearer_token]
    return base64.b64encode(UNIT_SEPARATOR.join(parts).encode("utf-8")).decode("ascii")


def decode_session_blob(blob: str) -> tuple[str, str, str]:
    """Decode a keyring blob into (ct0 line, auth_token line, bearer token).

    Raises:
        CorruptBlobError: If the blob is not valid base64/UTF-8 or does not
            hold exactly three parts.
    """
    try:
        combined = base64.b64decode(blob, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise CorruptBlobError(f"failed to decode tokens: {exc}") from exc
    parts = combined.split(UNIT_SEPARATOR)
    if len(parts) != 3:
        raise CorruptBlobError(f"failed to parse tokens: expected 3 parts, got {len(parts)}")
    return parts[0], parts[1], parts[2]


class KeyringStore:
    """SecretStore backed by the freedesktop Secret Service (GNOME keyring)."""

    def _attributes(self, service: str, account: str) -> dict[str, str]:
        return {"service": service, "username": account}

    def save(self, service: str, account: str, blob: str) -> None:
        """Create or replace the keyring item for the account."""
        import secretstorage

        try:
            connection = secretstorage.dbus_init()
            try:
                collection = secretstorage.get_default_collection(connection)
                if collection.is_locked():
                    collection.unlock()
                collection.create_item(
                    f"Password for '{account}' on '{service}'",
                    self._attributes(service, account),
                    blob.encode("utf-8"),
                    replace=True,
                )
            finally:
                connection.close()
        except secretstorage.SecretStorageException as exc:
            raise StoreError(
                f"failed to save tokens under service {service} with username {account}: {exc}"
            ) from exc
        logger.info("saved tokens under service {} for {}", service, account)

    def load(self, service: str, account: str) -> str:
        """Return the stored blob for the account."""
        import secretstorage

        try:
            connection = secretstorage.dbus_init()
            try:
                collection = secretstorage.get_default_collection(connection)
                items = list(collection.search_items(self._attributes(service, account)))
                if not items:
                    raise EntryNotFoundError(
                        f"no tokens under service {service} with username {account}"
                    )
                if items[0].is_locked():
                    items[0].unlock()
                secret = items[0].get_secret()
            finally:
                connection.close()
        except secretstorage.SecretStorageException as exc:
            raise StoreError(
                f"failed to get tokens under service {service} with username {account}: {exc}"
            ) from exc
        try:
            return secret.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptBlobError(f"stored secret is not text: {exc}") from exc
