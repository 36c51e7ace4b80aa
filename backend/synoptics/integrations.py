"""Collaborators outside the synoptics core: blob storage, billing and caller identity.

Each is consumed through a narrow protocol so deployments (and tests) can
swap the implementation through FastAPI dependency overrides.
"""

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import quote

from fastapi import Depends, Header

from synoptics.config import MEDIA_ROOT, MEDIA_SIGNING_SECRET
from synoptics.errors import UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)


# --- Blob store ---


class BlobStore(Protocol):
    """Object store holding media bytes, addressed by storage key."""

    def delete(self, key: str) -> None: ...

    def signed_url(self, key: str, expires_in: int) -> str: ...


def normalize_storage_key(key: str) -> str:
    """Canonical relative form of a blob key.

    Rejects empty keys, absolute paths and ``..`` segments so a stored key
    can always be resolved inside the store root.
    """
    path = PurePosixPath(key.strip().replace("\\", "/"))
    if not path.parts or path.is_absolute() or ".." in path.parts:
        raise ValidationError(f"Invalid storage key: {key!r}", {"key": key})
    return path.as_posix()


class LocalBlobStore:
    """Blob store backed by a directory on local disk."""

    def __init__(self, root: str | Path = MEDIA_ROOT, secret: str = MEDIA_SIGNING_SECRET):
        self.root = Path(root).resolve()
        self._secret = secret.encode()

    def _path(self, key: str) -> Path:
        path = (self.root / normalize_storage_key(key)).resolve()
        if not path.is_relative_to(self.root):
            raise ValidationError(f"Storage key escapes media root: {key}", {"key": key})
        return path

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
        logger.info(f"Deleted blob {key}")

    def signed_url(self, key: str, expires_in: int) -> str:
        self._path(key)
        expires = int(time.time()) + expires_in
        signature = hmac.new(
            self._secret, f"{key}:{expires}".encode(), hashlib.sha256
        ).hexdigest()
        return f"/media/{quote(key)}?expires={expires}&signature={signature}"


# --- Billing ---


class BillingSyncError(Exception):
    """Billing provider rejected or failed a quantity sync."""


class BillingSync(Protocol):
    """Keeps the team's subscription quantity in step with its site count."""

    async def sync_subscription_quantity(self, team_id: int) -> None: ...


class LoggingBillingSync:
    """Billing sync that only records the event; used when no provider is configured."""

    async def sync_subscription_quantity(self, team_id: int) -> None:
        logger.info(f"Subscription quantity sync requested for team {team_id}")


# --- Caller identity ---


@dataclass(frozen=True)
class CallerIdentity:
    """Already-authenticated caller, as forwarded by the gateway."""

    user_id: str | None = None
    team_id: int | None = None


_blob_store = LocalBlobStore()
_billing_sync = LoggingBillingSync()


def get_blob_store() -> BlobStore:
    """Dependency returning the configured blob store."""
    return _blob_store


def get_billing_sync() -> BillingSync:
    """Dependency returning the configured billing sync."""
    return _billing_sync


def get_caller(
    x_user_id: str | None = Header(None),
    x_team_id: int | None = Header(None),
) -> CallerIdentity:
    """Resolve the caller from identity headers set upstream."""
    return CallerIdentity(user_id=x_user_id, team_id=x_team_id)


def require_caller(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    """Reject requests that arrive without an authenticated user."""
    if not caller.user_id:
        raise UnauthorizedError("X-User-Id header is required", {"header": "X-User-Id"})
    return caller
