"""Ephemeral share store: time-limited shares persisted as one JSON snapshot.

Every operation loads the whole snapshot from its backend, sweeps out expired
shares, applies the change and writes the snapshot back in full. Expiration is
lazy: nothing runs on a timer, so an expired share stays in the backing file
until the next create or read touches the store.
"""

import copy
import json
import logging
import math
import os
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from backend.config import DEFAULT_SHARE_TTL_MS
from backend.models.share import Share

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http://", "https://")


class ShareValidationError(ValueError):
    """Malformed or missing input for a new share."""


class ShareNotFoundError(LookupError):
    """Unknown or expired share id. The two cases are not distinguished."""


class PersistenceError(OSError):
    """The backing file could not be written."""


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def validate_photos(photos: Any) -> list[str]:
    """Return ``photos`` as a list if every entry is an absolute http(s) URL."""
    if not isinstance(photos, (list, tuple)) or not photos:
        raise ShareValidationError("Missing photo list.")
    for photo in photos:
        if not isinstance(photo, str) or not photo.lower().startswith(URL_SCHEMES):
            raise ShareValidationError("Photos must be public URLs.")
    return list(photos)


def resolve_ttl(ttl_ms: Any, default_ttl_ms: int) -> int | float:
    """Pick the TTL for a new share.

    Positive finite numbers are used as given; numeric strings count as their
    number. Everything else (None, zero, negatives, bools, junk) falls back to
    ``default_ttl_ms``.
    """
    if isinstance(ttl_ms, bool):
        return default_ttl_ms
    if isinstance(ttl_ms, str):
        try:
            ttl_ms = float(ttl_ms.strip())
        except ValueError:
            return default_ttl_ms
    if not isinstance(ttl_ms, (int, float)):
        return default_ttl_ms
    if not math.isfinite(ttl_ms) or ttl_ms <= 0:
        return default_ttl_ms
    if isinstance(ttl_ms, float) and ttl_ms.is_integer():
        return int(ttl_ms)
    return ttl_ms


# ── Backends ─────────────────────────────────────────────────────────────────


class ShareBackend:
    """Where a store's snapshot lives. Subclasses implement load/save."""

    def load(self) -> dict[str, Share]:
        raise NotImplementedError

    def save(self, shares: dict[str, Share]) -> bool:
        raise NotImplementedError


class InMemoryBackend(ShareBackend):
    """Dict-backed backend for tests and throwaway stores."""

    def __init__(self, shares: dict[str, Share] | None = None):
        self._shares = copy.deepcopy(shares) if shares else {}
        self.save_count = 0

    def load(self) -> dict[str, Share]:
        return copy.deepcopy(self._shares)

    def save(self, shares: dict[str, Share]) -> bool:
        self._shares = copy.deepcopy(shares)
        self.save_count += 1
        return True


class JsonFileBackend(ShareBackend):
    """Whole-file JSON snapshot: ``{"shares": {"<id>": {...}, ...}}``.

    A missing file is an empty store. So is a file that cannot be read or
    parsed; that case is logged but never raised.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> dict[str, Share]:
        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not read share snapshot %s: %s", self.path, e)
            return {}

        entries = raw.get("shares") if isinstance(raw, dict) else None
        if not isinstance(entries, dict):
            logger.warning("Share snapshot %s has no 'shares' object, treating as empty", self.path)
            return {}

        shares: dict[str, Share] = {}
        for share_id, entry in entries.items():
            try:
                shares[share_id] = Share.model_validate(entry)
            except ValidationError as e:
                logger.warning("Skipping malformed share %s in %s: %s", share_id, self.path, e)
        return shares

    def save(self, shares: dict[str, Share]) -> bool:
        try:
            self._write(shares)
        except PersistenceError:
            logger.exception("Could not save share snapshot to %s", self.path)
            return False
        return True

    def _write(self, shares: dict[str, Share]) -> None:
        """Write to a temp file beside the target, then swap it into place."""
        payload = {"shares": {sid: s.model_dump() for sid, s in shares.items()}}
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(str(e)) from e


# ── Store ────────────────────────────────────────────────────────────────────


class ShareStore:
    """Create and read shares with lazy expiration.

    One lock guards each load-modify-save cycle so concurrent requests on
    separate threads never write back a stale snapshot over each other.

    Args:
        backend: Where the snapshot is loaded from and saved to
        default_ttl_ms: Lifetime used when a create does not supply one
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        backend: ShareBackend,
        default_ttl_ms: int = DEFAULT_SHARE_TTL_MS,
        clock: Callable[[], int | float] = now_ms,
    ):
        self.backend = backend
        self.default_ttl_ms = default_ttl_ms
        self.clock = clock
        self._lock = threading.Lock()

    def create(
        self,
        user_name: str,
        love_text: str,
        photos: Any,
        ttl_ms: Any = None,
    ) -> tuple[str, int | float]:
        """Store a new share.

        Returns:
            Tuple of (share_id, expires_at)

        Raises:
            ShareValidationError: If photos is missing, empty or not all URLs
        """
        photos = validate_photos(photos)
        ttl = resolve_ttl(ttl_ms, self.default_ttl_ms)

        with self._lock:
            created_at = int(self.clock())
            share = Share(
                id=str(uuid.uuid4()),
                userName=user_name,
                loveText=love_text,
                photos=photos,
                createdAt=created_at,
                expiresAt=created_at + ttl,
            )
            shares = self.backend.load()
            self._sweep(shares, created_at)
            shares[share.id] = share
            self.backend.save(shares)

        logger.info("Created share %s with %d photo(s), expires at %s",
                    share.id, len(photos), share.expiresAt)
        return share.id, share.expiresAt

    def get(self, share_id: str) -> Share:
        """Return a live share.

        Raises:
            ShareNotFoundError: If the id is unknown or the share has expired
        """
        with self._lock:
            shares = self._load_live()
        share = shares.get(share_id)
        if share is None:
            raise ShareNotFoundError(share_id)
        return share

    def list_active(self) -> list[Share]:
        """All live shares, newest first."""
        with self._lock:
            shares = self._load_live()
        return sorted(shares.values(), key=lambda s: s.createdAt, reverse=True)

    def purge_expired(self) -> int:
        """Run a sweep now. Returns the number of shares removed."""
        with self._lock:
            shares = self.backend.load()
            removed = self._sweep(shares, self.clock())
            if removed:
                self.backend.save(shares)
        return removed

    def _load_live(self) -> dict[str, Share]:
        """Load the snapshot and drop expired shares, saving if any went."""
        now = self.clock()
        shares = self.backend.load()
        if self._sweep(shares, now):
            self.backend.save(shares)
        # A share expiring exactly now survives the sweep but is not live
        return {sid: s for sid, s in shares.items() if s.expiresAt > now}

    def _sweep(self, shares: dict[str, Share], now: int | float) -> int:
        """Remove shares whose expiresAt is before ``now``, in place."""
        expired = [sid for sid, share in shares.items() if share.expiresAt < now]
        for sid in expired:
            del shares[sid]
        if expired:
            logger.info("Purged %d expired share(s)", len(expired))
        return len(expired)
