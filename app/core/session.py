"""
Process-wide identity cache.

Each caller's resolved user (account + profile + team) is a single-writer
observable value keyed by a digest of the access token. Writers are the
request that resolves a token, auth events (login, logout, invite
acceptance) and explicit refreshes. Listeners are notified on every change.
"""

import asyncio
import hashlib
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from app.modules.auth.schemas import CurrentUser

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"

Resolver = Callable[[str], CurrentUser]
Listener = Callable[[str, Optional[CurrentUser]], None]


def token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionState:
    def __init__(self, resolver: Resolver, ttl_sec: float = 60, max_size: int = 500):
        self._resolver = resolver
        self._ttl_sec = ttl_sec
        self._max_size = max_size
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[CurrentUser, float]] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def peek(self, token: str) -> Optional[CurrentUser]:
        """Cached user for token without resolving"""
        key = token_key(token)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            user, expiry = entry
            if time.monotonic() >= expiry:
                del self._entries[key]
                return None
            return user

    def get(self, token: str) -> CurrentUser:
        """Cached user for token, resolving and storing it on a miss"""
        user = self.peek(token)
        if user is not None:
            return user
        return self._store(token, self._resolver(token))

    def refresh(self, token: str) -> CurrentUser:
        """Re-resolve after a mutating action. An unresolvable token is dropped from the cache."""
        try:
            user = self._resolver(token)
        except Exception:
            self.clear(token)
            raise
        return self._store(token, user)

    def clear(self, token: str) -> None:
        key = token_key(token)
        with self._lock:
            existed = self._entries.pop(key, None) is not None
        if existed:
            self._notify(key, None)

    def handle_auth_event(self, event: str, token: str, user: Optional[CurrentUser] = None) -> Optional[CurrentUser]:
        """Apply a sign-in/sign-out notification from the identity provider"""
        logger.info(f"Auth state changed: {event}")
        if event == SIGNED_OUT:
            self.clear(token)
            return None
        if event in (SIGNED_IN, TOKEN_REFRESHED, USER_UPDATED):
            if user is not None:
                return self._store(token, user)
            return self.refresh(token)
        logger.debug(f"Ignoring auth event {event}")
        return self.peek(token)

    async def load(self, token: str, timeout: float) -> Tuple[Optional[CurrentUser], bool]:
        """
        Resolve token, waiting at most timeout seconds.

        Returns (user, timed_out). On timeout the resolution keeps running in
        its worker thread and still fills the cache when it finishes.
        """
        cached = self.peek(token)
        if cached is not None:
            return cached, False

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self.get, token)
        try:
            user = await asyncio.wait_for(asyncio.shield(future), timeout)
            return user, False
        except asyncio.TimeoutError:
            logger.warning("Loading timeout - continuing anyway")
            future.add_done_callback(_log_late_failure)
            return None, True

    def _store(self, token: str, user: CurrentUser) -> CurrentUser:
        key = token_key(token)
        with self._lock:
            previous = self._entries.get(key)
            if previous is None and len(self._entries) >= self._max_size:
                self._evict_expired()
            if previous is not None or len(self._entries) < self._max_size:
                self._entries[key] = (user, time.monotonic() + self._ttl_sec)
        if previous is None or previous[0] != user:
            self._notify(key, user)
        return user

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, expiry) in self._entries.items() if expiry <= now]:
            del self._entries[key]

    def _notify(self, key: str, user: Optional[CurrentUser]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key, user)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")


def _log_late_failure(future: "asyncio.Future") -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.info(f"Background session load failed: {exc}")
