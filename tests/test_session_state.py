"""Tests for the process-wide identity cache"""

import asyncio
import threading

import pytest
from fastapi import HTTPException

from app.core.session import (
    SessionState, SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, token_key
)
from app.modules.auth.schemas import CurrentUser


def _user(email="a@example.com", team_id=None):
    return CurrentUser(id="user-1", email=email, team_id=team_id)


class CountingResolver:
    def __init__(self, user=None):
        self.user = user or _user()
        self.calls = 0

    def __call__(self, token):
        self.calls += 1
        if token == "bad":
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return self.user


class TestSessionState:

    def test_get_resolves_once_then_serves_cache(self):
        resolver = CountingResolver()
        state = SessionState(resolver)

        assert state.get("tok").email == "a@example.com"
        assert state.get("tok").email == "a@example.com"
        assert resolver.calls == 1

    def test_expired_entry_is_resolved_again(self):
        resolver = CountingResolver()
        state = SessionState(resolver, ttl_sec=0)

        state.get("tok")
        state.get("tok")
        assert resolver.calls == 2

    def test_refresh_bypasses_cache_and_notifies_on_change(self):
        resolver = CountingResolver()
        state = SessionState(resolver)
        changes = []
        state.subscribe(lambda key, user: changes.append((key, user)))

        state.get("tok")
        resolver.user = _user(team_id="T1")
        refreshed = state.refresh("tok")

        assert refreshed.team_id == "T1"
        assert [user.team_id for _, user in changes] == [None, "T1"]
        assert changes[0][0] == token_key("tok")

    def test_unchanged_refresh_does_not_notify(self):
        state = SessionState(CountingResolver())
        changes = []
        state.subscribe(lambda key, user: changes.append(user))

        state.get("tok")
        state.refresh("tok")
        assert len(changes) == 1

    def test_refresh_with_invalid_token_clears_entry(self):
        resolver = CountingResolver()
        state = SessionState(resolver)
        state._store("bad", _user())
        changes = []
        state.subscribe(lambda key, user: changes.append(user))

        with pytest.raises(HTTPException):
            state.refresh("bad")
        assert state.peek("bad") is None
        assert changes == [None]

    def test_signed_out_event_clears_and_signed_in_stores(self):
        state = SessionState(CountingResolver())
        changes = []
        state.subscribe(lambda key, user: changes.append(user))

        state.handle_auth_event(SIGNED_IN, "tok", _user(team_id="T9"))
        assert state.peek("tok").team_id == "T9"

        assert state.handle_auth_event(SIGNED_OUT, "tok") is None
        assert state.peek("tok") is None
        assert changes[-1] is None

    def test_token_refreshed_event_resolves(self):
        resolver = CountingResolver()
        state = SessionState(resolver)

        user = state.handle_auth_event(TOKEN_REFRESHED, "tok")
        assert user.email == "a@example.com"
        assert resolver.calls == 1

    def test_unsubscribe_stops_notifications(self):
        state = SessionState(CountingResolver())
        changes = []
        unsubscribe = state.subscribe(lambda key, user: changes.append(user))
        unsubscribe()

        state.get("tok")
        assert changes == []

    def test_failing_listener_does_not_block_others(self):
        state = SessionState(CountingResolver())
        seen = []

        def broken(key, user):
            raise RuntimeError("listener bug")

        state.subscribe(broken)
        state.subscribe(lambda key, user: seen.append(user))

        state.get("tok")
        assert len(seen) == 1

    def test_max_size_bounds_the_cache(self):
        state = SessionState(CountingResolver(), max_size=1)
        state.get("one")
        state.get("two")

        assert state.peek("one") is not None
        assert state.peek("two") is None

    def test_load_returns_cached_user_immediately(self):
        resolver = CountingResolver()
        state = SessionState(resolver)
        state.get("tok")

        user, timed_out = asyncio.run(state.load("tok", timeout=1))
        assert user.email == "a@example.com"
        assert timed_out is False
        assert resolver.calls == 1

    def test_load_times_out_without_cancelling_resolution(self):
        release = threading.Event()

        def slow_resolver(token):
            release.wait(timeout=5)
            return _user(email="slow@example.com")

        state = SessionState(slow_resolver)

        async def scenario():
            user, timed_out = await state.load("tok", timeout=0.05)
            assert user is None
            assert timed_out is True

            release.set()
            for _ in range(200):
                if state.peek("tok") is not None:
                    break
                await asyncio.sleep(0.01)
            return state.peek("tok")

        late_user = asyncio.run(scenario())
        assert late_user is not None
        assert late_user.email == "slow@example.com"

    def test_load_propagates_resolution_errors(self):
        state = SessionState(CountingResolver())

        with pytest.raises(HTTPException) as exc:
            asyncio.run(state.load("bad", timeout=1))
        assert exc.value.status_code == 401
