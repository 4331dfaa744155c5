"""Pytest configuration and fixtures"""

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.config.settings import settings
from app.core import dependencies
from app.core.dependencies import build_resolver, get_auth_service, get_session_state
from app.core.limiter import limiter
from app.core.session import SessionState
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.auth.service import AuthService
from app.modules.follows.service import reset_follow_sets
from app.modules.invites.routes import get_invite_service
from app.modules.invites.service import InviteService

# Composite keys the store enforces
UNIQUE_KEYS = {
    "follows": ("follower_team_id", "following_team_id"),
}

_clock = itertools.count()
_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _timestamp() -> str:
    return (_EPOCH + timedelta(seconds=next(_clock))).isoformat()


class FakeQuery:
    """Chainable stand-in for the PostgREST request builder"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*"):
        self.op, self.columns = "select", columns
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict="id"):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def execute(self):
        self.db.calls.append((self.table, self.op))
        failure = self.db.failures.get((self.table, self.op))
        if failure:
            raise APIError(failure)
        rows = self.db.tables.setdefault(self.table, [])
        handler = getattr(self, f"_{self.op}")
        return SimpleNamespace(data=handler(rows))

    def _matching(self, rows):
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _select(self, rows):
        result = [dict(row) for row in self._matching(rows)]
        if "teams" in self.columns and self.table == "posts":
            teams = {t["id"]: t for t in self.db.tables.get("teams", [])}
            joined = []
            for row in result:
                team = teams.get(row.get("team_id"))
                if team is None:
                    continue
                row["teams"] = {"name": team["name"], "avatar_url": team.get("avatar_url")}
                joined.append(row)
            result = joined
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.limit_n is not None:
            result = result[:self.limit_n]
        return result

    def _insert(self, rows):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        created = []
        for item in payload:
            row = dict(item)
            key = UNIQUE_KEYS.get(self.table)
            if key and any(all(r.get(k) == row.get(k) for k in key) for r in rows):
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{self.table}_pkey"',
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })
            if key is None:
                row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", _timestamp())
            rows.append(row)
            created.append(dict(row))
        return created

    def _upsert(self, rows):
        row = dict(self.payload)
        for existing in rows:
            if existing.get(self.on_conflict) == row.get(self.on_conflict):
                existing.update(row)
                return [dict(existing)]
        row.setdefault("created_at", _timestamp())
        rows.append(row)
        return [dict(row)]

    def _update(self, rows):
        updated = []
        for row in self._matching(rows):
            row.update(self.payload)
            updated.append(dict(row))
        return updated

    def _delete(self, rows):
        doomed = self._matching(rows)
        self.db.tables[self.table] = [row for row in rows if row not in doomed]
        return [dict(row) for row in doomed]


class FakeAuth:
    """Stand-in for the Supabase Auth client"""

    def __init__(self):
        self.accounts = {}
        self.tokens = {}
        self.sign_up_error = None
        self.admin = SimpleNamespace(sign_out=self._admin_sign_out)

    def create_account(self, email, password):
        user_id = str(uuid.uuid4())
        self.accounts[email] = {"id": user_id, "email": email, "password": password}
        return user_id, self._issue_token(user_id)

    def _issue_token(self, user_id):
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = user_id
        return token

    def _user(self, user_id):
        account = next(a for a in self.accounts.values() if a["id"] == user_id)
        return SimpleNamespace(id=account["id"], email=account["email"], user_metadata={}, app_metadata={})

    def sign_up(self, credentials):
        if self.sign_up_error:
            raise Exception(self.sign_up_error)
        if credentials["email"] in self.accounts:
            raise Exception("User already registered")
        user_id, token = self.create_account(credentials["email"], credentials["password"])
        return SimpleNamespace(user=self._user(user_id), session=SimpleNamespace(access_token=token))

    def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        token = self._issue_token(account["id"])
        return SimpleNamespace(user=self._user(account["id"]), session=SimpleNamespace(access_token=token))

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self._user(self.tokens[jwt]))

    def _admin_sign_out(self, jwt, scope="global"):
        self.tokens.pop(jwt, None)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, message="connection reset by peer", code="08006"):
        """Make every (table, op) request fail the way PostgREST reports errors"""
        self.failures[(table, op)] = {"message": message, "code": code, "hint": None, "details": None}

    def rows(self, table):
        return self.tables.get(table, [])

    def seed(self, table, **row):
        if table not in UNIQUE_KEYS:
            row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _timestamp())
        self.tables.setdefault(table, []).append(row)
        return row

    def writes(self):
        return [call for call in self.calls if call[1] != "select"]


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def auth_service(supabase):
    return AuthService(supabase, auth_client_factory=lambda: supabase)


@pytest.fixture
def invite_service(supabase, auth_service):
    return InviteService(supabase, auth_service=auth_service)


@pytest.fixture
def session_state(supabase):
    return SessionState(build_resolver(supabase))


@pytest.fixture
def make_member(supabase):
    """Create an account with a team and profile; returns its ids and token"""
    def factory(email=None, password="secret1", team_name=None, with_team=True):
        email = email or f"member-{uuid.uuid4().hex[:8]}@example.com"
        user_id, token = supabase.auth.create_account(email, password)
        team_id = None
        if with_team:
            team = supabase.seed("teams", name=team_name or f"Team {uuid.uuid4().hex[:6]}")
            team_id = team["id"]
        supabase.seed("profiles", id=user_id, team_id=team_id, role="member", invited_by=None)
        return SimpleNamespace(id=user_id, email=email, token=token, team_id=team_id)
    return factory


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch):
    reset_follow_sets()
    monkeypatch.setattr(dependencies, "_session_state", None)
    monkeypatch.setattr(settings, "superuser_email", "boss@example.com")
    yield
    reset_follow_sets()


@pytest.fixture
def client(supabase, auth_service, invite_service, session_state):
    """Test client wired to the fake Supabase project"""
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_invite_service] = lambda: invite_service
    app.dependency_overrides[get_session_state] = lambda: session_state
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()
