"""
@file: conftest.py
@description:
This module provides pytest fixtures and configuration for the Cloude API test suite.

Fixtures include:
- An in-memory stand-in for the Supabase client surface the services use
  (table query builder, storage bucket, auth)
- A TestClient with the Supabase dependencies overridden
- A registered user with a valid bearer token
- Settings reset for every test

@dependencies:
- pytest: For test framework and fixtures
- fastapi.testclient: For testing FastAPI applications
- supabase: AuthError base class for rejected credentials

@notes:
- The fake supports only the builder calls the services make: select, insert,
  update, eq, is_, in_, order, limit, execute.
- `fail_on(table, operation)` makes the next matching execute() raise, to
  exercise error paths.
"""

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from supabase import AuthError

from cloude.core.config import settings
from cloude.db.supabase_client import get_supabase, get_supabase_admin
from cloude.main import app

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class RejectedCredentials(AuthError):
    """Raised by the fake auth for unknown tokens and bad passwords."""

    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._operation = "select"
        self._columns: Optional[List[str]] = None
        self._payload: Any = None
        self._filters: List[Any] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*"):
        self._operation = "select"
        if columns.strip() != "*":
            self._columns = [column.strip() for column in columns.split(",")]
        return self

    def insert(self, payload):
        self._operation = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._operation = "update"
        self._payload = payload
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def is_(self, column, value):
        if value == "null":
            self._filters.append(lambda row: row.get(column) is None)
        else:
            self._filters.append(lambda row: row.get(column) is value)
        return self

    def in_(self, column, values):
        allowed = list(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self._db.tables.setdefault(self._table, [])
        return [row for row in rows if all(check(row) for check in self._filters)]

    def execute(self):
        self._db.calls.append((self._table, self._operation))
        failure = (self._table, self._operation)
        if failure in self._db.failures:
            self._db.failures.remove(failure)
            raise RuntimeError(f"simulated {self._operation} failure on {self._table}")

        if self._operation == "insert":
            records = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = [self._db.add_row(self._table, record) for record in records]
            return SimpleNamespace(data=[dict(row) for row in inserted], count=None)

        matching = self._matching()

        if self._operation == "update":
            for row in matching:
                row.update(self._payload)
                row["updated_at"] = self._db.next_timestamp()
            return SimpleNamespace(data=[dict(row) for row in matching], count=None)

        if self._order:
            column, desc = self._order
            matching = sorted(matching, key=lambda row: row.get(column) or "", reverse=desc)
        if self._limit is not None:
            matching = matching[: self._limit]
        if self._columns:
            result = [{column: row.get(column) for column in self._columns} for row in matching]
        else:
            result = [dict(row) for row in matching]
        return SimpleNamespace(data=result, count=None)


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self._db = db
        self.name = name

    @property
    def objects(self) -> Dict[str, Dict[str, Any]]:
        return self._db.objects.setdefault(self.name, {})

    def upload(self, path, file, file_options=None):
        if "upload" in self._db.storage_failures:
            self._db.storage_failures.remove("upload")
            raise RuntimeError("simulated storage failure")
        options = file_options or {}
        if path in self.objects and options.get("upsert") != "true":
            raise RuntimeError("The resource already exists")
        self.objects[path] = {"content": file, "options": options}
        return SimpleNamespace(path=path, full_path=f"{self.name}/{path}")

    def remove(self, paths):
        for path in paths:
            self.objects.pop(path, None)
        return [{"name": path} for path in paths]

    def get_public_url(self, path, options=None):
        return f"https://test.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def create_signed_url(self, path, expires_in, options=None):
        url = f"https://test.supabase.co/storage/v1/object/sign/{self.name}/{path}?token=signed&expires={expires_in}"
        return {"signedURL": url, "signedUrl": url}


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self._db = db

    def from_(self, bucket):
        return FakeBucket(self._db, bucket)


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}

    def add_user(self, email: str, password: str = "secret123", user_id: Optional[str] = None) -> Dict[str, Any]:
        user_id = user_id or str(uuid.uuid4())
        token = f"token-{user_id}"
        self.users[email] = {"id": user_id, "email": email, "password": password}
        self.tokens[token] = email
        return {"id": user_id, "email": email, "token": token}

    def _user(self, email: str) -> SimpleNamespace:
        record = self.users[email]
        return SimpleNamespace(id=record["id"], email=record["email"])

    def _session(self, email: str) -> SimpleNamespace:
        token = f"token-{self.users[email]['id']}"
        self.tokens[token] = email
        return SimpleNamespace(access_token=token, expires_at=1_900_000_000)

    def get_user(self, jwt=None):
        if jwt not in self.tokens:
            raise RejectedCredentials("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self._user(self.tokens[jwt]))

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.users:
            raise RejectedCredentials("User already registered")
        self.add_user(email, credentials["password"])
        return SimpleNamespace(user=self._user(email), session=self._session(email))

    def sign_in_with_password(self, credentials):
        record = self.users.get(credentials["email"])
        if record is None or record["password"] != credentials["password"]:
            raise RejectedCredentials("Invalid login credentials")
        email = credentials["email"]
        return SimpleNamespace(user=self._user(email), session=self._session(email))


class FakeSupabase:
    """In-memory replacement for the Supabase client."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.failures: List[tuple] = []
        self.storage_failures: List[str] = []
        self.calls: List[tuple] = []
        self.auth = FakeAuth()
        self.storage = FakeStorage(self)
        self._clock = itertools.count()

    def next_timestamp(self) -> str:
        return (BASE_TIME + timedelta(seconds=next(self._clock))).isoformat()

    def add_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))
        now = self.next_timestamp()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        if table in ("files", "folders"):
            row.setdefault("is_deleted", False)
        if table == "files":
            row.setdefault("deleted_at", None)
        self.tables.setdefault(table, []).append(row)
        return row

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail_on(self, table: str, operation: str) -> None:
        self.failures.append((table, operation))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """
    Reset the settings the tests depend on; runs automatically for each test.
    """
    monkeypatch.setattr(settings, "APP_ENV", "test")
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", None)
    monkeypatch.setattr(settings, "STORAGE_BUCKET", "files")
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 50 * 1024 * 1024)
    monkeypatch.setattr(settings, "DEFAULT_STORAGE_LIMIT", 1000 * 1024 * 1024)
    monkeypatch.setattr(settings, "SIGNED_URL_EXPIRES_IN", 60)
    yield


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def test_client(fake_supabase):
    """
    TestClient with both Supabase clients replaced by the in-memory fake.
    """
    app.dependency_overrides[get_supabase_admin] = lambda: fake_supabase
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def user(fake_supabase):
    """A registered user: id, email and a valid access token."""
    return fake_supabase.auth.add_user("user@example.com")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def other_user(fake_supabase):
    return fake_supabase.auth.add_user("other@example.com")
