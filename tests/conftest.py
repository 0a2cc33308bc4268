from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from dynaform.app import create_app
from dynaform.config import Settings
from dynaform.schema import load_form_schema
from dynaform.store import SubmissionStore


class FakeClock:
    """Returns a timestamp one minute later on every call."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


@pytest.fixture
def schema():
    return load_form_schema()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(schema, clock):
    return SubmissionStore(schema, clock=clock)


@pytest.fixture
def valid_payload():
    return {
        "fullName": "Jane Doe",
        "email": "jane@example.com",
        "age": 30,
        "department": "engineering",
        "skills": ["Python", "React"],
        "joiningDate": "2024-02-01",
        "notes": "Starts on Monday",
        "isRemote": True,
    }


@pytest.fixture
def app(store):
    return create_app(Settings(), store=store)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
