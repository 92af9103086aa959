"""
Test configuration and fixtures

- The real FastAPI app runs against an in-memory fake Supabase client
- get_supabase and the admin client dependencies are overridden per test
- Rate limiting is disabled so the suite never trips the default limit
"""
import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_admin_supabase, get_optional_admin_supabase
from app.database.supabase_client import get_supabase
from app.main import app
from tests.fakes import FakeSupabase


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def client(supabase):
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_admin_supabase] = lambda: supabase
    app.dependency_overrides[get_optional_admin_supabase] = lambda: supabase
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice(supabase):
    return supabase.create_account("alice@example.com")


@pytest.fixture
def bob(supabase):
    return supabase.create_account("bob@example.com")


@pytest.fixture
def carol(supabase):
    return supabase.create_account("carol@example.com")


@pytest.fixture
def make_repo(client):
    def create_repo(account, name="demo", is_public=False, **extra):
        response = client.post(
            "/repos",
            json={"name": name, "description": f"{name} repository", "is_public": is_public, **extra},
            headers=account.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return create_repo
