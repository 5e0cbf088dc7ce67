"""Shared pytest fixtures for all tests."""

import bcrypt
import pytest
from fastapi.testclient import TestClient

from fragments.auth import HtpasswdAuthenticator
from fragments.main import create_app
from fragments.repositories.blob_store import FileBlobStore, MemoryBlobStore
from fragments.repositories.fragment_store import FragmentStore
from fragments.repositories.metadata_store import MemoryMetadataStore, SqliteMetadataStore

TEST_USERS = {
    "user1@email.com": "password1",
    "user2@email.com": "password2",
}


@pytest.fixture
def memory_store():
    """
    Fresh in-memory fragment store.
    """
    return FragmentStore(MemoryMetadataStore(), MemoryBlobStore())


@pytest.fixture
def sqlite_store(tmp_path):
    """
    Fragment store backed by a temporary SQLite file and payload directory.
    """
    return FragmentStore(
        SqliteMetadataStore(str(tmp_path / "fragments.db")),
        FileBlobStore(str(tmp_path / "payloads")),
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """
    Fragment store for each backend, so behaviour tests run against both.
    """
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def htpasswd_file(tmp_path):
    """
    Write an htpasswd file with bcrypt hashes for TEST_USERS.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to the htpasswd file
    """
    lines = ["# test users"]
    for username, password in TEST_USERS.items():
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4))
        lines.append(f"{username}:{password_hash.decode('utf-8')}")

    path = tmp_path / ".htpasswd"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def app(memory_store, htpasswd_file):
    """
    Application wired to an in-memory store and the test htpasswd file.
    """
    return create_app(
        store=memory_store,
        authenticator=HtpasswdAuthenticator.from_file(str(htpasswd_file)),
        api_url="http://fragments.test",
    )


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def user1():
    return ("user1@email.com", TEST_USERS["user1@email.com"])


@pytest.fixture
def user2():
    return ("user2@email.com", TEST_USERS["user2@email.com"])
