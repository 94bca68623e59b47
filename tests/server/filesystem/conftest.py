import pytest

from fsgate.server.access import AccessGuard
from fsgate.server.filesystem import FileSystemService

SECRET = "test-secret"


@pytest.fixture
def workspace(tmp_path):
    """A directory registered as the only workspace root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def outside(tmp_path):
    """A directory next to the workspace, never registered as a root."""
    directory = tmp_path / "outside"
    directory.mkdir()
    (directory / "secret.txt").write_text("top secret")
    return directory


@pytest.fixture
def guard(workspace):
    guard = AccessGuard(secret=SECRET)
    guard.set_roots(SECRET, [workspace.as_uri()])
    return guard


@pytest.fixture
def service(guard):
    return FileSystemService(guard)
