"""Shared fixtures for commitgen tests."""

import pytest
from git import Repo


@pytest.fixture
def temp_repo(tmp_path):
    """Create a temporary git repository for testing."""
    repo = Repo.init(tmp_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()
    repo.config_writer().set_value("commit", "gpgsign", "false").release()

    return repo


@pytest.fixture
def repo_with_commit(temp_repo, tmp_path):
    """Create a repo with an initial commit."""
    test_file = tmp_path / "initial.txt"
    test_file.write_text("initial content\n")
    temp_repo.index.add(["initial.txt"])
    temp_repo.index.commit("Initial commit")

    return temp_repo


@pytest.fixture
def staged_change(repo_with_commit, tmp_path):
    """A repo with one modified and one new TypeScript file staged."""
    (tmp_path / "initial.txt").write_text("initial content\nmore content\n")
    src = tmp_path / "src"
    src.mkdir()
    (src / "auth.ts").write_text("export function validateEmail(email) {\n  return email.includes('@');\n}\n")
    repo_with_commit.git.add(".")

    return repo_with_commit
