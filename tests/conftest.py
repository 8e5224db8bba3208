import os
import shutil
from pathlib import Path
from typing import Dict, Optional

import pytest
from hypothesis import settings

from hgmirror_core.config import HgOptions
from hgmirror_core.vcs.hg_repository import HgRepository
from hgmirror_core.vcs.hg_revision import HgRevision

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("hgmirror-tests", database=None, deadline=None)
settings.load_profile("hgmirror-tests")

HG_AVAILABLE = shutil.which("hg") is not None

requires_hg = pytest.mark.skipif(not HG_AVAILABLE, reason="hg not installed")

TEST_USER = "Test User <test@example.com>"
HG_TEST_ENV = {"HGUSER": TEST_USER, "HGRCPATH": ""}


def commit_files(
    repo: HgRepository,
    message: str,
    files: Optional[Dict[str, Optional[str]]] = None,
    user: Optional[str] = None,
) -> str:
    """Write (or delete, when the content is None) files and commit them.

    Returns the new changeset's full id.
    """
    for rel, content in (files or {}).items():
        path = repo.path / rel
        if content is None:
            repo.simple_command("remove", rel)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    repo.simple_command("addremove")
    args = ["commit", "-m", message]
    if user:
        args += ["--user", user]
    repo.simple_command(*args)
    return repo.simple_command("log", "--rev", ".", "--template", "{node}").stdout.strip()


class FakeRepository:
    """In-memory stand-in for HgRepository used by checkout tests.

    ``clean_update`` rewrites the clone directory with the revision's files,
    leaving bookkeeping junk behind like a real working copy might.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self.trees: Dict[str, Dict[str, object]] = {}
        self.remote: Dict[str, Dict[str, object]] = {}
        self.pulled = []
        self.updates = []

    def add_revision(self, global_id: str, files: Dict[str, object], remote_only: bool = False) -> HgRevision:
        (self.remote if remote_only else self.trees)[global_id] = dict(files)
        return HgRevision(global_id)

    def has_revision(self, global_id: str) -> bool:
        return global_id in self.trees

    def pull_from_ref(self, url: str, reference: str) -> None:
        self.pulled.append((url, reference))
        if reference in self.remote:
            self.trees[reference] = self.remote.pop(reference)

    def clean_update(self, global_id: str) -> None:
        self.updates.append(global_id)
        for child in self.path.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        for rel, content in self.trees[global_id].items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, tuple):
                kind, value = content
                if kind == "link":
                    target.symlink_to(value)
                elif kind == "exec":
                    target.write_text(value, encoding="utf-8")
                    target.chmod(0o755)
            else:
                target.write_text(content, encoding="utf-8")
        (self.path / ".orig-junk").write_text("left by a previous merge", encoding="utf-8")

    def manifest(self, global_id: str):
        return sorted(self.trees[global_id])


def snapshot(root: Path) -> Dict[str, str]:
    """Relative path -> content (or '-> target' for symlinks) for every file below root."""
    out: Dict[str, str] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        if path.is_symlink():
            out[rel] = "-> " + os.readlink(path)
        elif path.is_file():
            out[rel] = path.read_text(encoding="utf-8")
    return out


@pytest.fixture
def fake_repo(tmp_path: Path) -> FakeRepository:
    return FakeRepository(tmp_path / "clone")


@pytest.fixture
def hg_options(tmp_path: Path) -> HgOptions:
    return HgOptions(executable="hg", storage_root=str(tmp_path / "storage"), timeout_seconds=120)


@pytest.fixture
def hg_remote(tmp_path: Path) -> HgRepository:
    if not HG_AVAILABLE:
        pytest.skip("hg not installed")
    return HgRepository(tmp_path / "remote", env=HG_TEST_ENV).init()
