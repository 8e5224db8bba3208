"""Reconcile a working directory with the tree of an hg revision.

The backing clone is updated to the revision, then the external working
directory is made to match the clone's tracked files exactly, limited to the
paths accepted by a ``PathFilter``:

- filtered paths in the work dir that the revision does not track are removed
  (and directories emptied by that are pruned)
- filtered tracked paths are copied over unless the work dir already holds
  identical content
- paths outside the filter are never touched
"""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Set

from ..errors import CheckoutError, ExternalToolError
from .base import PathFilter
from .hg_repository import HgRepository
from .hg_revision import HgRevision

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Paths (workdir-relative POSIX) grouped by what the checkout did to them."""

    revision: HgRevision
    written: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.written or self.removed)


def checkout_revision(
    repository: HgRepository,
    revision: HgRevision,
    work_dir: Path,
    path_filter: PathFilter,
    url: str = "",
) -> CheckoutResult:
    """Make ``work_dir`` hold exactly the filtered tree of ``revision``.

    ``url`` is pulled from when the revision is missing from the clone.

    Raises:
        CheckoutError: hg or the filesystem failed; ``work_dir`` must then be
            treated as undefined until a checkout succeeds.
    """
    work_dir = Path(work_dir)
    if not work_dir.is_dir():
        raise CheckoutError(f"Working directory does not exist: {work_dir}")

    global_id = revision.global_id
    try:
        if not repository.has_revision(global_id):
            if not url:
                raise CheckoutError(f"Revision {global_id} is not present in {repository.path}")
            repository.pull_from_ref(url, global_id)
        repository.clean_update(global_id)
        tracked = repository.manifest(global_id)
    except ExternalToolError as e:
        raise CheckoutError(f"Cannot check out {revision}: {e}") from e

    wanted = {p for p in tracked if path_filter.matches(p)}
    result = CheckoutResult(revision=revision)
    try:
        _remove_stale(work_dir, wanted, path_filter, result)
        for rel in sorted(wanted):
            _materialize(repository.path, work_dir, rel, result)
    except OSError as e:
        raise CheckoutError(f"Cannot reconcile {work_dir} with {revision}: {e}") from e

    logger.info(
        f"Checked out {revision} into {work_dir}: {len(result.written)} written, "
        f"{len(result.removed)} removed, {len(result.unchanged)} unchanged"
    )
    return result


def _walk_files(root: Path) -> Iterator[str]:
    """Yield relative POSIX paths of files and symlinks below ``root``."""
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        # symlinks to directories are entries, not subtrees
        for name in list(dirnames):
            if (base / name).is_symlink():
                dirnames.remove(name)
                filenames.append(name)
        for name in filenames:
            yield (base / name).relative_to(root).as_posix()


def _remove_stale(work_dir: Path, wanted: Set[str], path_filter: PathFilter, result: CheckoutResult) -> None:
    emptied: Set[Path] = set()
    for rel in sorted(_walk_files(work_dir)):
        if rel in wanted or not path_filter.matches(rel):
            continue
        target = work_dir / rel
        logger.debug(f"Removing {rel}")
        target.unlink()
        result.removed.append(rel)
        emptied.add(target.parent)

    # prune directories emptied above, deepest first, never work_dir itself
    for directory in sorted(emptied, key=lambda p: len(p.parts), reverse=True):
        current = directory
        while current != work_dir and work_dir in current.parents:
            try:
                current.rmdir()
            except OSError:
                break
            current = current.parent


def _is_executable(path: Path) -> bool:
    return bool(path.lstat().st_mode & stat.S_IXUSR)


def _same_content(source: Path, target: Path) -> bool:
    if source.is_symlink() or target.is_symlink():
        return (
            source.is_symlink()
            and target.is_symlink()
            and os.readlink(source) == os.readlink(target)
        )
    if not target.is_file():
        return False
    if _is_executable(source) != _is_executable(target):
        return False
    return filecmp.cmp(source, target, shallow=False)


def _clear_path_for(work_dir: Path, rel: str) -> None:
    """Remove entries that would block creating the file ``rel``."""
    parent = work_dir
    for part in PurePosixPath(rel).parent.parts:
        parent = parent / part
        if parent.is_symlink() or parent.is_file():
            parent.unlink()
    target = work_dir / rel
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)


def _materialize(clone: Path, work_dir: Path, rel: str, result: CheckoutResult) -> None:
    source = clone / rel
    target = work_dir / rel
    if not source.is_symlink() and not source.exists():
        raise CheckoutError(f"Tracked file {rel} is missing from the clone working copy {clone}")

    _clear_path_for(work_dir, rel)
    if target.exists() or target.is_symlink():
        if _same_content(source, target):
            result.unchanged.append(rel)
            return
        target.unlink()

    target.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Writing {rel}")
    shutil.copy2(source, target, follow_symlinks=False)
    result.written.append(rel)
