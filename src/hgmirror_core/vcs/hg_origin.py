"""Mercurial origin: reference resolution, history and checkout sessions."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import List, Mapping, Optional
from urllib.parse import quote

from ..authoring import Authoring
from ..config import HgOptions
from ..errors import check_not_empty
from .base import Change, PathFilter
from .checkout import CheckoutResult, checkout_revision
from .hg_log import HgLogEntry
from .hg_repository import HgRepository
from .hg_revision import HgRevision

logger = logging.getLogger(__name__)

DEFAULT_REF = "tip"


class HgOrigin:
    """A remote (or local) hg repository used as a migration source.

    Changesets are pulled into a backing clone kept under the configured
    storage root. Each instance owns its clone, so origins for the same URL
    can be used from different workers without locking.
    """

    def __init__(
        self,
        url: str,
        ref: Optional[str] = None,
        options: Optional[HgOptions] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.url = check_not_empty(url, "url")
        self.ref = ref
        self.options = options or HgOptions()
        self.env = dict(env or {})
        self._repository: Optional[HgRepository] = None
        self._clone_id = uuid.uuid4().hex[:12]

    @property
    def label_name(self) -> str:
        return f"HgOrigin{{url = {self.url}}}"

    def __repr__(self) -> str:
        return self.label_name

    @property
    def pull_source(self) -> str:
        """URL handed to ``hg pull``; local relative paths are made absolute."""
        if "://" not in self.url and Path(self.url).expanduser().exists():
            return str(Path(self.url).expanduser().resolve())
        return self.url

    @property
    def clone_path(self) -> Path:
        """Backing clone of this instance; origins for the same URL never share one."""
        return self.options.storage_path() / "hg_repos" / quote(self.url, safe="") / self._clone_id

    def get_repository(self) -> HgRepository:
        """Backing clone, created on first use."""
        if self._repository is None:
            repo = HgRepository(
                self.clone_path,
                executable=self.options.executable,
                timeout=self.options.timeout_seconds,
                env=self.env,
            )
            if not repo.exists():
                repo.init()
            self._repository = repo
        return self._repository

    def resolve(self, reference: Optional[str]) -> HgRevision:
        """Turn a bookmark, tag, branch, ``tip`` or (partial) hash into a revision.

        ``None`` means the origin's configured ref (``tip`` if unset).

        Raises:
            ValidationError: the reference is empty.
            CannotResolveRevisionError: no single changeset matches.
        """
        if reference is None:
            reference = self.ref if self.ref is not None else DEFAULT_REF
        check_not_empty(reference, "ref")
        repo = self.get_repository()
        repo.pull_all(self.pull_source)
        revision = repo.identify(reference)
        logger.info(f"Resolved {reference!r} to {revision.global_id} in {self.label_name}")
        return revision

    def new_reader(self, path_filter: PathFilter, authoring: Authoring) -> "HgReader":
        return HgReader(self, path_filter, authoring)


class HgReader:
    """Checkout and history session for one origin.

    Checkouts mutate the origin's backing clone, so calls on one reader must
    be sequential.
    """

    def __init__(self, origin: HgOrigin, path_filter: PathFilter, authoring: Authoring) -> None:
        self.origin = origin
        self.path_filter = path_filter
        self.authoring = authoring

    @property
    def repository(self) -> HgRepository:
        return self.origin.get_repository()

    def checkout(self, revision: HgRevision, work_dir: Path) -> CheckoutResult:
        return checkout_revision(
            self.repository,
            revision,
            Path(work_dir),
            self.path_filter,
            url=self.origin.pull_source,
        )

    def _ensure_present(self, revision: HgRevision) -> None:
        repo = self.repository
        if not repo.has_revision(revision.global_id):
            repo.pull_from_ref(self.origin.pull_source, revision.global_id)

    def find_log_entries(
        self,
        from_revision: Optional[HgRevision],
        to_revision: HgRevision,
        oldest_first: bool = False,
        limit: Optional[int] = None,
    ) -> List[HgLogEntry]:
        """Commits reachable from ``to_revision`` but not from ``from_revision``.

        Newest first unless ``oldest_first``; ``limit`` keeps the first N in
        that order. Each call queries hg again.
        """
        self._ensure_present(to_revision)
        expression = f"ancestors({to_revision.global_id})"
        if from_revision is not None:
            self._ensure_present(from_revision)
            expression += f" - ancestors({from_revision.global_id})"
        cmd = self.repository.log().with_reference_expression(expression)
        if oldest_first:
            cmd = cmd.oldest_first()
        if limit is not None:
            cmd = cmd.with_limit(limit)
        return cmd.run()

    def change(self, revision: HgRevision) -> Change:
        self._ensure_present(revision)
        entries = self.repository.log().with_reference_expression(revision.global_id).run()
        return self._to_change(entries[0], revision.reference)

    def changes(self, from_revision: Optional[HgRevision], to_revision: HgRevision) -> List[Change]:
        """Changes in ``(from_revision, to_revision]``, oldest first."""
        entries = self.find_log_entries(from_revision, to_revision, oldest_first=True)
        return [
            self._to_change(e, to_revision.reference if e.global_id == to_revision.global_id else None)
            for e in entries
        ]

    def _to_change(self, entry: HgLogEntry, reference: Optional[str] = None) -> Change:
        return Change(
            revision=HgRevision(entry.global_id, reference),
            author=self.authoring.resolve(entry.user),
            message=entry.description,
            date=entry.date,
            files=frozenset(entry.files),
            parents=tuple(HgRevision(p) for p in entry.parents),
            branch=entry.branch,
        )


def hg_origin(
    url: str,
    ref: Optional[str] = None,
    options: Optional[HgOptions] = None,
) -> HgOrigin:
    """Build an origin the way a configuration front-end does (``hg.origin(url = ...)``)."""
    return HgOrigin(url=url, ref=ref, options=options)
