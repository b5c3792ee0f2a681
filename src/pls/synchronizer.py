# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Keep the release branch and release PR in step with the chosen version.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Release PR              │ One long-lived PR from ``pls-release`` into │
    │                         │ the base branch. Merging it ships.          │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Effective version       │ What gets written. A box a human ticked in  │
    │                         │ the PR beats the version computed from      │
    │                         │ commits.                                    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Regenerate, not diff    │ Title, body and branch commit are rebuilt   │
    │                         │ from scratch every run.                     │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ SyncResult              │ What happened: no-op, created, updated or   │
    │                         │ failed, plus the PR and versions involved.  │
    └─────────────────────────┴─────────────────────────────────────────────┘

Per-run flow::

    find_open_pr(release_branch)
         │
         ├── found ──▶ parse options in body ──▶ ticked box wins
         │
         ▼
    options + changelog + debug log ──▶ new body
         │
         ▼
    CommitBuilder: begin(base) → stage files → commit   (no ref moved yet)
         │
         ▼
    publish(built, release_branch, force=True)          (only ref move)
         │
         ├── no PR ──▶ create_pr ──▶ CREATED
         └── PR    ──▶ update_pr ──▶ comment if selection changed ──▶ UPDATED

The branch is always rebuilt from the base tip and only moved once the
new commit exists, so GitHub never sees a release branch with zero
commits over base and never auto-closes the PR.

Usage::

    from pls.synchronizer import ReleaseSynchronizer

    sync = ReleaseSynchronizer(config, store, notifier=store)
    result = await sync.run(sync.prepare(commit_source))
    if result.ok:
        print(result.status, result.pr.url)
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, replace
from enum import Enum

from pls.backends import CommitSource, ContentStore, Notifier, PullRequest
from pls.changelog import generate_changelog
from pls.commit_builder import BuiltCommit, CommitBuilder
from pls.config import SyncConfig
from pls.debug_log import DebugEntry, append_debug_entry, make_entry, parse_debug_log, render_debug_log
from pls.errors import E, PlsError, RefNotFound
from pls.logging import bind_repository, get_logger
from pls.options import VersionOption, generate_options, parse_options, selected_version
from pls.pr_body import generate_pr_body, pr_title, selection_changed_comment, update_pr_body_selection
from pls.prerelease import is_valid_version
from pls.release_files import build_release_files, read_json_version
from pls.release_metadata import ReleaseMetadata, extract_version
from pls.versioning import VersionBump, calculate_bump, commits_after_release, filter_releasable, infer_bump_type
from pls.versions import VersionsManifest

logger = get_logger(__name__)

INITIAL_VERSION = '0.0.0'


class SyncStatus(str, Enum):
    """Terminal state of one synchronization run."""

    NOOP = 'no-op'
    CREATED = 'created'
    UPDATED = 'updated'
    FAILED = 'failed'


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one synchronization run.

    Attributes:
        status: Terminal state.
        pr: The release PR, when one exists or was created.
        version: Effective version written (or that would be written).
        previous_version: Version the PR title carried before this run.
        commit_sha: SHA of the published release commit.
        selection_changed: Whether the effective version differs from
            the one the PR previously advertised.
        dry_run: Whether nothing was written.
        error: The error that failed the run.
    """

    status: SyncStatus
    pr: PullRequest | None = None
    version: str = ''
    previous_version: str = ''
    commit_sha: str = ''
    selection_changed: bool = False
    dry_run: bool = False
    error: PlsError | None = None

    @property
    def ok(self) -> bool:
        """Whether the run did not fail."""
        return self.status is not SyncStatus.FAILED


class ReleaseSynchronizer:
    """Orchestrates one release PR.

    Args:
        config: Resolved settings.
        store: Remote object store and PR API.
        notifier: Where to post selection-change comments. ``None``
            disables comments.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: ContentStore,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize with configuration and backends."""
        self._config = config
        self._store = store
        self._notifier = notifier

    async def run(self, operation: Awaitable[SyncResult]) -> SyncResult:
        """Await ``operation``, turning a raised :class:`PlsError` into FAILED."""
        with bind_repository(self._config.owner, self._config.repo):
            try:
                return await operation
            except PlsError as exc:
                logger.error('sync_failed', code=exc.code.value, error=exc.info.message)
                return SyncResult(status=SyncStatus.FAILED, error=exc)

    # ── Version state on the base branch ──

    async def _read_manifest(self, ref: str) -> VersionsManifest | None:
        raw = await self._store.read_file(self._config.versions_file, ref)
        if raw is None:
            return None
        return VersionsManifest.parse(raw, self._config.versions_file)

    async def current_version(self, ref: str) -> tuple[str, str | None]:
        """Return the released version at ``ref`` and its anchor SHA.

        The versions manifest is authoritative. Without one, the first
        project manifest carrying a ``version`` is used, then
        :data:`INITIAL_VERSION`.
        """
        manifest = await self._read_manifest(ref)
        if manifest is not None and manifest.root is not None:
            return manifest.root.version, manifest.root.sha

        for path in self._config.manifest_files:
            content = await self._store.read_file(path, ref)
            version = read_json_version(content) if content is not None else None
            if version:
                return version, None
        return INITIAL_VERSION, None

    # ── Building and publishing ──

    async def _build_and_publish(self, metadata: ReleaseMetadata, branch: str) -> BuiltCommit:
        """Commit release files on the base tip, then move ``branch`` to it."""
        builder = CommitBuilder(self._store)
        base = await builder.begin(self._config.base_branch)
        files = await build_release_files(
            self._store,
            base.sha,
            metadata,
            manifest_files=self._config.manifest_files,
            versions_file=self._config.versions_file,
        )
        for path, content in files.files.items():
            builder.stage(path, content)
        built = await builder.commit(files.commit_message)
        # Force: the new commit replaces the previous release commit.
        await builder.publish(built, branch, force=True)
        return built

    async def _notify(self, pr: PullRequest, old_version: str, new_version: str) -> None:
        """Post a selection-change comment. Failures are logged, not raised."""
        if self._notifier is None or not self._config.notify_on_change:
            return
        try:
            await self._notifier.comment(pr.number, selection_changed_comment(old_version, new_version))
        except PlsError as exc:
            logger.warning('notify_failed', pr=pr.number, error=exc.info.message)

    # ── Entry points ──

    async def synchronize(
        self,
        bump: VersionBump,
        changelog: str = '',
        *,
        debug_entry: DebugEntry | None = None,
        dry_run: bool = False,
    ) -> SyncResult:
        """Create or update the release PR for ``bump``.

        A selection a human made in an existing PR's options block takes
        precedence over ``bump.to_version``.

        Raises:
            RefNotFound: If the base branch does not exist.
            RemoteStoreError: If any remote call fails.
        """
        branch = self._config.release_branch
        existing = await self._store.find_open_pr(branch)
        previous_body = existing.body if existing else ''
        previous_version = (extract_version(existing.title) or '') if existing else ''

        effective = _effective_bump(bump, previous_body)
        if effective.to_version != bump.to_version:
            logger.info('selection_preserved', computed=bump.to_version, selected=effective.to_version)

        body = generate_pr_body(effective.to_version, changelog, _menu(effective, bump))
        body += render_debug_log(parse_debug_log(previous_body))
        if debug_entry is not None and self._config.debug_log:
            body = append_debug_entry(body, debug_entry)
        title = pr_title(effective.to_version)
        selection_changed = existing is not None and previous_version != effective.to_version

        if dry_run:
            status = SyncStatus.UPDATED if existing else SyncStatus.CREATED
            logger.info(
                'dry_run_sync',
                status=status.value,
                title=title,
                branch=branch,
                base=self._config.base_branch,
            )
            return SyncResult(
                status=status,
                pr=existing,
                version=effective.to_version,
                previous_version=previous_version,
                selection_changed=selection_changed,
                dry_run=True,
            )

        metadata = ReleaseMetadata(
            version=effective.to_version,
            from_version=effective.from_version,
            type=effective.type,
        )
        built = await self._build_and_publish(metadata, branch)

        if existing is None:
            pr = await self._store.create_pr(title=title, body=body, head=branch, base=self._config.base_branch)
            logger.info('release_pr_created', pr=pr.number, version=effective.to_version)
            return SyncResult(
                status=SyncStatus.CREATED,
                pr=pr,
                version=effective.to_version,
                commit_sha=built.sha,
            )

        pr = await self._store.update_pr(existing.number, title=title, body=body)
        logger.info('release_pr_updated', pr=pr.number, version=effective.to_version)
        if selection_changed and previous_version:
            await self._notify(pr, previous_version, effective.to_version)
        return SyncResult(
            status=SyncStatus.UPDATED,
            pr=pr,
            version=effective.to_version,
            previous_version=previous_version,
            commit_sha=built.sha,
            selection_changed=selection_changed,
        )

    async def prepare(self, commit_source: CommitSource, *, dry_run: bool = False) -> SyncResult:
        """Compute the next release from history and synchronize it.

        Reads the versions manifest on the base branch and collects commits
        since its ``sha`` anchor. The anchor can predate the merged release
        commit, so history is cut after the newest commit that released the
        current version. Remaining release and merge commits are dropped
        and the bump is handed to :meth:`synchronize`.

        Returns:
            ``NOOP`` when there is nothing to release.
        """
        base_sha = await self._store.resolve_ref(self._config.base_branch)
        if base_sha is None:
            raise RefNotFound(self._config.base_branch)

        current, anchor = await self.current_version(base_sha)
        history = await commit_source.commits_since(anchor, until=base_sha)
        commits = filter_releasable(commits_after_release(history, current))
        bump = calculate_bump(current, commits, major_on_zero=self._config.major_on_zero)
        if bump is None:
            logger.info('nothing_to_release', version=current, anchor=anchor)
            return SyncResult(status=SyncStatus.NOOP, version=current, dry_run=dry_run)

        entry = make_entry(
            'pls prep',
            {
                'base': f'{self._config.base_branch}@{base_sha[:7]}',
                'from': bump.from_version,
                'computed': bump.to_version,
                'type': bump.type.value,
                'commits': len(commits),
            },
        )
        return await self.synchronize(bump, generate_changelog(commits), debug_entry=entry, dry_run=dry_run)

    async def sync_selection(self, pr_number: int, *, dry_run: bool = False) -> SyncResult:
        """Re-apply whatever is selected in PR ``pr_number``'s description.

        Returns:
            ``NOOP`` when the selection already matches the PR title.

        Raises:
            PlsError: If the PR does not exist or has no options block.
        """
        pr = await self._store.get_pr(pr_number)
        if pr is None:
            raise PlsError(code=E.PR_NOT_FOUND, message=f'Pull request #{pr_number} does not exist')

        selected = selected_version(pr.body)
        if selected is None:
            raise PlsError(
                code=E.PR_OPTIONS_MISSING,
                message=f'Could not find a selected version in PR #{pr_number}',
                hint='The PR may not have been created by pls, or the options block was removed.',
            )

        previous_version = extract_version(pr.title) or ''
        if selected == previous_version:
            logger.info('selection_unchanged', pr=pr_number, version=selected)
            return SyncResult(
                status=SyncStatus.NOOP,
                pr=pr,
                version=selected,
                previous_version=previous_version,
                dry_run=dry_run,
            )

        current, _ = await self.current_version(self._config.base_branch)
        bump_type = infer_bump_type(current, selected)
        title = pr_title(selected)

        if dry_run:
            logger.info('dry_run_sync_selection', pr=pr_number, title=title, type=bump_type.value)
            return SyncResult(
                status=SyncStatus.UPDATED,
                pr=pr,
                version=selected,
                previous_version=previous_version,
                selection_changed=True,
                dry_run=True,
            )

        metadata = ReleaseMetadata(version=selected, from_version=current, type=bump_type)
        built = await self._build_and_publish(metadata, pr.branch)

        body = update_pr_body_selection(pr.body, selected)
        if self._config.debug_log:
            body = append_debug_entry(
                body,
                make_entry('pls pr sync', {'from': previous_version or 'unknown', 'to': selected, 'type': bump_type.value}),
            )
        updated = await self._store.update_pr(pr_number, title=title, body=body)
        logger.info('release_pr_synced', pr=pr_number, version=selected)
        if previous_version:
            await self._notify(updated, previous_version, selected)

        return SyncResult(
            status=SyncStatus.UPDATED,
            pr=updated,
            version=selected,
            previous_version=previous_version,
            commit_sha=built.sha,
            selection_changed=True,
        )


def _effective_bump(bump: VersionBump, previous_body: str) -> VersionBump:
    """Apply a human's selection from ``previous_body`` to ``bump``."""
    parsed = parse_options(previous_body)
    if parsed is None or parsed.selected is None:
        return bump
    chosen = parsed.selected.version
    if chosen == bump.to_version:
        return bump
    if not is_valid_version(chosen):
        logger.warning('selection_ignored', selected=chosen, reason='not a valid version')
        return bump
    return replace(bump, to_version=chosen, type=infer_bump_type(bump.from_version, chosen))


def _menu(effective: VersionBump, computed: VersionBump) -> list[VersionOption]:
    """Options for ``effective``, keeping the computed target reachable."""
    options = generate_options(effective)
    if all(opt.version != computed.to_version for opt in options):
        label = computed.type.value
        options.insert(1, VersionOption(version=computed.to_version, type=label, label=label))
    return options


__all__ = [
    'INITIAL_VERSION',
    'ReleaseSynchronizer',
    'SyncResult',
    'SyncStatus',
]
