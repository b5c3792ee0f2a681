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

"""Build one commit in a remote object store without a working tree.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ begin(base_ref)         │ Look up the branch tip and its tree.        │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ stage(path, content)    │ Remember a file change. Nothing is sent.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ commit(message)         │ blobs → tree (on top of the base tree) →    │
    │                         │ commit. Returns a BuiltCommit. No branch    │
    │                         │ moves.                                      │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ publish(built, branch)  │ The ONLY call that moves a branch.          │
    └─────────────────────────┴─────────────────────────────────────────────┘

Ordering::

    resolve_ref ─▶ get_commit_tree ─▶ create_blob × N ─▶ create_tree
        ─▶ create_commit ─▶ (caller decides) ─▶ create_ref / update_ref

A release branch must never be reset to its base before the replacement
commit exists: a branch with zero commits over its base makes GitHub
auto-close the PR, and the later ref update does not reopen it.
:meth:`CommitBuilder.publish` only accepts a :class:`BuiltCommit`, which
only :meth:`CommitBuilder.commit` can produce, so the safe order is the
only one the API allows.

A commit that is built but never published is unreferenced and inert.

Usage::

    builder = CommitBuilder(store)
    await builder.begin('main')
    builder.stage('deno.json', new_manifest)
    built = await builder.commit('chore: release v1.1.0')
    await builder.publish(built, 'pls-release', force=True)
"""

from __future__ import annotations

from dataclasses import dataclass

from pls.backends import ContentStore
from pls.errors import E, PlsError, RefNotFound
from pls.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BaseCommit:
    """The commit a new commit is layered on.

    Attributes:
        ref: The branch name that was resolved.
        sha: Commit SHA the branch pointed at.
        tree_sha: Tree SHA of that commit.
    """

    ref: str
    sha: str
    tree_sha: str


@dataclass(frozen=True)
class BuiltCommit:
    """A commit that exists remotely but is not yet on any branch.

    Attributes:
        sha: The new commit's SHA.
        base_sha: Its sole parent.
        tree_sha: Its tree.
        message: Its message.
        paths: Files replaced relative to the base tree.
    """

    sha: str
    base_sha: str
    tree_sha: str
    message: str
    paths: tuple[str, ...]


class CommitBuilder:
    """Two-phase commit construction against a :class:`ContentStore`.

    Args:
        store: The remote store to write objects to.
    """

    def __init__(self, store: ContentStore) -> None:
        """Initialize with the remote store."""
        self._store = store
        self._base: BaseCommit | None = None
        self._staged: dict[str, str] = {}

    @property
    def base(self) -> BaseCommit | None:
        """The resolved base, once :meth:`begin` has run."""
        return self._base

    @property
    def staged_paths(self) -> list[str]:
        """Paths staged so far, in staging order."""
        return list(self._staged)

    async def begin(self, base_ref: str) -> BaseCommit:
        """Resolve ``base_ref`` and discard anything previously staged.

        Raises:
            RefNotFound: If the branch does not exist.
        """
        sha = await self._store.resolve_ref(base_ref)
        if sha is None:
            raise RefNotFound(base_ref)
        tree_sha = await self._store.get_commit_tree(sha)
        self._base = BaseCommit(ref=base_ref, sha=sha, tree_sha=tree_sha)
        self._staged = {}
        logger.debug('builder_begin', base_ref=base_ref, sha=sha[:7])
        return self._base

    def stage(self, path: str, content: str) -> None:
        """Hold ``content`` for ``path`` in memory. Later calls win."""
        if self._base is None:
            raise PlsError(
                code=E.BUILDER_STATE,
                message=f'Cannot stage {path!r} before begin()',
                hint='Call begin(base_ref) first.',
            )
        self._staged[path] = content

    async def commit(self, message: str) -> BuiltCommit:
        """Write blobs, a tree and a commit. Touches no branch ref.

        Raises:
            PlsError: If :meth:`begin` was not called or nothing is staged.
            RemoteStoreError: If any remote call fails. Objects written
                before the failure are left unreferenced.
        """
        base = self._base
        if base is None:
            raise PlsError(
                code=E.BUILDER_STATE,
                message='Cannot commit before begin()',
                hint='Call begin(base_ref) first.',
            )
        if not self._staged:
            raise PlsError(
                code=E.BUILDER_STATE,
                message='Nothing staged to commit',
                hint='Call stage(path, content) at least once.',
            )

        blobs: dict[str, str] = {}
        for path, content in self._staged.items():
            blobs[path] = await self._store.create_blob(content)
        tree_sha = await self._store.create_tree(base.tree_sha, blobs)
        sha = await self._store.create_commit(message, tree_sha, [base.sha])

        built = BuiltCommit(
            sha=sha,
            base_sha=base.sha,
            tree_sha=tree_sha,
            message=message,
            paths=tuple(blobs),
        )
        logger.info('commit_built', sha=sha[:7], base=base.sha[:7], files=len(blobs))
        return built

    async def publish(self, built: BuiltCommit, branch: str, *, force: bool = False) -> None:
        """Point ``branch`` at ``built``, creating the branch if needed."""
        existing = await self._store.resolve_ref(branch)
        if existing is None:
            await self._store.create_ref(branch, built.sha)
        else:
            await self._store.update_ref(branch, built.sha, force=force)
        logger.info('commit_published', branch=branch, sha=built.sha[:7], created=existing is None, force=force)


__all__ = [
    'BaseCommit',
    'BuiltCommit',
    'CommitBuilder',
]
