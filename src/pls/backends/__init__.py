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

"""Backend protocols for pls.

The release engine talks to the outside world through three narrow
async protocols:

- :class:`ContentStore`: the remote content-addressed object store plus
  pull requests (refs, blobs, trees, commits, PRs).
- :class:`Notifier`: posts human-readable text to a PR thread.
- :class:`CommitSource`: yields commits since a reference point.

Implementations:

- :class:`~pls.backends.github.GitHubStore`: GitHub REST API (all three)
- :class:`~pls.backends.git.GitCommitSource`: local ``git`` CLI
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pls.commit_parsing import Commit


@dataclass(frozen=True)
class PullRequest:
    """A pull request as seen by pls.

    Attributes:
        number: PR number.
        url: Web URL of the PR.
        title: Current title.
        branch: Head branch name.
        body: Description markdown.
    """

    number: int
    url: str
    title: str
    branch: str
    body: str = ''


@runtime_checkable
class ContentStore(Protocol):
    """Remote object store and pull request operations.

    Lookups return ``None`` for things that do not exist. Every other
    failure raises :class:`~pls.errors.RemoteStoreError`.
    """

    async def resolve_ref(self, branch: str) -> str | None:
        """Return the commit SHA ``branch`` points at, or ``None``."""
        ...

    async def get_commit_tree(self, sha: str) -> str:
        """Return the tree SHA of commit ``sha``."""
        ...

    async def read_file(self, path: str, ref: str) -> str | None:
        """Return the text of ``path`` at ``ref``, or ``None``."""
        ...

    async def create_blob(self, content: str) -> str:
        """Store ``content`` and return the blob SHA."""
        ...

    async def create_tree(self, base_tree: str, blobs: dict[str, str]) -> str:
        """Create a tree layering ``path → blob SHA`` over ``base_tree``."""
        ...

    async def create_commit(self, message: str, tree: str, parents: list[str]) -> str:
        """Create a commit object and return its SHA. Touches no ref."""
        ...

    async def create_ref(self, branch: str, sha: str) -> None:
        """Create ``refs/heads/<branch>`` pointing at ``sha``."""
        ...

    async def update_ref(self, branch: str, sha: str, *, force: bool = False) -> None:
        """Move ``refs/heads/<branch>`` to ``sha``."""
        ...

    async def find_open_pr(self, branch: str) -> PullRequest | None:
        """Return the open PR whose head is ``branch``, or ``None``."""
        ...

    async def get_pr(self, number: int) -> PullRequest | None:
        """Return PR ``number``, or ``None``."""
        ...

    async def create_pr(self, *, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request."""
        ...

    async def update_pr(self, number: int, *, title: str | None = None, body: str | None = None) -> PullRequest:
        """Patch a pull request's title and/or body."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Posts human-readable messages to a PR thread."""

    async def comment(self, pr_number: int, body: str) -> None:
        """Add a comment to PR ``pr_number``."""
        ...


@runtime_checkable
class CommitSource(Protocol):
    """Yields commits since a reference point."""

    async def commits_since(self, since: str | None, *, until: str) -> list[Commit]:
        """Return commits reachable from ``until`` but not from ``since``.

        Args:
            since: Exclusive lower bound (commit SHA). ``None`` means
                the whole history of ``until``.
            until: Inclusive upper bound (branch name or SHA).

        Returns:
            Commits oldest first.
        """
        ...


__all__ = [
    'CommitSource',
    'ContentStore',
    'Notifier',
    'PullRequest',
]
