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

"""Local ``git`` commit source.

:class:`GitCommitSource` implements :class:`~pls.backends.CommitSource`
by reading ``git log`` through :func:`~pls.backends._run.run_command`.
Blocking subprocess calls are dispatched to ``asyncio.to_thread()``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from pls.backends._run import CommandResult, run_command
from pls.commit_parsing import Commit
from pls.errors import RefNotFound
from pls.logging import get_logger

log = get_logger('pls.backends.git')

# Unit and record separators keep multi-line bodies intact.
_FIELD_SEP = '\x1f'
_RECORD_SEP = '\x1e'
_LOG_FORMAT = '%H%x1f%an%x1f%aI%x1f%B%x1e'


def parse_log_output(output: str) -> list[Commit]:
    """Split ``git log`` output written with the record format into commits."""
    commits: list[Commit] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip('\n')
        if not record:
            continue
        parts = record.split(_FIELD_SEP, 3)
        if len(parts) != 4:
            log.warning('git_log_record_skipped', record=record[:80])
            continue
        sha, author, date, message = parts
        commits.append(Commit(sha=sha, message=message.strip(), author=author, date=date))
    return commits


class GitCommitSource:
    """Commit source backed by a local clone.

    Args:
        repo_root: Path to the git repository root.
    """

    def __init__(self, repo_root: Path) -> None:
        """Initialize with the git repository root path."""
        self._root = repo_root

    def _git(self, *args: str) -> CommandResult:
        """Run a git command synchronously (called via to_thread)."""
        return run_command(['git', *args], cwd=self._root)

    async def commits_since(self, since: str | None, *, until: str) -> list[Commit]:
        """Return commits after ``since`` up to ``until``, oldest first.

        Raises:
            RefNotFound: If git cannot resolve the range.
        """
        revision = f'{since}..{until}' if since else until
        result = await asyncio.to_thread(self._git, 'log', '--reverse', f'--pretty=format:{_LOG_FORMAT}', revision)
        if not result.ok:
            raise RefNotFound(revision)
        commits = parse_log_output(result.stdout)
        log.debug('commits_fetched', since=since, until=until, count=len(commits))
        return commits


__all__ = [
    'GitCommitSource',
    'parse_log_output',
]
