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

"""GitHub REST API backend for pls.

Implements :class:`~pls.backends.ContentStore`,
:class:`~pls.backends.Notifier` and :class:`~pls.backends.CommitSource`
over the GitHub REST API v3 via ``httpx``. Only the git database
endpoints are used to write, so no working tree or ``git`` binary is
needed:

    ┌──────────────────────┬──────────────────────────────────────────────┐
    │ Operation            │ Endpoint                                     │
    ├──────────────────────┼──────────────────────────────────────────────┤
    │ resolve_ref          │ GET   /git/ref/heads/{branch}               │
    │ get_commit_tree      │ GET   /git/commits/{sha}                    │
    │ read_file            │ GET   /contents/{path}?ref=                 │
    │ create_blob          │ POST  /git/blobs                            │
    │ create_tree          │ POST  /git/trees        (base_tree)         │
    │ create_commit        │ POST  /git/commits                          │
    │ create_ref           │ POST  /git/refs                             │
    │ update_ref           │ PATCH /git/refs/heads/{branch}              │
    │ find_open_pr         │ GET   /pulls?head=owner:branch&state=open   │
    │ get/create/update_pr │ GET/POST/PATCH /pulls[/{number}]            │
    │ comment              │ POST  /issues/{number}/comments             │
    │ commits_since        │ GET   /compare/{since}...{until}            │
    │                      │ GET   /commits?sha=&page=  (no anchor)      │
    └──────────────────────┴──────────────────────────────────────────────┘

Lookups answer ``None`` on 404. Any other non-2xx answer raises
:class:`~pls.errors.RemoteStoreError` carrying the status and body.

Usage::

    from pls.backends.github import GitHubStore

    store = GitHubStore(owner='denoland', repo='pls', token=token)
    sha = await store.resolve_ref('main')
"""

from __future__ import annotations

import base64
import binascii
from typing import Any
from urllib.parse import quote

import httpx

from pls.backends import PullRequest
from pls.commit_parsing import Commit
from pls.config import SyncConfig
from pls.errors import E, PlsError, RemoteStoreError
from pls.logging import get_logger
from pls.net import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT, MAX_RETRIES, http_client, request_with_retry
from pls.release_metadata import is_release_commit

log = get_logger('pls.backends.github')

# GitHub REST API base URL.
_DEFAULT_BASE_URL = 'https://api.github.com'

# API version header for stable API behavior.
_API_VERSION = '2022-11-28'

# Regular file mode for tree entries.
_FILE_MODE = '100644'

_PAGE_SIZE = 100
_MAX_PAGES = 10


class GitHubStore:
    """Remote store, notifier and commit source backed by the GitHub REST API.

    Every method opens a pooled client, issues its requests and closes
    it again, so one instance is safe to reuse across runs.

    Args:
        owner: Repository owner (e.g., ``"denoland"``).
        repo: Repository name (e.g., ``"pls"``).
        token: GitHub API token. Resolved from the environment by
            :func:`~pls.config.resolve_config`, never here.
        base_url: API base URL (override for GitHub Enterprise Server).
        pool_size: HTTP connection pool size.
        timeout: HTTP request timeout in seconds.
        max_retries: Transport-level retries for transient failures.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str,
        base_url: str = _DEFAULT_BASE_URL,
        pool_size: int = DEFAULT_POOL_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        """Initialize with owner, repo, and API token."""
        if not token:
            raise PlsError(
                code=E.AUTH_MISSING,
                message='GitHub API token required',
                hint='Pass token= or set GITHUB_TOKEN or GH_TOKEN.',
            )
        self._owner = owner
        self._repo = repo
        self._base_url = base_url.rstrip('/')
        self._repo_url = f'{self._base_url}/repos/{owner}/{repo}'
        self._pool_size = pool_size
        self._timeout = timeout
        self._max_retries = max_retries
        self._headers = {
            'Authorization': f'Bearer {token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': _API_VERSION,
        }

    @classmethod
    def from_config(cls, config: SyncConfig) -> GitHubStore:
        """Build a store from a resolved :class:`~pls.config.SyncConfig`."""
        return cls(
            config.owner,
            config.repo,
            token=config.token,
            base_url=config.api_url,
            pool_size=config.http_pool_size,
            timeout=config.http_timeout,
            max_retries=config.http_retries,
        )

    def __repr__(self) -> str:
        """Return a safe repr that never exposes the API token."""
        return f'GitHubStore(owner={self._owner!r}, repo={self._repo!r})'

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        allow_404: bool = False,
        **kwargs: object,
    ) -> Any:  # noqa: ANN401 - decoded JSON
        """Issue one API call and decode its JSON body.

        Returns:
            The decoded body, ``{}`` for 204, or ``None`` for an allowed 404.

        Raises:
            RemoteStoreError: On any other non-2xx status or transport failure.
        """
        url = f'{self._repo_url}{path}'
        try:
            async with http_client(
                pool_size=self._pool_size,
                timeout=self._timeout,
                headers=self._headers,
            ) as client:
                response = await request_with_retry(client, method, url, max_retries=self._max_retries, **kwargs)
        except httpx.TransportError as exc:
            raise RemoteStoreError(operation, detail=str(exc)) from exc

        if response.status_code == 404 and allow_404:
            log.debug('github_not_found', operation=operation, url=url)
            return None
        if not response.is_success:
            log.error('github_api_error', operation=operation, status=response.status_code)
            raise RemoteStoreError(operation, status=response.status_code, detail=response.text)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # ── Refs and objects ──

    async def resolve_ref(self, branch: str) -> str | None:
        """Return the commit SHA ``branch`` points at, or ``None``."""
        data = await self._request('resolve_ref', 'GET', f'/git/ref/heads/{quote(branch)}', allow_404=True)
        if data is None:
            return None
        return data['object']['sha']

    async def get_commit_tree(self, sha: str) -> str:
        """Return the tree SHA of commit ``sha``."""
        data = await self._request('get_commit', 'GET', f'/git/commits/{sha}')
        return data['tree']['sha']

    async def read_file(self, path: str, ref: str) -> str | None:
        """Return the decoded text of ``path`` at ``ref``, or ``None``."""
        data = await self._request(
            'read_file',
            'GET',
            f'/contents/{quote(path)}',
            params={'ref': ref},
            allow_404=True,
        )
        # Directories come back as a list.
        if not isinstance(data, dict) or 'content' not in data:
            return None
        try:
            return base64.b64decode(data['content']).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise RemoteStoreError('read_file', detail=f'{path}@{ref} is not UTF-8 text: {exc}') from exc

    async def create_blob(self, content: str) -> str:
        """Store ``content`` as a blob and return its SHA."""
        data = await self._request('create_blob', 'POST', '/git/blobs', json={'content': content, 'encoding': 'utf-8'})
        return data['sha']

    async def create_tree(self, base_tree: str, blobs: dict[str, str]) -> str:
        """Create a tree layering ``path → blob SHA`` over ``base_tree``."""
        payload = {
            'base_tree': base_tree,
            'tree': [{'path': path, 'mode': _FILE_MODE, 'type': 'blob', 'sha': sha} for path, sha in blobs.items()],
        }
        data = await self._request('create_tree', 'POST', '/git/trees', json=payload)
        return data['sha']

    async def create_commit(self, message: str, tree: str, parents: list[str]) -> str:
        """Create a commit object and return its SHA."""
        payload = {'message': message, 'tree': tree, 'parents': parents}
        data = await self._request('create_commit', 'POST', '/git/commits', json=payload)
        return data['sha']

    async def create_ref(self, branch: str, sha: str) -> None:
        """Create ``refs/heads/<branch>`` at ``sha``."""
        await self._request('create_ref', 'POST', '/git/refs', json={'ref': f'refs/heads/{branch}', 'sha': sha})
        log.info('ref_created', branch=branch, sha=sha[:7])

    async def update_ref(self, branch: str, sha: str, *, force: bool = False) -> None:
        """Move ``refs/heads/<branch>`` to ``sha``."""
        await self._request(
            'update_ref',
            'PATCH',
            f'/git/refs/heads/{quote(branch)}',
            json={'sha': sha, 'force': force},
        )
        log.info('ref_updated', branch=branch, sha=sha[:7], force=force)

    # ── Pull requests ──

    @staticmethod
    def _to_pr(data: dict[str, Any]) -> PullRequest:
        return PullRequest(
            number=data['number'],
            url=data.get('html_url', ''),
            title=data.get('title', ''),
            branch=data.get('head', {}).get('ref', ''),
            body=data.get('body') or '',
        )

    async def find_open_pr(self, branch: str) -> PullRequest | None:
        """Return the open PR whose head is ``branch``, or ``None``."""
        data = await self._request(
            'find_open_pr',
            'GET',
            '/pulls',
            params={'head': f'{self._owner}:{branch}', 'state': 'open'},
        )
        if not data:
            return None
        return self._to_pr(data[0])

    async def get_pr(self, number: int) -> PullRequest | None:
        """Return PR ``number``, or ``None``."""
        data = await self._request('get_pr', 'GET', f'/pulls/{number}', allow_404=True)
        return None if data is None else self._to_pr(data)

    async def create_pr(self, *, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request."""
        payload = {'title': title, 'body': body, 'head': head, 'base': base}
        data = await self._request('create_pr', 'POST', '/pulls', json=payload)
        pr = self._to_pr(data)
        log.info('pr_created', pr=pr.number, url=pr.url)
        return pr

    async def update_pr(self, number: int, *, title: str | None = None, body: str | None = None) -> PullRequest:
        """Patch a pull request's title and/or body."""
        payload: dict[str, str] = {}
        if title is not None:
            payload['title'] = title
        if body is not None:
            payload['body'] = body
        data = await self._request('update_pr', 'PATCH', f'/pulls/{number}', json=payload)
        return self._to_pr(data)

    # ── Notifier ──

    async def comment(self, pr_number: int, body: str) -> None:
        """Add a comment to PR ``pr_number``."""
        await self._request('comment', 'POST', f'/issues/{pr_number}/comments', json={'body': body})
        log.info('pr_commented', pr=pr_number)

    # ── CommitSource ──

    @staticmethod
    def _to_commit(data: dict[str, Any]) -> Commit:
        info = data.get('commit', {})
        author = info.get('author') or {}
        return Commit(
            sha=data['sha'],
            message=info.get('message', ''),
            author=author.get('name', ''),
            date=author.get('date', ''),
        )

    async def commits_since(self, since: str | None, *, until: str) -> list[Commit]:
        """Return commits after ``since`` up to ``until``, oldest first.

        With ``since`` the compare endpoint is used, which lists at most
        250 commits. Without it history is paged newest first until a
        page holds a release commit, runs short, or ``_MAX_PAGES`` pages
        have been read. Truncation is logged as a warning either way.
        """
        if since:
            data = await self._request('commits_since', 'GET', f'/compare/{since}...{quote(until)}')
            commits = [self._to_commit(item) for item in data.get('commits', [])]
            total = data.get('total_commits', len(commits))
            if total > len(commits):
                log.warning('commit_range_truncated', since=since, until=until, total=total, count=len(commits))
            log.debug('commits_fetched', since=since, until=until, count=len(commits))
            return commits

        newest_first: list[Commit] = []
        for page in range(1, _MAX_PAGES + 1):
            data = await self._request(
                'commits_since',
                'GET',
                '/commits',
                params={'sha': until, 'per_page': _PAGE_SIZE, 'page': page},
            )
            batch = [self._to_commit(item) for item in data]
            newest_first.extend(batch)
            if len(batch) < _PAGE_SIZE or any(is_release_commit(c.message) for c in batch):
                break
        else:
            log.warning('commit_history_truncated', until=until, pages=_MAX_PAGES, count=len(newest_first))
        log.debug('commits_fetched', since=since, until=until, count=len(newest_first))
        return newest_first[::-1]


__all__ = [
    'GitHubStore',
]
