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

"""Tests for the GitHub REST API store.

Validates that :class:`GitHubStore` satisfies the backend protocols,
handles authentication, and maps API responses and failures correctly.
"""

from __future__ import annotations

import base64
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from pls.backends import CommitSource, ContentStore, Notifier
from pls.backends.github import GitHubStore
from pls.config import SyncConfig
from pls.errors import E, PlsError, RemoteStoreError
from pls.logging import configure_logging

configure_logging(quiet=True)

REPO_URL = 'https://api.github.com/repos/denoland/pls'

PATCH_TARGET = 'pls.backends.github.request_with_retry'


# ── Helpers ──────────────────────────────────────────────────────────


def _response(status_code: int = 200, json_data: Any = None) -> httpx.Response:  # noqa: ANN401 - test helper
    """Create an httpx.Response, with a JSON body when given."""
    request = httpx.Request('GET', f'{REPO_URL}/test')
    if json_data is None:
        return httpx.Response(status_code=status_code, request=request)
    return httpx.Response(status_code=status_code, json=json_data, request=request)


def _pr(number: int = 7, body: str = 'body') -> dict[str, Any]:
    return {
        'number': number,
        'html_url': f'https://github.com/denoland/pls/pull/{number}',
        'title': 'chore: release v1.1.0',
        'head': {'ref': 'pls-release'},
        'body': body,
    }


@pytest.fixture
def store() -> GitHubStore:
    """Create a store with a test token."""
    return GitHubStore('denoland', 'pls', token='ghp_test_token_for_unit_tests')


# ── Protocol conformance ────────────────────────────────────────────


class TestProtocolConformance:
    """GitHubStore satisfies all three backend protocols."""

    def test_protocols(self, store: GitHubStore) -> None:
        """ContentStore, Notifier and CommitSource."""
        for protocol in (ContentStore, Notifier, CommitSource):
            if not isinstance(store, protocol):
                pytest.fail(f'GitHubStore does not satisfy {protocol.__name__}')


# ── Authentication ──────────────────────────────────────────────────


class TestAuth:
    """Token handling."""

    def test_bearer_header(self, store: GitHubStore) -> None:
        """The token is sent as a bearer token."""
        assert store._headers['Authorization'] == 'Bearer ghp_test_token_for_unit_tests'

    def test_no_token_raises(self) -> None:
        """An empty token fails fast."""
        with pytest.raises(PlsError) as excinfo:
            GitHubStore('o', 'r', token='')
        assert excinfo.value.code is E.AUTH_MISSING

    def test_repr_hides_token(self, store: GitHubStore) -> None:
        """repr never leaks the token."""
        assert 'ghp_' not in repr(store)

    def test_from_config(self) -> None:
        """Settings flow from SyncConfig."""
        config = SyncConfig(owner='o', repo='r', token='t', api_url='https://ghe.example.test/api/v3/')
        built = GitHubStore.from_config(config)
        assert built._repo_url == 'https://ghe.example.test/api/v3/repos/o/r'


# ── Refs and objects ────────────────────────────────────────────────


class TestRefsAndObjects:
    """Git database endpoints."""

    @pytest.mark.asyncio
    async def test_resolve_ref(self, store: GitHubStore) -> None:
        """The ref's object SHA is returned."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'object': {'sha': 'abc123'}})
            assert await store.resolve_ref('main') == 'abc123'
        assert mock_req.call_args.args[1:] == ('GET', f'{REPO_URL}/git/ref/heads/main')

    @pytest.mark.asyncio
    async def test_resolve_ref_missing(self, store: GitHubStore) -> None:
        """404 means the branch does not exist."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(404, {'message': 'Not Found'})
            assert await store.resolve_ref('nope') is None

    @pytest.mark.asyncio
    async def test_get_commit_tree(self, store: GitHubStore) -> None:
        """The commit's tree SHA is returned."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'sha': 'abc', 'tree': {'sha': 'tree1'}})
            assert await store.get_commit_tree('abc') == 'tree1'

    @pytest.mark.asyncio
    async def test_server_error_raises(self, store: GitHubStore) -> None:
        """Non-404 failures raise RemoteStoreError with the status."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(500, {'message': 'boom'})
            with pytest.raises(RemoteStoreError) as excinfo:
                await store.get_commit_tree('abc')
        assert excinfo.value.status == 500
        assert excinfo.value.operation == 'get_commit'

    @pytest.mark.asyncio
    async def test_404_not_allowed_everywhere(self, store: GitHubStore) -> None:
        """A 404 on a write is an error, not None."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(404, {'message': 'Not Found'})
            with pytest.raises(RemoteStoreError) as excinfo:
                await store.create_blob('x')
        assert excinfo.value.not_found

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, store: GitHubStore) -> None:
        """Transport failures become RemoteStoreError with status 0."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.side_effect = httpx.ConnectError('connection refused')
            with pytest.raises(RemoteStoreError) as excinfo:
                await store.resolve_ref('main')
        assert excinfo.value.status == 0

    @pytest.mark.asyncio
    async def test_read_file(self, store: GitHubStore) -> None:
        """File content is base64-decoded."""
        encoded = base64.b64encode(b'{"version": "1.0.0"}\n').decode()
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'type': 'file', 'content': encoded})
            assert await store.read_file('deno.json', 'main') == '{"version": "1.0.0"}\n'
        assert mock_req.call_args.kwargs['params'] == {'ref': 'main'}

    @pytest.mark.asyncio
    async def test_read_file_missing(self, store: GitHubStore) -> None:
        """A missing file reads as None."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(404, {'message': 'Not Found'})
            assert await store.read_file('deno.json', 'main') is None

    @pytest.mark.asyncio
    async def test_read_directory(self, store: GitHubStore) -> None:
        """A directory listing reads as None."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, [{'name': 'a'}])
            assert await store.read_file('src', 'main') is None

    @pytest.mark.asyncio
    async def test_read_binary_file(self, store: GitHubStore) -> None:
        """Content that is not UTF-8 text fails as a store error."""
        encoded = base64.b64encode(b'\x89PNG\r\n\x1a\n\xff\xfe').decode()
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'type': 'file', 'content': encoded})
            with pytest.raises(RemoteStoreError) as excinfo:
                await store.read_file('logo.png', 'main')
        assert excinfo.value.operation == 'read_file'
        assert 'logo.png@main' in excinfo.value.detail

    @pytest.mark.asyncio
    async def test_create_tree_payload(self, store: GitHubStore) -> None:
        """Trees layer blob entries over the base tree."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(201, {'sha': 'tree2'})
            assert await store.create_tree('tree1', {'deno.json': 'blob1'}) == 'tree2'
        assert mock_req.call_args.kwargs['json'] == {
            'base_tree': 'tree1',
            'tree': [{'path': 'deno.json', 'mode': '100644', 'type': 'blob', 'sha': 'blob1'}],
        }

    @pytest.mark.asyncio
    async def test_create_commit_payload(self, store: GitHubStore) -> None:
        """Commits name their tree and parents."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(201, {'sha': 'commit1'})
            assert await store.create_commit('msg', 'tree2', ['base1']) == 'commit1'
        assert mock_req.call_args.kwargs['json'] == {'message': 'msg', 'tree': 'tree2', 'parents': ['base1']}

    @pytest.mark.asyncio
    async def test_create_ref(self, store: GitHubStore) -> None:
        """Refs are created with their full name."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(201, {'ref': 'refs/heads/pls-release'})
            await store.create_ref('pls-release', 'commit1')
        assert mock_req.call_args.args[1:] == ('POST', f'{REPO_URL}/git/refs')
        assert mock_req.call_args.kwargs['json'] == {'ref': 'refs/heads/pls-release', 'sha': 'commit1'}

    @pytest.mark.asyncio
    async def test_update_ref_force(self, store: GitHubStore) -> None:
        """The force flag is sent."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'ref': 'refs/heads/pls-release'})
            await store.update_ref('pls-release', 'commit1', force=True)
        assert mock_req.call_args.args[1:] == ('PATCH', f'{REPO_URL}/git/refs/heads/pls-release')
        assert mock_req.call_args.kwargs['json'] == {'sha': 'commit1', 'force': True}


# ── Pull requests ───────────────────────────────────────────────────


class TestPullRequests:
    """PR endpoints."""

    @pytest.mark.asyncio
    async def test_find_open_pr(self, store: GitHubStore) -> None:
        """The first open PR for the head branch is returned."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, [_pr()])
            pr = await store.find_open_pr('pls-release')
        assert pr is not None
        assert (pr.number, pr.branch, pr.body) == (7, 'pls-release', 'body')
        assert mock_req.call_args.kwargs['params'] == {'head': 'denoland:pls-release', 'state': 'open'}

    @pytest.mark.asyncio
    async def test_find_open_pr_none(self, store: GitHubStore) -> None:
        """No open PR reads as None."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, [])
            assert await store.find_open_pr('pls-release') is None

    @pytest.mark.asyncio
    async def test_null_body(self, store: GitHubStore) -> None:
        """A PR without a description has an empty body."""
        data = _pr()
        data['body'] = None
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, data)
            pr = await store.get_pr(7)
        assert pr is not None
        assert pr.body == ''

    @pytest.mark.asyncio
    async def test_get_pr_missing(self, store: GitHubStore) -> None:
        """An unknown PR number reads as None."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(404, {'message': 'Not Found'})
            assert await store.get_pr(99) is None

    @pytest.mark.asyncio
    async def test_create_pr(self, store: GitHubStore) -> None:
        """Creating a PR posts head and base."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(201, _pr(8))
            pr = await store.create_pr(title='t', body='b', head='pls-release', base='main')
        assert pr.number == 8
        assert mock_req.call_args.kwargs['json'] == {'title': 't', 'body': 'b', 'head': 'pls-release', 'base': 'main'}

    @pytest.mark.asyncio
    async def test_update_pr_only_given_fields(self, store: GitHubStore) -> None:
        """Unset fields are not sent."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, _pr())
            await store.update_pr(7, title='new title')
        assert mock_req.call_args.kwargs['json'] == {'title': 'new title'}

    @pytest.mark.asyncio
    async def test_comment(self, store: GitHubStore) -> None:
        """Comments go to the issues endpoint."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(201, {'id': 1})
            await store.comment(7, 'hello')
        assert mock_req.call_args.args[1:] == ('POST', f'{REPO_URL}/issues/7/comments')

    @pytest.mark.asyncio
    async def test_no_content(self, store: GitHubStore) -> None:
        """204 answers decode to an empty dict."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(204)
            await store.comment(7, 'hello')


# ── Commit source ───────────────────────────────────────────────────


def _commit(sha: str, message: str) -> dict[str, Any]:
    return {'sha': sha, 'commit': {'message': message, 'author': {'name': 'Ada', 'date': '2026-01-01T00:00:00Z'}}}


class TestCommitsSince:
    """commits_since() over the REST API."""

    @pytest.mark.asyncio
    async def test_compare(self, store: GitHubStore) -> None:
        """With an anchor the compare endpoint is used, oldest first."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, {'commits': [_commit('a', 'feat: a'), _commit('b', 'fix: b')]})
            commits = await store.commits_since('anchor', until='base1')
        assert [c.sha for c in commits] == ['a', 'b']
        assert commits[0].author == 'Ada'
        assert mock_req.call_args.args[2] == f'{REPO_URL}/compare/anchor...base1'

    @pytest.mark.asyncio
    async def test_history(self, store: GitHubStore) -> None:
        """Without an anchor the newest-first listing is reversed."""
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, [_commit('b', 'fix: b'), _commit('a', 'feat: a')])
            commits = await store.commits_since(None, until='base1')
        assert [c.sha for c in commits] == ['a', 'b']
        assert mock_req.call_args.kwargs['params'] == {'sha': 'base1', 'per_page': 100, 'page': 1}
        assert mock_req.await_count == 1

    @pytest.mark.asyncio
    async def test_history_pages_until_short_page(self, store: GitHubStore) -> None:
        """Full pages are followed by the next one; a short page ends the walk."""
        first = [_commit(f'n{i}', 'fix: x') for i in range(100)]
        second = [_commit('o1', 'feat: y'), _commit('o0', 'feat: z')]
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.side_effect = [_response(200, first), _response(200, second)]
            commits = await store.commits_since(None, until='base1')
        assert len(commits) == 102
        assert [c.sha for c in commits[:2]] == ['o0', 'o1']
        assert commits[-1].sha == 'n0'
        assert [call.kwargs['params']['page'] for call in mock_req.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_history_stops_at_release_page(self, store: GitHubStore) -> None:
        """A full page holding a release commit is the last one read."""
        page = [_commit(f'n{i}', 'fix: x') for i in range(99)] + [_commit('rel', 'chore: release v1.1.0')]
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, page)
            commits = await store.commits_since(None, until='base1')
        assert mock_req.await_count == 1
        assert commits[0].sha == 'rel'

    @pytest.mark.asyncio
    async def test_history_page_limit(self, store: GitHubStore) -> None:
        """Paging stops after ten full pages."""
        page = [_commit(f'n{i}', 'fix: x') for i in range(100)]
        with patch(PATCH_TARGET, new_callable=AsyncMock) as mock_req:
            mock_req.return_value = _response(200, page)
            commits = await store.commits_since(None, until='base1')
        assert mock_req.await_count == 10
        assert len(commits) == 1000
