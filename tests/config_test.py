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

"""Tests for pls.config."""

from __future__ import annotations

from pathlib import Path

import pytest
from pls.config import CONFIG_FILENAME, SyncConfig, load_config, resolve_config
from pls.errors import E, PlsError
from pls.logging import configure_logging

configure_logging(quiet=True)

ENV = {'GITHUB_REPOSITORY': 'denoland/pls', 'GITHUB_TOKEN': 'ghp_secret'}


def _write(root: Path, text: str) -> Path:
    (root / CONFIG_FILENAME).write_text(text, encoding='utf-8')
    return root


class TestLoadConfig:
    """Tests for load_config()."""

    def test_no_file(self, tmp_path: Path) -> None:
        """A missing file yields no settings."""
        assert load_config(tmp_path) == {}

    def test_valid_file(self, tmp_path: Path) -> None:
        """Known keys are returned as plain Python values."""
        root = _write(
            tmp_path,
            'owner = "denoland"\nrepo = "pls"\nmanifest_files = ["deno.json"]\nmajor_on_zero = false\nhttp_timeout = 5\n',
        )
        assert load_config(root) == {
            'owner': 'denoland',
            'repo': 'pls',
            'manifest_files': ['deno.json'],
            'major_on_zero': False,
            'http_timeout': 5,
        }

    def test_unknown_key_suggests(self, tmp_path: Path) -> None:
        """A typo gets a did-you-mean hint."""
        root = _write(tmp_path, 'base_brnach = "main"\n')
        with pytest.raises(PlsError) as excinfo:
            load_config(root)
        assert excinfo.value.code is E.CONFIG_INVALID_KEY
        assert "Did you mean 'base_branch'?" in excinfo.value.hint

    def test_token_rejected(self, tmp_path: Path) -> None:
        """Tokens are never read from the file."""
        root = _write(tmp_path, 'token = "ghp_nope"\n')
        with pytest.raises(PlsError) as excinfo:
            load_config(root)
        assert excinfo.value.code is E.CONFIG_INVALID_KEY
        assert 'GITHUB_TOKEN' in excinfo.value.hint

    @pytest.mark.parametrize(
        'line',
        [
            'major_on_zero = "yes"',
            'http_retries = true',
            'http_retries = -1',
            'manifest_files = "deno.json"',
            'manifest_files = ["deno.json", 3]',
            'http_timeout = "fast"',
        ],
    )
    def test_wrong_types(self, tmp_path: Path, line: str) -> None:
        """Values of the wrong type are rejected."""
        root = _write(tmp_path, line + '\n')
        with pytest.raises(PlsError) as excinfo:
            load_config(root)
        assert excinfo.value.code is E.CONFIG_INVALID_VALUE

    def test_bad_toml(self, tmp_path: Path) -> None:
        """Unparseable TOML is reported."""
        root = _write(tmp_path, 'owner = \n')
        with pytest.raises(PlsError) as excinfo:
            load_config(root)
        assert 'Failed to parse' in excinfo.value.info.message


class TestResolveConfig:
    """Tests for resolve_config()."""

    def test_defaults(self) -> None:
        """Defaults fill everything not given."""
        config = resolve_config(env=ENV)
        assert config.owner == 'denoland'
        assert config.repo == 'pls'
        assert config.token == 'ghp_secret'
        assert config.base_branch == 'main'
        assert config.release_branch == 'pls-release'
        assert config.manifest_files == ('deno.json', 'package.json')

    def test_precedence(self) -> None:
        """override > env > file > default."""
        file_config = {'owner': 'o', 'repo': 'r', 'base_branch': 'develop', 'release_branch': 'rel'}
        env = {'PLS_BASE_BRANCH': 'trunk'}
        config = resolve_config(file_config, {'base_branch': 'stable', 'release_branch': None}, env=env)
        assert config.base_branch == 'stable'
        assert config.release_branch == 'rel'
        assert resolve_config(file_config, env=env).base_branch == 'trunk'
        assert resolve_config(file_config, env={}).base_branch == 'develop'

    def test_gh_token_fallback(self) -> None:
        """GH_TOKEN is used when GITHUB_TOKEN is absent."""
        config = resolve_config({'owner': 'o', 'repo': 'r'}, env={'GH_TOKEN': 'gh'})
        assert config.token == 'gh'

    def test_normalizes_types(self) -> None:
        """Lists become tuples and integer timeouts become floats."""
        config = resolve_config({'owner': 'o', 'repo': 'r', 'manifest_files': ['a.json'], 'http_timeout': 5}, env={})
        assert config.manifest_files == ('a.json',)
        assert isinstance(config.http_timeout, float)

    def test_unknown_override(self) -> None:
        """Unknown overrides are rejected with a suggestion."""
        with pytest.raises(PlsError) as excinfo:
            resolve_config(overrides={'relase_branch': 'x'}, env=ENV)
        assert excinfo.value.code is E.CONFIG_INVALID_KEY
        assert 'release_branch' in excinfo.value.hint

    def test_missing_repository(self) -> None:
        """Owner and repo are required."""
        with pytest.raises(PlsError) as excinfo:
            resolve_config(env={})
        assert excinfo.value.code is E.CONFIG_INVALID_VALUE

    def test_bad_repository_env(self) -> None:
        """GITHUB_REPOSITORY must be owner/repo."""
        with pytest.raises(PlsError):
            resolve_config(env={'GITHUB_REPOSITORY': 'just-a-name'})

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without ``env`` the process environment is used."""
        monkeypatch.setenv('GITHUB_REPOSITORY', 'a/b')
        monkeypatch.delenv('PLS_BASE_BRANCH', raising=False)
        assert resolve_config().owner == 'a'


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_repr_hides_token(self) -> None:
        """The token never appears in repr."""
        config = SyncConfig(owner='o', repo='r', token='ghp_secret')
        assert 'ghp_secret' not in repr(config)
