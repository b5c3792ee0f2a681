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

"""Tests for pls.versions."""

from __future__ import annotations

import json

import pytest
from pls.errors import ManifestDecodeError
from pls.versions import VersionEntry, VersionsManifest


class TestParse:
    """Tests for VersionsManifest.parse()."""

    def test_legacy_shape(self) -> None:
        """A bare string is a version."""
        manifest = VersionsManifest.parse('{".": "1.2.3"}')
        assert manifest.root == VersionEntry(version='1.2.3', legacy=True)

    def test_object_shape(self) -> None:
        """The object shape carries sha and versionFile."""
        manifest = VersionsManifest.parse(
            '{".": {"version": "1.2.3", "sha": "abc123", "versionFile": "src/version.ts"}}',
        )
        assert manifest.root == VersionEntry(version='1.2.3', sha='abc123', version_file='src/version.ts')

    def test_mixed_packages(self) -> None:
        """Both shapes can live in one file."""
        manifest = VersionsManifest.parse('{".": "1.0.0", "packages/x": {"version": "0.2.0"}}')
        assert manifest.get('packages/x') == VersionEntry(version='0.2.0')
        assert manifest.get('packages/y') is None

    @pytest.mark.parametrize(
        'content',
        ['{not json', '["1.0.0"]', '{".": 3}', '{".": {"sha": "abc"}}'],
    )
    def test_invalid(self, content: str) -> None:
        """Corrupt manifests raise instead of guessing."""
        with pytest.raises(ManifestDecodeError) as excinfo:
            VersionsManifest.parse(content, '.pls/versions.json')
        assert excinfo.value.path == '.pls/versions.json'


class TestWithVersion:
    """Tests for with_version() and dumps()."""

    def test_legacy_stays_legacy(self) -> None:
        """A legacy entry is written back as a bare string."""
        manifest = VersionsManifest.parse('{".": "1.2.3"}').with_version('1.3.0')
        assert manifest.dumps() == '{\n  ".": "1.3.0"\n}\n'

    def test_preserves_sha_and_version_file(self) -> None:
        """Only the version changes."""
        manifest = VersionsManifest.parse(
            '{".": {"version": "1.2.3", "sha": "abc123", "versionFile": "src/version.ts"}}',
        ).with_version('1.3.0')
        assert json.loads(manifest.dumps()) == {
            '.': {'version': '1.3.0', 'sha': 'abc123', 'versionFile': 'src/version.ts'},
        }

    def test_new_entry_uses_object_shape(self) -> None:
        """Entries created from nothing use the object shape."""
        manifest = VersionsManifest().with_version('0.1.0')
        assert json.loads(manifest.dumps()) == {'.': {'version': '0.1.0'}}

    def test_other_packages_untouched(self) -> None:
        """Setting the root leaves other packages alone."""
        original = VersionsManifest.parse('{".": "1.0.0", "packages/x": "0.2.0"}')
        updated = original.with_version('1.1.0')
        assert updated.get('packages/x') == original.get('packages/x')
        assert original.root is not None
        assert original.root.version == '1.0.0'
