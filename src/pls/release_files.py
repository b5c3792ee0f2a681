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

"""Version-bearing file changes for a release commit.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ File                    │ What changes                                │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Project manifest        │ ``"version"`` in the first configured      │
    │ (deno.json, ...)        │ JSON manifest that exists and parses.      │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Versions manifest       │ Root entry's version. ``sha`` and          │
    │ (.pls/versions.json)    │ ``versionFile`` are kept.                  │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Version file            │ The semver on the line after a             │
    │ (``versionFile``)       │ ``@pls-version`` marker.                   │
    └─────────────────────────┴─────────────────────────────────────────────┘

Everything is read from the remote store at the base ref and returned as
``path → content``; nothing is written here. The caller hands the result
to :class:`~pls.commit_builder.CommitBuilder`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from pls.backends import ContentStore
from pls.logging import get_logger
from pls.release_metadata import ReleaseMetadata, encode
from pls.versions import DEFAULT_PATH, VersionsManifest

logger = get_logger(__name__)

DEFAULT_MANIFEST_FILES: tuple[str, ...] = ('deno.json', 'package.json')

# Marker on its own comment line; "@pls-version foo" is not a marker.
_VERSION_MARKER_RE = re.compile(r'@pls-version(?![ \t]+\w)')
_SEMVER_IN_LINE_RE = re.compile(r'\d+\.\d+\.\d+(?:-[\w.]+)?')


@dataclass(frozen=True)
class ReleaseFiles:
    """The complete change set for one release commit.

    Attributes:
        files: Path to new content, in staging order.
        commit_message: Release commit message with embedded metadata.
    """

    files: dict[str, str] = field(default_factory=dict)
    commit_message: str = ''

    @property
    def paths(self) -> list[str]:
        """Paths that will change."""
        return list(self.files)


def _set_json_version(content: str, version: str) -> str | None:
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    data['version'] = version
    return json.dumps(data, indent=2, ensure_ascii=False) + '\n'


def read_json_version(content: str) -> str | None:
    """Return the top-level ``"version"`` string of a JSON manifest, if any."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get('version'), str):
        return None
    return data['version']


def update_json_version(content: str, version: str) -> str:
    """Set the top-level ``"version"`` of a JSON manifest.

    Output uses 2-space indentation and a trailing newline. Content that
    is not a JSON object is returned unchanged.
    """
    updated = _set_json_version(content, version)
    return content if updated is None else updated


def update_version_file(content: str, version: str) -> str | None:
    """Replace the semver on the line following a ``@pls-version`` marker.

    Returns:
        The new content, or ``None`` when there is no marker, no version
        on the following line, or nothing changes.
    """
    lines = content.split('\n')
    for index, line in enumerate(lines[:-1]):
        if not _VERSION_MARKER_RE.search(line):
            continue
        target = lines[index + 1]
        replaced = _SEMVER_IN_LINE_RE.sub(version, target, count=1)
        if replaced == target:
            return None
        lines[index + 1] = replaced
        return '\n'.join(lines)
    return None


async def build_release_files(
    store: ContentStore,
    ref: str,
    metadata: ReleaseMetadata,
    *,
    manifest_files: Sequence[str] = DEFAULT_MANIFEST_FILES,
    versions_file: str = DEFAULT_PATH,
) -> ReleaseFiles:
    """Compute every file change needed to release ``metadata.version``.

    Args:
        store: Store to read current contents from.
        ref: Branch or SHA to read at (the base tip).
        metadata: Release being prepared.
        manifest_files: Candidate project manifests, first match wins.
        versions_file: Path of the versions manifest.

    Returns:
        The change set and commit message.

    Raises:
        ManifestDecodeError: If the versions manifest exists but is not
            valid.
    """
    version = metadata.version
    files: dict[str, str] = {}

    for path in manifest_files:
        content = await store.read_file(path, ref)
        if content is None:
            continue
        updated = _set_json_version(content, version)
        if updated is None:
            logger.warning('manifest_not_json', path=path)
            continue
        files[path] = updated
        break

    raw = await store.read_file(versions_file, ref)
    manifest = VersionsManifest.parse(raw, versions_file) if raw is not None else VersionsManifest()
    manifest = manifest.with_version(version)
    files[versions_file] = manifest.dumps()

    root = manifest.root
    if root is not None and root.version_file:
        source = await store.read_file(root.version_file, ref)
        if source is None:
            logger.warning('version_file_missing', path=root.version_file)
        else:
            updated_source = update_version_file(source, version)
            if updated_source is not None:
                files[root.version_file] = updated_source

    logger.debug('release_files', version=version, paths=list(files))
    return ReleaseFiles(files=files, commit_message=encode(metadata))


__all__ = [
    'DEFAULT_MANIFEST_FILES',
    'ReleaseFiles',
    'build_release_files',
    'read_json_version',
    'update_json_version',
    'update_version_file',
]
