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

"""Versions manifest codec (``.pls/versions.json``).

The manifest maps package paths (``"."`` is the repository root) to the
last released version. Two on-disk shapes exist and both are read
transparently::

    {
      ".": "1.2.3"                                   ← legacy
    }

    {
      ".": {"version": "1.2.3", "sha": "abc123", "versionFile": "src/version.ts"}
    }

All knowledge of the two shapes lives in :func:`_decode_entry` and
:meth:`VersionEntry.to_json`. Callers only ever see :class:`VersionEntry`.

A manifest that exists but is not valid JSON raises
:class:`~pls.errors.ManifestDecodeError`. Guessing at a corrupt file
could silently rewind version history.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

from pls.errors import ManifestDecodeError

ROOT = '.'
DEFAULT_PATH = '.pls/versions.json'


@dataclass(frozen=True)
class VersionEntry:
    """One package's release record.

    Attributes:
        version: Last released version.
        sha: Commit of that release, when known. Its absence is normal.
        version_file: Path of a source file carrying a ``@pls-version``
            marker.
        legacy: Whether the entry was read as a bare version string. Such
            entries are written back in the same shape unless they gain a
            ``sha`` or ``version_file``.
    """

    version: str
    sha: str | None = None
    version_file: str | None = None
    legacy: bool = False

    def to_json(self) -> str | dict[str, str]:
        """Return the JSON value for this entry."""
        if self.legacy and self.sha is None and self.version_file is None:
            return self.version
        data = {'version': self.version}
        if self.sha is not None:
            data['sha'] = self.sha
        if self.version_file is not None:
            data['versionFile'] = self.version_file
        return data


def _decode_entry(path: str, key: str, value: Any) -> VersionEntry:  # noqa: ANN401 - raw JSON value
    if isinstance(value, str):
        return VersionEntry(version=value, legacy=True)
    if isinstance(value, dict) and isinstance(value.get('version'), str):
        sha = value.get('sha')
        version_file = value.get('versionFile')
        return VersionEntry(
            version=value['version'],
            sha=sha if isinstance(sha, str) else None,
            version_file=version_file if isinstance(version_file, str) else None,
        )
    raise ManifestDecodeError(path, f'entry {key!r} must be a version string or an object with "version"')


@dataclass(frozen=True)
class VersionsManifest:
    """Parsed versions manifest.

    Attributes:
        entries: Package path to entry, in file order.
    """

    entries: dict[str, VersionEntry] = field(default_factory=dict)

    @classmethod
    def parse(cls, content: str, path: str = DEFAULT_PATH) -> VersionsManifest:
        """Decode manifest text.

        Raises:
            ManifestDecodeError: On invalid JSON, a non-object document,
                or an entry of neither known shape.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ManifestDecodeError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise ManifestDecodeError(path, 'top level must be a JSON object')
        return cls(entries={key: _decode_entry(path, key, value) for key, value in data.items()})

    def get(self, package: str = ROOT) -> VersionEntry | None:
        """Return the entry for ``package``."""
        return self.entries.get(package)

    @property
    def root(self) -> VersionEntry | None:
        """Entry for the repository root."""
        return self.get(ROOT)

    def with_version(self, version: str, package: str = ROOT) -> VersionsManifest:
        """Return a copy with ``package`` set to ``version``.

        ``sha`` and ``version_file`` of an existing entry are preserved.
        """
        existing = self.entries.get(package)
        entry = replace(existing, version=version) if existing else VersionEntry(version=version)
        return VersionsManifest(entries={**self.entries, package: entry})

    def dumps(self) -> str:
        """Serialize with 2-space indentation and a trailing newline."""
        return json.dumps({key: entry.to_json() for key, entry in self.entries.items()}, indent=2) + '\n'


__all__ = [
    'DEFAULT_PATH',
    'ROOT',
    'VersionEntry',
    'VersionsManifest',
]
