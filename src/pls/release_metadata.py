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

"""Release metadata embedded in commit and tag messages.

A release commit carries a small key/value block that says "this commit
IS a release" and which version it produced, so later runs never have to
guess from the title::

    chore: release v1.2.3

    ---pls-release---
    version: 1.2.3
    from: 1.2.2
    type: minor
    ---pls-release---

Decoding is total: malformed or missing blocks yield ``None``.
:func:`extract_version` chains the structured decoder with a title regex
so commits created before the block existed are still recognized.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from pls.commit_parsing import BumpType

DELIMITER = '---pls-release---'

_REQUIRED_KEYS = ('version', 'from', 'type')

# Title written by every pls version. Squash merges on GitHub append `` (#N)``.
_TITLE_RE = re.compile(r'^chore: release v(?P<version>\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?)(?:\s+\(#\d+\))?\s*$')


@dataclass(frozen=True)
class ReleaseMetadata:
    """Structured record of one release.

    Attributes:
        version: The version this release produced.
        from_version: The version it was bumped from.
        type: The kind of change.
    """

    version: str
    from_version: str
    type: BumpType


def has_release_metadata(message: str) -> bool:
    """Return whether ``message`` contains a metadata delimiter at all."""
    return DELIMITER in message


def encode_block(metadata: ReleaseMetadata) -> str:
    """Render just the delimited key/value block."""
    return '\n'.join([
        DELIMITER,
        f'version: {metadata.version}',
        f'from: {metadata.from_version}',
        f'type: {metadata.type.value}',
        DELIMITER,
    ])


def encode(metadata: ReleaseMetadata) -> str:
    """Render a complete release commit message."""
    return f'chore: release v{metadata.version}\n\n{encode_block(metadata)}'


def encode_tag_message(metadata: ReleaseMetadata, changelog: str) -> str:
    """Render an annotated tag message: title, changelog, then the block."""
    return f'Release v{metadata.version}\n\n{changelog}\n\n{encode_block(metadata)}'


def decode(message: str) -> ReleaseMetadata | None:
    """Parse the metadata block out of a commit or tag message.

    Args:
        message: Full commit or tag message.

    Returns:
        The metadata, or ``None`` if the block is missing, unterminated,
        lacks a required key, or names an unknown type.
    """
    start = message.find(DELIMITER)
    if start == -1:
        return None
    rest = message[start + len(DELIMITER) :]
    end = rest.find(DELIMITER)
    if end == -1:
        return None

    fields: dict[str, str] = {}
    for line in rest[:end].strip().splitlines():
        key, sep, value = line.partition(':')
        if sep and key.strip():
            fields[key.strip()] = value.strip()

    if not all(fields.get(key) for key in _REQUIRED_KEYS):
        return None
    try:
        bump_type = BumpType(fields['type'])
    except ValueError:
        return None

    return ReleaseMetadata(
        version=fields['version'],
        from_version=fields['from'],
        type=bump_type,
    )


def _version_from_block(message: str) -> str | None:
    metadata = decode(message)
    return metadata.version if metadata else None


def _version_from_title(message: str) -> str | None:
    match = _TITLE_RE.match(message.split('\n', 1)[0].strip())
    return match.group('version') if match else None


# Tried in order; the first non-None answer wins.
VERSION_DECODERS: tuple[Callable[[str], str | None], ...] = (
    _version_from_block,
    _version_from_title,
)


def extract_version(message: str) -> str | None:
    """Return the released version recorded in ``message``, if any."""
    for decoder in VERSION_DECODERS:
        version = decoder(message)
        if version is not None:
            return version
    return None


def is_release_commit(message: str) -> bool:
    """Return whether ``message`` belongs to a release commit."""
    return extract_version(message) is not None


__all__ = [
    'DELIMITER',
    'VERSION_DECODERS',
    'ReleaseMetadata',
    'decode',
    'encode',
    'encode_block',
    'encode_tag_message',
    'extract_version',
    'has_release_metadata',
    'is_release_commit',
]
