# config.py -- Archive related configuration settings
# Copyright (C) 2026 The treearchive authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# treearchive is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Reading archive settings from git configuration.

Supported settings:

``tar.umask``
    Permission bits masked out of tar members. Either an octal number or
    ``user`` to use the umask of the running process. Defaults to ``0002``.

``core.compression``
    Default zlib level for zip archives when no explicit level is given.
"""

import os
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from dulwich.config import Config
    from dulwich.repo import BaseRepo

DEFAULT_TAR_UMASK = 0o002
DEFAULT_COMPRESSION_LEVEL = -1


def _process_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def parse_umask(value: bytes) -> int:
    """Parse a ``tar.umask`` value.

    Args:
      value: Raw configuration value
    Returns: Permission mask
    Raises:
      ValueError: if the value is neither ``user`` nor an octal number
    """
    value = value.strip()
    if value == b"user":
        return _process_umask()
    return int(value.decode("ascii"), 8)


def parse_compression_level(value: bytes) -> int:
    """Parse a zlib compression level from configuration.

    Raises:
      ValueError: if the level is outside -1..9
    """
    level = int(value.decode("ascii"))
    if not -1 <= level <= 9:
        raise ValueError(f"bad zlib compression level {level}")
    return level


class ArchiveConfig(NamedTuple):
    """Settings that affect how archives are encoded."""

    tar_umask: int = DEFAULT_TAR_UMASK
    compression_level: int = DEFAULT_COMPRESSION_LEVEL

    @classmethod
    def from_config(cls, config: "Config") -> "ArchiveConfig":
        """Create an ArchiveConfig from a configuration object.

        Args:
          config: Configuration object (e.g. a StackedConfig) to read from
        Returns: New ArchiveConfig; unset keys keep their defaults
        """
        try:
            tar_umask = parse_umask(config.get((b"tar",), b"umask"))
        except KeyError:
            tar_umask = DEFAULT_TAR_UMASK
        try:
            compression_level = parse_compression_level(
                config.get((b"core",), b"compression")
            )
        except KeyError:
            compression_level = DEFAULT_COMPRESSION_LEVEL
        return cls(tar_umask=tar_umask, compression_level=compression_level)

    @classmethod
    def from_repo(cls, repo: "BaseRepo") -> "ArchiveConfig":
        """Read archive settings from a repository's config stack."""
        return cls.from_config(repo.get_config_stack())
