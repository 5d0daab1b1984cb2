# attributes.py -- export-ignore and export-subst attribute lookups
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

"""Attribute lookups that control what ends up in an archive.

Attributes come from the ``.gitattributes`` files of the archived tree and
from ``$GIT_DIR/info/attributes``. A file's patterns only apply below the
directory holding it. For any path, files are consulted from the root of the
tree downwards and ``info/attributes`` last, so a deeper file overrides a
shallower one and ``info/attributes`` overrides them all.
"""

__all__ = [
    "EXPORT_IGNORE",
    "EXPORT_SUBST",
    "ArchiveAttributes",
    "AttributeResolver",
    "parse_attributes",
]

import re
import stat
from collections.abc import Iterator
from io import BytesIO
from typing import TYPE_CHECKING, NamedTuple, Optional, Union

from dulwich.attrs import GitAttributes, Pattern, parse_git_attributes
from dulwich.errors import NotTreeError, ObjectFormatException
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Blob, Tree

from .log_utils import getLogger

if TYPE_CHECKING:
    from dulwich.object_store import BaseObjectStore
    from dulwich.repo import BaseRepo

logger = getLogger(__name__)

EXPORT_IGNORE = b"export-ignore"
EXPORT_SUBST = b"export-subst"

GITATTRIBUTES = b".gitattributes"

AttributeValue = Union[bytes, bool, None]


class ArchiveAttributes(NamedTuple):
    """Attribute values relevant to a single archive entry."""

    ignore: bool = False
    subst: bool = False


UNSET = ArchiveAttributes()


def parse_attributes(data: bytes) -> GitAttributes:
    """Parse the contents of a gitattributes file."""
    return GitAttributes(
        [(Pattern(pattern), attrs) for pattern, attrs in parse_git_attributes(BytesIO(data))]
    )


def _parent_directories(path: bytes) -> Iterator[bytes]:
    """Yield b"" and then every directory leading to path, shallowest first."""
    yield b""
    end = path.find(b"/")
    while end != -1:
        yield path[:end]
        end = path.find(b"/", end + 1)


def _apply(
    gitattributes: GitAttributes, path: bytes, values: dict[bytes, AttributeValue]
) -> None:
    for pattern, attrs in gitattributes:
        if not pattern.match(path):
            continue
        for name, value in attrs.items():
            if value is None:
                values.pop(name, None)
            else:
                values[name] = value


class AttributeResolver:
    """Resolves export attributes for repository relative paths.

    A resolver is created once per archive run and handed to the walker.
    The ``.gitattributes`` file of a directory is read the first time a path
    below it is checked. Lookup failures are not fatal; the affected file or
    path is treated as having no attributes at all.

    Args:
      gitattributes: Patterns matched against the full path, taking
        precedence over anything found in the tree
      store: Object store holding tree
      tree: SHA of the root tree to read ``.gitattributes`` files from
    """

    def __init__(
        self,
        gitattributes: Optional[GitAttributes] = None,
        store: Optional["BaseObjectStore"] = None,
        tree: Optional[bytes] = None,
    ) -> None:
        self._gitattributes = gitattributes
        self._store = store
        self._tree = tree
        self._directories: dict[bytes, Optional[GitAttributes]] = {}

    @classmethod
    def from_repo(
        cls, repo: "BaseRepo", tree: Optional[bytes] = None
    ) -> "AttributeResolver":
        """Load the attributes that apply to an archived tree.

        Args:
          repo: Repository to read attributes from
          tree: SHA of the root tree whose .gitattributes files should be used
        Returns: An AttributeResolver; empty if the attributes can't be read
        """
        info_attributes = None
        try:
            f = repo.get_named_file("info/attributes")
            if f is not None:
                with f:
                    info_attributes = parse_attributes(f.read())
        except (ValueError, OSError, re.error, NotImplementedError) as e:
            logger.debug("unable to load info/attributes: %s", e)
        return cls(info_attributes, repo.object_store, tree)

    def _load_directory(self, directory: bytes) -> Optional[GitAttributes]:
        """Read the .gitattributes file directly inside directory, if any."""
        try:
            if directory:
                mode, sha = tree_lookup_path(
                    self._store.__getitem__, self._tree, directory
                )
                if not stat.S_ISDIR(mode):
                    return None
                tree = self._store[sha]
            else:
                tree = self._store[self._tree]
            if not isinstance(tree, Tree) or GITATTRIBUTES not in tree:
                return None
            mode, sha = tree[GITATTRIBUTES]
            if not stat.S_ISREG(mode):
                return None
            blob = self._store[sha]
            if not isinstance(blob, Blob):
                return None
            return parse_attributes(blob.as_raw_string())
        except (KeyError, NotTreeError, ObjectFormatException, ValueError, re.error) as e:
            logger.debug("unable to load gitattributes in %r: %s", directory, e)
            return None

    def _directory_attributes(self, directory: bytes) -> Optional[GitAttributes]:
        try:
            return self._directories[directory]
        except KeyError:
            pass
        gitattributes = self._load_directory(directory)
        self._directories[directory] = gitattributes
        return gitattributes

    def check(self, path: bytes) -> ArchiveAttributes:
        """Look up export-ignore and export-subst for path.

        Only attributes that are set count; unset, unspecified and string
        values are all treated as false.

        Args:
          path: Path relative to the repository root
        Returns: ArchiveAttributes for path
        """
        values: dict[bytes, AttributeValue] = {}
        try:
            if self._store is not None and self._tree is not None:
                for directory in _parent_directories(path):
                    gitattributes = self._directory_attributes(directory)
                    if gitattributes is not None:
                        relative = path[len(directory) + 1 :] if directory else path
                        _apply(gitattributes, relative, values)
            if self._gitattributes is not None:
                _apply(self._gitattributes, path, values)
        except (ValueError, re.error) as e:
            logger.debug("attribute lookup for %r failed: %s", path, e)
            return UNSET
        return ArchiveAttributes(
            ignore=values.get(EXPORT_IGNORE) is True,
            subst=values.get(EXPORT_SUBST) is True,
        )
