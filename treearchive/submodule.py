# submodule.py -- Deciding whether to descend into submodules
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

"""Handling of submodules (gitlinks) while archiving.

A gitlink entry only records the SHA of a commit in another repository. To
include the submodule's contents, the object database of its checkout is
registered as an alternate, after which the recorded commit's tree can be
walked like any other. The HEAD of the checkout is never consulted.
"""

__all__ = [
    "SubmodulePolicy",
    "SubmoduleResolver",
    "include_repository",
    "resolve_gitdir",
]

import enum
import os
import stat
from typing import TYPE_CHECKING, Optional, Union

from dulwich.repo import read_gitfile

from .errors import SubmoduleCorrupt, UnsupportedOption
from .log_utils import getLogger

if TYPE_CHECKING:
    from .alternates import AlternateStoreRegistry

logger = getLogger(__name__)


class SubmodulePolicy(enum.Enum):
    """Which submodules to include in an archive."""

    NONE = "none"
    CHECKED_OUT = "checkedout"
    ALL = "all"

    @classmethod
    def parse(cls, name: str) -> "SubmodulePolicy":
        """Look up a policy by its command line name.

        Raises:
          UnsupportedOption: if name is not a known policy
        """
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedOption(f"Invalid submodule kind: {name}") from None


def resolve_gitdir(path: str) -> Optional[str]:
    """Find the repository directory for a ``.git`` path.

    path may be a directory, or a file containing a ``gitdir:`` line that
    points at the real directory.

    Args:
      path: Path of a ``.git`` directory or file
    Returns: The repository directory, or None if path does not exist
    Raises:
      SubmoduleCorrupt: if path exists but does not lead to a directory
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise SubmoduleCorrupt(path, f"could not be inspected: {e.strerror}") from e

    if stat.S_ISREG(st.st_mode):
        try:
            with open(path, "rb") as f:
                target = read_gitfile(f)
        except ValueError as e:
            raise SubmoduleCorrupt(path, "is not a valid gitdir file") from e
        except OSError as e:
            raise SubmoduleCorrupt(path, f"could not be read: {e.strerror}") from e
        if not os.path.isabs(target):
            target = os.path.join(os.path.dirname(path), target)
        path = target
        try:
            st = os.stat(path)
        except OSError as e:
            raise SubmoduleCorrupt(path, f"could not be inspected: {e.strerror}") from e

    if not stat.S_ISDIR(st.st_mode):
        raise SubmoduleCorrupt(path, "is not a directory")
    return path


def include_repository(registry: "AlternateStoreRegistry", path: str) -> bool:
    """Register the objects of the repository at path as an alternate.

    Args:
      registry: Registry to add the object store to
      path: Path of the submodule's ``.git`` directory or file
    Returns: True if a store was registered, False if nothing is checked out
    Raises:
      SubmoduleCorrupt: if the checkout exists but is not usable
    """
    gitdir = resolve_gitdir(path)
    if gitdir is None:
        return False
    objects_dir = os.path.join(gitdir, "objects")
    if not os.path.isdir(objects_dir):
        raise SubmoduleCorrupt(objects_dir, "is not a directory")
    registry.add_alternate(objects_dir)
    return True


class SubmoduleResolver:
    """Decides for each gitlink whether the walker should descend into it."""

    def __init__(
        self,
        policy: SubmodulePolicy,
        registry: "AlternateStoreRegistry",
        worktree: Optional[Union[str, bytes]] = None,
    ) -> None:
        """Create a resolver.

        Args:
          policy: Which submodules to descend into
          registry: Registry that receives submodule object stores
          worktree: Root of the working tree; None for bare repositories,
            which never have submodules checked out
        """
        self.policy = policy
        self.registry = registry
        self.worktree = None if worktree is None else os.fsdecode(worktree)

    def gitdir_path(self, path: bytes) -> Optional[str]:
        """Return the ``.git`` path of the checkout for a gitlink path."""
        if self.worktree is None:
            return None
        return os.path.join(self.worktree, os.fsdecode(path.rstrip(b"/")), ".git")

    def _include(self, path: bytes) -> bool:
        gitdir = self.gitdir_path(path)
        if gitdir is None:
            return False
        return include_repository(self.registry, gitdir)

    def check_gitlink(self, path: bytes) -> bool:
        """Decide whether to descend into the submodule at path.

        Args:
          path: Repository relative path of the gitlink
        Returns: True if the walker should recurse into the gitlink's tree
        Raises:
          SubmoduleCorrupt: if a checkout exists but is broken
        """
        if self.policy is SubmodulePolicy.NONE:
            return False
        if self.policy is SubmodulePolicy.ALL:
            # Recurse even without a checkout; missing objects fail later.
            if not self._include(path):
                logger.debug("submodule %r is not checked out", path)
            return True
        return self._include(path)
