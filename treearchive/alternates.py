# alternates.py -- Alternate object stores registered while archiving
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

"""Object lookup across a primary store and alternates added on the fly.

Submodules that are checked out below the working tree have their own object
databases. While archiving, those databases are registered here so that the
submodule's trees and blobs can be found. Unlike
``DiskObjectStore.add_alternate_path``, nothing is written to
``objects/info/alternates``; the registry only lives as long as the archive
run that created it.
"""

import os
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Union

from dulwich.object_store import DiskObjectStore
from dulwich.objects import ShaFile

from .log_utils import getLogger

if TYPE_CHECKING:
    from dulwich.object_store import BaseObjectStore

logger = getLogger(__name__)


class AlternateStoreRegistry:
    """An append-only set of object stores consulted after a primary store."""

    def __init__(
        self,
        primary: "BaseObjectStore",
        store_factory: Callable[[str], "BaseObjectStore"] = DiskObjectStore,
    ) -> None:
        """Create a registry.

        Args:
          primary: Object store that is always consulted first
          store_factory: Callable that opens an object store for a path
        """
        self.primary = primary
        self._store_factory = store_factory
        self._alternates: list[tuple[str, "BaseObjectStore"]] = []
        self._by_path: dict[str, "BaseObjectStore"] = {}

    def add_alternate(self, path: Union[str, bytes]) -> "BaseObjectStore":
        """Register the object directory at path as an alternate.

        Registering a path that is already known returns the store that was
        registered for it earlier.

        Args:
          path: Path to an ``objects`` directory
        Returns: The object store for path
        """
        key = os.path.realpath(os.fsdecode(path))
        try:
            return self._by_path[key]
        except KeyError:
            pass
        store = self._store_factory(key)
        self._alternates.append((key, store))
        self._by_path[key] = store
        logger.debug("added alternate object store %s", key)
        return store

    @property
    def paths(self) -> list[str]:
        """Paths of the registered alternates, in registration order."""
        return [path for path, _store in self._alternates]

    def __iter__(self) -> Iterator["BaseObjectStore"]:
        return iter([store for _path, store in self._alternates])

    def __len__(self) -> int:
        return len(self._alternates)

    def get_raw(self, sha: bytes) -> tuple[int, bytes]:
        """Obtain the raw contents of an object.

        Args:
          sha: Hex or binary SHA of the object
        Returns: Tuple with numeric type and object contents
        Raises:
          KeyError: if no store has the object
        """
        try:
            return self.primary.get_raw(sha)
        except KeyError:
            pass
        for _path, store in self._alternates:
            try:
                return store.get_raw(sha)
            except KeyError:
                continue
        raise KeyError(sha)

    def __contains__(self, sha: bytes) -> bool:
        if sha in self.primary:
            return True
        return any(sha in store for _path, store in self._alternates)

    def __getitem__(self, sha: bytes) -> ShaFile:
        type_num, raw = self.get_raw(sha)
        return ShaFile.from_raw_string(type_num, raw, sha=sha)
