# events.py -- Archive entries and the writer interface
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

"""Archive entries and the interface format writers implement.

The tree walker produces a stream of :class:`DirectoryEntry` and
:class:`FileEntry` values, in the order the archive needs them: a directory
always comes before anything inside it. Writers receive them one at a time
through :meth:`ArchiveWriter.begin_directory` and
:meth:`ArchiveWriter.write_file`.
"""

__all__ = [
    "ArchiveEvent",
    "ArchiveWriter",
    "DirectoryEntry",
    "EventCollector",
    "FileEntry",
]

from types import TracebackType
from typing import NamedTuple, Optional, Union


class DirectoryEntry(NamedTuple):
    """A directory, including the trailing slash of its path."""

    path: bytes
    mode: int


class FileEntry(NamedTuple):
    """A regular file or symlink with its final contents."""

    path: bytes
    mode: int
    content: bytes


ArchiveEvent = Union[DirectoryEntry, FileEntry]


class ArchiveWriter:
    """Base class for archive format writers.

    Subclasses raise :class:`treearchive.errors.WriterFailure` when the
    output can't be written.
    """

    def begin_directory(self, path: bytes, mode: int) -> None:
        """Add a directory entry.

        Args:
          path: Full path of the directory, ending in a slash
          mode: Git file mode of the entry
        """
        raise NotImplementedError(self.begin_directory)

    def write_file(self, path: bytes, mode: int, content: bytes) -> None:
        """Add a file or symlink entry.

        Args:
          path: Full path of the entry
          mode: Git file mode of the entry
          content: File contents, or the link target for symlinks
        """
        raise NotImplementedError(self.write_file)

    def write_event(self, event: ArchiveEvent) -> None:
        """Hand a single archive event to the writer."""
        if isinstance(event, DirectoryEntry):
            self.begin_directory(event.path, event.mode)
        else:
            self.write_file(event.path, event.mode, event.content)

    def close(self) -> None:
        """Finish the archive."""

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        # A failed archive is left unterminated.
        if exc_type is None:
            self.close()


class EventCollector(ArchiveWriter):
    """Writer that keeps the events it receives in memory."""

    def __init__(self) -> None:
        self.events: list[ArchiveEvent] = []

    def begin_directory(self, path: bytes, mode: int) -> None:
        self.events.append(DirectoryEntry(path, mode))

    def write_file(self, path: bytes, mode: int, content: bytes) -> None:
        self.events.append(FileEntry(path, mode, content))

    def paths(self) -> list[bytes]:
        """Return the paths of all collected events, in order."""
        return [event.path for event in self.events]
