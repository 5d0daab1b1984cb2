# errors.py -- Exceptions raised while generating archives
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

"""Exception classes raised while generating archives.

Every error that aborts an archive run derives from :class:`ArchiveError`.
A submodule that is simply not checked out is not an error; see
:func:`treearchive.submodule.include_repository`.
"""

__all__ = [
    "ArchiveError",
    "IntegrityMismatch",
    "ObjectUnreadable",
    "SubmoduleCorrupt",
    "UnsupportedOption",
    "WriterFailure",
]

from typing import Optional, Union


def _display(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return value


class ArchiveError(Exception):
    """Base class for errors that abort archive generation."""


class ObjectUnreadable(ArchiveError):
    """An object referenced by the tree could not be read from any store."""

    def __init__(self, sha: bytes, path: Optional[bytes] = None) -> None:
        """Initialize an ObjectUnreadable exception.

        Args:
            sha: Hex SHA of the object that could not be read.
            path: Path of the tree entry that referenced the object.
        """
        self.sha = sha
        self.path = path
        message = f"cannot read {_display(sha)}"
        if path is not None:
            message += f" ({_display(path)})"
        ArchiveError.__init__(self, message)


class IntegrityMismatch(ArchiveError):
    """A tree entry's mode disagrees with the type of the stored object."""

    def __init__(
        self, sha: bytes, path: bytes, expected: str, actual: str
    ) -> None:
        """Initialize an IntegrityMismatch exception.

        Args:
            sha: Hex SHA of the offending object.
            path: Path of the tree entry.
            expected: Object type implied by the entry mode.
            actual: Object type found in the store.
        """
        self.sha = sha
        self.path = path
        self.expected = expected
        self.actual = actual
        ArchiveError.__init__(
            self,
            f"{_display(path)}: object {_display(sha)} is a {actual}, "
            f"expected a {expected}",
        )


class SubmoduleCorrupt(ArchiveError):
    """A checked-out submodule exists but is not a usable repository."""

    def __init__(self, path: Union[str, bytes], reason: str) -> None:
        """Initialize a SubmoduleCorrupt exception.

        Args:
            path: Filesystem path that was probed.
            reason: Description of what is wrong with it.
        """
        self.path = path
        self.reason = reason
        ArchiveError.__init__(self, f"Submodule gitdir {_display(path)} {reason}")


class WriterFailure(ArchiveError):
    """The archive writer or its output stream failed."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        ArchiveError.__init__(self, str(error))


class UnsupportedOption(ArchiveError):
    """An option is not supported by the requested format or mode."""
