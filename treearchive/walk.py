# walk.py -- Walking a tree and emitting archive entries
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

"""Walk a tree depth first and hand its entries to an archive writer.

The walk is pre-order: every directory (and every submodule) is written
before its contents, and entries are visited in git's canonical tree order,
where a directory sorts as if its name ended in a slash. For each entry the
visitor returns one of :data:`Visit.CONTINUE`, :data:`Visit.RECURSE` or an
:class:`Abort` carrying the error that stops the walk. Entries already handed
to the writer stay there when a walk aborts.

File contents go through the same steps ``git archive`` uses: the blob is
read from the object store, regular files are converted to their working
tree form, and ``$Format:...$`` placeholders are expanded for paths with the
``export-subst`` attribute when the archive is made from a commit.
"""

__all__ = [
    "Abort",
    "ArchiveRequest",
    "PathFilter",
    "TreeWalker",
    "Visit",
    "read_archive_content",
]

import enum
import stat
import zlib
from typing import TYPE_CHECKING, NamedTuple, Optional, Union

from dulwich.errors import ApplyDeltaError, ChecksumMismatch, ObjectFormatException
from dulwich.objects import S_ISGITLINK, Blob, Commit, ShaFile, Tree, object_class

from .alternates import AlternateStoreRegistry
from .attributes import AttributeResolver
from .errors import (
    ArchiveError,
    IntegrityMismatch,
    ObjectUnreadable,
    WriterFailure,
)
from .events import ArchiveEvent, ArchiveWriter, DirectoryEntry, FileEntry
from .log_utils import getLogger
from .pretty import format_commit
from .submodule import SubmodulePolicy, SubmoduleResolver
from .subst import CommitFormatter, format_subst

if TYPE_CHECKING:
    from dulwich.filters import FilterBlobNormalizer
    from dulwich.object_store import BaseObjectStore
    from dulwich.objects import TreeEntry

logger = getLogger("treearchive.archive")

# Mode used for the directory named by a prefix ending in a slash.
PREFIX_DIRECTORY_MODE = 0o40777

_CORRUPT_OBJECT_ERRORS = (
    KeyError,
    ApplyDeltaError,
    ChecksumMismatch,
    ObjectFormatException,
    zlib.error,
)


class Visit(enum.Enum):
    """What the walker should do after visiting an entry."""

    CONTINUE = "continue"
    RECURSE = "recurse"


class Abort(NamedTuple):
    """Stop the walk because of error."""

    error: ArchiveError


VisitResult = Union[Visit, Abort]


class PathFilter:
    """Restricts an archive to a set of literal paths.

    A path is included if it is one of the filter paths, lies below one of
    them, or is a directory leading to one of them. An empty filter includes
    everything.
    """

    def __init__(self, paths: tuple[bytes, ...] = ()) -> None:
        self.paths = tuple(p.strip(b"/") for p in paths)

    def __bool__(self) -> bool:
        return bool(self.paths)

    def matches(self, path: bytes, is_dir: bool = False) -> bool:
        """Check whether path is included.

        Args:
          path: Path relative to the archived tree, without trailing slash
          is_dir: Whether path is a directory or submodule
        """
        if not self.paths:
            return True
        for p in self.paths:
            if not p or path == p or path.startswith(p + b"/"):
                return True
            if is_dir and p.startswith(path + b"/"):
                return True
        return False


class ArchiveRequest(NamedTuple):
    """What to archive and how.

    Attributes:
      root_tree: Hex SHA of the tree to archive
      base_prefix: Prefix prepended verbatim to every path
      path_filters: Literal paths to restrict the archive to
      submodule_policy: Which submodules to descend into
      verbose: Report every path as it is written
      associated_commit: Commit the tree came from, if any; used for
        ``$Format:...$`` substitution
      root_path: Repository relative directory root_tree was taken from,
        used for attribute and submodule lookups
    """

    root_tree: bytes
    base_prefix: bytes = b""
    path_filters: tuple[bytes, ...] = ()
    submodule_policy: SubmodulePolicy = SubmodulePolicy.NONE
    verbose: bool = False
    associated_commit: Optional[Commit] = None
    root_path: bytes = b""


def _type_name(type_num: int) -> str:
    cls = object_class(type_num)
    if cls is None:
        return f"object of type {type_num}"
    return cls.type_name.decode("ascii")


def _read_object(
    store: Union["BaseObjectStore", AlternateStoreRegistry],
    sha: bytes,
    path: bytes,
    expected: type[ShaFile],
) -> bytes:
    try:
        type_num, data = store.get_raw(sha)
    except _CORRUPT_OBJECT_ERRORS as e:
        raise ObjectUnreadable(sha, path) from e
    if type_num != expected.type_num:
        raise IntegrityMismatch(
            sha, path, expected.type_name.decode("ascii"), _type_name(type_num)
        )
    return data


def _parse_object(sha: bytes, path: bytes, cls: type[ShaFile], data: bytes) -> ShaFile:
    try:
        return ShaFile.from_raw_string(cls.type_num, data, sha=sha)
    except ObjectFormatException as e:
        raise ObjectUnreadable(sha, path) from e


def read_archive_content(
    store: Union["BaseObjectStore", AlternateStoreRegistry],
    sha: bytes,
    path: bytes,
    mode: int,
    normalizer: Optional["FilterBlobNormalizer"] = None,
    commit: Optional[Commit] = None,
    formatter: CommitFormatter = format_commit,
) -> bytes:
    """Produce the archived contents of a file or symlink.

    Args:
      store: Object store to read the blob from
      sha: Hex SHA of the blob
      path: Repository relative path of the entry
      mode: Mode of the tree entry
      normalizer: Converts regular files to their working tree form
      commit: Commit to substitute ``$Format:...$`` placeholders with, or
        None to leave them alone
      formatter: Commit formatter used for substitution
    Returns: The contents to store in the archive
    Raises:
      ObjectUnreadable: if the blob can not be read
      IntegrityMismatch: if sha does not refer to a blob
    """
    data = _read_object(store, sha, path, Blob)
    if not stat.S_ISREG(mode):
        return data
    if normalizer is not None:
        blob = normalizer.checkout_normalize(Blob.from_string(data), path)
        data = blob.as_raw_string()
    if commit is not None:
        data = format_subst(commit, data, formatter)
    return data


class TreeWalker:
    """Walks a tree and writes its entries to an ArchiveWriter."""

    def __init__(
        self,
        store: Union["BaseObjectStore", AlternateStoreRegistry],
        request: ArchiveRequest,
        writer: ArchiveWriter,
        attributes: Optional[AttributeResolver] = None,
        normalizer: Optional["FilterBlobNormalizer"] = None,
        submodules: Optional[SubmoduleResolver] = None,
        formatter: CommitFormatter = format_commit,
    ) -> None:
        """Create a walker.

        Args:
          store: Object store, or a registry that may gain alternates for
            submodules during the walk
          request: What to archive
          writer: Writer receiving the entries
          attributes: Resolver for export-ignore and export-subst
          normalizer: Converts regular files to their working tree form
          submodules: Decides which submodules to descend into; defaults to
            a resolver for a repository without working tree
          formatter: Commit formatter used for substitution
        """
        if not isinstance(store, AlternateStoreRegistry):
            store = AlternateStoreRegistry(store)
        self.store = store
        self.request = request
        self.writer = writer
        self.attributes = attributes if attributes is not None else AttributeResolver()
        self.normalizer = normalizer
        if submodules is None:
            submodules = SubmoduleResolver(request.submodule_policy, store)
        self.submodules = submodules
        self.formatter = formatter
        self.path_filter = PathFilter(request.path_filters)

    def _repo_path(self, path: bytes) -> bytes:
        """Strip the archive prefix and return the repository relative path."""
        relpath = path[len(self.request.base_prefix) :]
        if self.request.root_path:
            return self.request.root_path.rstrip(b"/") + b"/" + relpath
        return relpath

    def _emit(self, event: ArchiveEvent) -> Optional[Abort]:
        if self.request.verbose:
            logger.info("%s", event.path.decode("utf-8", "replace"))
        try:
            self.writer.write_event(event)
        except ArchiveError as e:
            return Abort(e)
        except OSError as e:
            return Abort(WriterFailure(e))
        return None

    def visit(self, entry: "TreeEntry", path: bytes) -> VisitResult:
        """Visit a single tree entry.

        Args:
          entry: The tree entry
          path: Full archive path of the entry, including the prefix
        Returns: Whether to descend into the entry, or why to stop
        """
        repo_path = self._repo_path(path)
        attrs = self.attributes.check(repo_path)
        if attrs.ignore:
            return Visit.CONTINUE

        if stat.S_ISDIR(entry.mode) or S_ISGITLINK(entry.mode):
            abort = self._emit(DirectoryEntry(path + b"/", entry.mode))
            if abort is not None:
                return abort
            if stat.S_ISDIR(entry.mode):
                return Visit.RECURSE
            try:
                recurse = self.submodules.check_gitlink(repo_path)
            except ArchiveError as e:
                return Abort(e)
            return Visit.RECURSE if recurse else Visit.CONTINUE

        commit = self.request.associated_commit if attrs.subst else None
        try:
            content = read_archive_content(
                self.store,
                entry.sha,
                repo_path,
                entry.mode,
                normalizer=self.normalizer,
                commit=commit,
                formatter=self.formatter,
            )
        except ArchiveError as e:
            return Abort(e)
        return self._emit(FileEntry(path, entry.mode, content)) or Visit.CONTINUE

    def _subtree_id(self, entry: "TreeEntry", path: bytes) -> bytes:
        if not S_ISGITLINK(entry.mode):
            return entry.sha
        # Always the commit recorded in the gitlink, never the checkout's HEAD.
        data = _read_object(self.store, entry.sha, self._repo_path(path), Commit)
        commit = _parse_object(entry.sha, self._repo_path(path), Commit, data)
        assert isinstance(commit, Commit)
        return commit.tree

    def walk(self, tree_id: bytes, base: bytes, depth: int = 0) -> Optional[Abort]:
        """Walk the tree tree_id, whose entries live below base.

        Args:
          tree_id: Hex SHA of the tree
          base: Archive path of the tree, including the prefix and a
            trailing slash unless it is empty
          depth: Nesting depth of the tree
        Returns: None on success, or the Abort that stopped the walk
        """
        logger.debug("walking tree %s at %r (depth %d)", tree_id, base, depth)
        repo_base = self._repo_path(base)
        try:
            data = _read_object(self.store, tree_id, repo_base, Tree)
            tree = _parse_object(tree_id, repo_base, Tree, data)
        except ArchiveError as e:
            return Abort(e)
        assert isinstance(tree, Tree)

        for entry in tree.iteritems():
            path = base + entry.path
            is_dir = stat.S_ISDIR(entry.mode) or S_ISGITLINK(entry.mode)
            if not self.path_filter.matches(path[len(self.request.base_prefix) :], is_dir):
                continue
            result = self.visit(entry, path)
            if isinstance(result, Abort):
                return result
            if result is Visit.RECURSE:
                try:
                    subtree_id = self._subtree_id(entry, path)
                except ArchiveError as e:
                    return Abort(e)
                abort = self.walk(subtree_id, path + b"/", depth + 1)
                if abort is not None:
                    return abort
        return None

    def run(self) -> None:
        """Write the whole archive contents.

        Raises:
          ArchiveError: the error that aborted the walk
        """
        base = self.request.base_prefix
        if base.endswith(b"/"):
            length = len(base)
            while length > 1 and base[length - 2 : length - 1] == b"/":
                length -= 1
            abort = self._emit(DirectoryEntry(base[:length], PREFIX_DIRECTORY_MODE))
            if abort is not None:
                raise abort.error
        abort = self.walk(self.request.root_tree, base)
        if abort is not None:
            raise abort.error
