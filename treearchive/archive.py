# archive.py -- Creating archives from git trees
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

"""Create tar and zip archives of trees in a git repository.

The simplest way to use this module is :func:`write_archive`::

    from dulwich.repo import Repo
    from treearchive.archive import write_archive

    with Repo(".") as repo, open("out.zip", "wb") as f:
        write_archive(repo, "HEAD", f, format="zip", prefix=b"project/")

Lower level callers can build an :class:`~treearchive.walk.ArchiveRequest`
themselves and pass it to :func:`write_archive_entries` together with any
:class:`~treearchive.events.ArchiveWriter`.
"""

__all__ = [
    "ResolvedTree",
    "list_formats",
    "parse_treeish",
    "write_archive",
    "write_archive_entries",
]

import stat
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, BinaryIO, NamedTuple, Optional, Union

from dulwich.errors import NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Commit, Tag, Tree
from dulwich.objectspec import parse_object

from .alternates import AlternateStoreRegistry
from .attributes import AttributeResolver
from .config import ArchiveConfig
from .events import ArchiveWriter
from .log_utils import getLogger
from .pretty import format_commit
from .submodule import SubmodulePolicy, SubmoduleResolver
from .subst import CommitFormatter
from .walk import ArchiveRequest, TreeWalker
from .writers import ARCHIVERS, check_compression_level, lookup_archiver, open_writer

if TYPE_CHECKING:
    from dulwich.filters import FilterBlobNormalizer
    from dulwich.object_store import BaseObjectStore
    from dulwich.repo import BaseRepo

logger = getLogger(__name__)


class ResolvedTree(NamedTuple):
    """The tree selected by a tree-ish argument.

    Attributes:
      tree_id: Hex SHA of the tree to archive
      commit: Commit the tree belongs to, or None for a bare tree
      archive_time: Commit time, or the current time for a bare tree
      root_tree: Hex SHA of the top-level tree; differs from tree_id when
        a subdirectory was selected
      subdir: Repository relative path of tree_id
    """

    tree_id: bytes
    commit: Optional[Commit]
    archive_time: int
    root_tree: bytes
    subdir: bytes = b""


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def parse_treeish(
    repo: "BaseRepo",
    treeish: Union[str, bytes],
    subdir: Optional[Union[str, bytes]] = None,
) -> ResolvedTree:
    """Resolve a tree-ish argument.

    Tags are peeled; commits give both their tree and the commit itself.

    Args:
      repo: Repository to look in
      treeish: Name of a commit, tag or tree
      subdir: Only archive this directory of the tree
    Returns: A ResolvedTree
    Raises:
      KeyError: if treeish can not be found
      ValueError: if treeish does not name a tree, or subdir is not a
        directory in it
    """
    name = _to_bytes(treeish)
    try:
        obj = parse_object(repo, name)
    except AssertionError:
        # Some dulwich releases assert on names that are neither refs nor SHAs.
        raise KeyError(name) from None
    while isinstance(obj, Tag):
        obj = repo[obj.object[1]]
    if isinstance(obj, Commit):
        commit: Optional[Commit] = obj
        tree_id = obj.tree
        archive_time = obj.commit_time
    elif isinstance(obj, Tree):
        commit = None
        tree_id = obj.id
        archive_time = int(time.time())
    else:
        raise ValueError("not a tree object")

    root_tree = tree_id
    subdir_path = _to_bytes(subdir).strip(b"/") if subdir else b""
    if subdir_path:
        try:
            mode, tree_id = tree_lookup_path(
                repo.object_store.__getitem__, root_tree, subdir_path
            )
        except (KeyError, NotTreeError):
            raise ValueError("current working directory is untracked") from None
        if not stat.S_ISDIR(mode):
            raise ValueError("current working directory is untracked")
    return ResolvedTree(tree_id, commit, archive_time, root_tree, subdir_path)


def list_formats() -> list[str]:
    """Return the names of the supported archive formats."""
    return list(ARCHIVERS)


def write_archive_entries(
    store: "BaseObjectStore",
    request: ArchiveRequest,
    writer: ArchiveWriter,
    attributes: Optional[AttributeResolver] = None,
    normalizer: Optional["FilterBlobNormalizer"] = None,
    worktree: Optional[Union[str, bytes]] = None,
    formatter: CommitFormatter = format_commit,
) -> AlternateStoreRegistry:
    """Write the entries of an archive.

    Args:
      store: Primary object store
      request: What to archive
      writer: Writer receiving the entries; it is not closed
      attributes: Resolver for export-ignore and export-subst
      normalizer: Converts regular files to their working tree form
      worktree: Working tree in which submodules may be checked out
      formatter: Commit formatter for ``$Format:...$`` substitution
    Returns: The registry of object stores used, including any submodule
      stores that were added during the walk
    Raises:
      ArchiveError: if the archive could not be completed
    """
    registry = AlternateStoreRegistry(store)
    submodules = SubmoduleResolver(request.submodule_policy, registry, worktree)
    walker = TreeWalker(
        registry,
        request,
        writer,
        attributes=attributes,
        normalizer=normalizer,
        submodules=submodules,
        formatter=formatter,
    )
    walker.run()
    return registry


def _worktree(repo: "BaseRepo") -> Optional[str]:
    if getattr(repo, "bare", True):
        return None
    return getattr(repo, "path", None)


def write_archive(
    repo: "BaseRepo",
    treeish: Union[str, bytes],
    outstream: BinaryIO,
    format: str = "tar",
    prefix: Union[str, bytes] = b"",
    paths: Sequence[Union[str, bytes]] = (),
    submodules: SubmodulePolicy = SubmodulePolicy.NONE,
    verbose: bool = False,
    compression_level: Optional[int] = None,
    subdir: Optional[Union[str, bytes]] = None,
) -> None:
    """Write an archive of a tree in repo.

    The format and compression level are checked before anything is
    written to outstream.

    Args:
      repo: Repository to archive from
      treeish: Commit, tag or tree to archive
      outstream: Binary stream to write the archive to
      format: Archive format name, see :func:`list_formats`
      prefix: Prefix prepended to every path in the archive
      paths: Only include these paths
      submodules: Which submodules to include
      verbose: Log every path at INFO level
      compression_level: zlib level 0-9, for formats that compress
      subdir: Only archive this directory of the tree
    Raises:
      UnsupportedOption: for an unknown format or unsupported level
      ArchiveError: if the archive could not be completed
    """
    archiver = lookup_archiver(format)
    check_compression_level(archiver, compression_level)

    resolved = parse_treeish(repo, treeish, subdir)
    config = ArchiveConfig.from_repo(repo)
    request = ArchiveRequest(
        root_tree=resolved.tree_id,
        base_prefix=_to_bytes(prefix),
        path_filters=tuple(_to_bytes(p) for p in paths),
        submodule_policy=submodules,
        verbose=verbose,
        associated_commit=resolved.commit,
        root_path=resolved.subdir,
    )
    attributes = AttributeResolver.from_repo(repo, resolved.root_tree)
    normalizer = repo.get_blob_normalizer()
    commit_id = resolved.commit.id if resolved.commit is not None else None
    logger.debug(
        "writing %s archive of tree %s (commit %s)",
        archiver.name,
        resolved.tree_id,
        commit_id,
    )

    writer = open_writer(
        archiver,
        outstream,
        resolved.archive_time,
        commit_id=commit_id,
        config=config,
        compression_level=compression_level,
    )
    with writer:
        write_archive_entries(
            repo.object_store,
            request,
            writer,
            attributes=attributes,
            normalizer=normalizer,
            worktree=_worktree(repo),
        )
