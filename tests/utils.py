# utils.py -- Test utilities for treearchive
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

"""Utility functions common to treearchive tests."""

from typing import Any, Union

from dulwich.objects import S_ISGITLINK, Blob, Commit, Tree

from treearchive.attributes import ArchiveAttributes, AttributeResolver

# 2010-01-01 00:00:00 UTC
DEFAULT_TIME = 1262304000

GITLINK_MODE = 0o160000
SYMLINK_MODE = 0o120000
EXECUTABLE_MODE = 0o100755
FILE_MODE = 0o100644
DIR_MODE = 0o040000

TreeSpec = dict[bytes, Union[bytes, tuple[int, bytes], "TreeSpec"]]


def make_commit(**attrs: Any) -> Commit:
    """Make a Commit object with a default set of members.

    Args:
      attrs: dict of attributes to overwrite from the default values.
    Returns: A newly initialized Commit object.
    """
    all_attrs = {
        "author": b"Test Author <test@nodomain.com>",
        "author_time": DEFAULT_TIME,
        "author_timezone": 0,
        "committer": b"Test Committer <test@nodomain.com>",
        "commit_time": DEFAULT_TIME,
        "commit_timezone": 0,
        "message": b"Test message.\n",
        "parents": [],
        "tree": b"0" * 40,
    }
    all_attrs.update(attrs)
    commit = Commit()
    for name, value in all_attrs.items():
        setattr(commit, name, value)
    return commit


def build_tree(store: Any, spec: TreeSpec) -> Tree:
    """Create a tree (and everything in it) in an object store.

    Values in spec may be:

    * bytes: contents of a regular file
    * a dict: a subdirectory
    * a (mode, bytes) tuple: a blob with the given mode, or for gitlinks the
      SHA of the submodule commit

    Args:
      store: Object store to add objects to
      spec: Mapping of entry names to contents
    Returns: The root Tree
    """
    tree = Tree()
    for name, value in spec.items():
        if isinstance(value, dict):
            subtree = build_tree(store, value)
            tree.add(name, DIR_MODE, subtree.id)
        elif isinstance(value, tuple):
            mode, data = value
            if S_ISGITLINK(mode):
                tree.add(name, mode, data)
            else:
                blob = Blob.from_string(data)
                store.add_object(blob)
                tree.add(name, mode, blob.id)
        else:
            blob = Blob.from_string(value)
            store.add_object(blob)
            tree.add(name, FILE_MODE, blob.id)
    store.add_object(tree)
    return tree


def commit_tree(repo: Any, spec: TreeSpec, **attrs: Any) -> Commit:
    """Build a tree in repo, commit it and point HEAD at the commit."""
    tree = build_tree(repo.object_store, spec)
    commit = make_commit(tree=tree.id, **attrs)
    repo.object_store.add_object(commit)
    repo.refs[b"HEAD"] = commit.id
    return commit


class DictAttributes(AttributeResolver):
    """Attribute resolver with fixed values, recording every lookup."""

    def __init__(self, values: "dict[bytes, ArchiveAttributes] | None" = None) -> None:
        super().__init__()
        self.values = values or {}
        self.queried: list[bytes] = []

    def check(self, path: bytes) -> ArchiveAttributes:
        self.queried.append(path)
        return self.values.get(path, ArchiveAttributes())
