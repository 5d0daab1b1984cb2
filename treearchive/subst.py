# subst.py -- $Format:...$ keyword substitution
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

"""Substitution of ``$Format:<spec>$`` placeholders in exported files."""

from collections.abc import Callable
from typing import TYPE_CHECKING

from .pretty import format_commit

if TYPE_CHECKING:
    from dulwich.objects import Commit

FORMAT_MARKER = b"$Format:"

CommitFormatter = Callable[["Commit", bytes], bytes]


def format_subst(
    commit: "Commit", data: bytes, formatter: CommitFormatter = format_commit
) -> bytes:
    """Replace every ``$Format:<spec>$`` in data.

    The content is treated as opaque bytes. Text produced by the formatter is
    not scanned again, and a ``$Format:`` without a closing ``$`` is left
    alone.

    Args:
      commit: Commit to format placeholders for
      data: File contents
      formatter: Callable taking a commit and a format spec
    Returns: New file contents
    """
    out = []
    pos = 0
    while True:
        start = data.find(FORMAT_MARKER, pos)
        if start == -1:
            break
        end = data.find(b"$", start + len(FORMAT_MARKER))
        if end == -1:
            break
        out.append(data[pos:start])
        out.append(formatter(commit, data[start + len(FORMAT_MARKER) : end]))
        pos = end + 1
    out.append(data[pos:])
    return b"".join(out)
