# pretty.py -- Formatting commits for $Format:...$ substitution
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

"""Expand commit placeholders such as ``%H`` or ``%an``.

Only the placeholders that are useful inside exported files are supported:

====== ===============================================
``%H`` commit hash         ``%h`` abbreviated commit hash
``%T`` tree hash           ``%t`` abbreviated tree hash
``%P`` parent hashes       ``%p`` abbreviated parent hashes
``%an`` author name        ``%ae`` author email
``%ad`` author date        ``%aD`` author date, RFC 2822 style
``%ai`` author date, ISO   ``%at`` author date, UNIX timestamp
``%cn`` committer name     ``%ce`` committer email
``%cd`` committer date     ``%cD`` committer date, RFC 2822 style
``%ci`` committer date ISO ``%ct`` committer date, UNIX timestamp
``%s`` subject             ``%b`` body
``%B`` raw message         ``%e`` encoding
``%n`` newline             ``%%`` a literal ``%``
``%xNN`` byte with hex value NN
====== ===============================================

Anything else is copied to the output unchanged.
"""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from dulwich.objects import format_timezone

if TYPE_CHECKING:
    from dulwich.objects import Commit

ABBREV_LENGTH = 7

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def split_identity(identity: bytes) -> tuple[bytes, bytes]:
    """Split ``Name <email>`` into name and email."""
    name, sep, rest = identity.partition(b"<")
    if not sep:
        return identity.strip(), b""
    return name.strip(), rest.split(b">", 1)[0]


def _time_fields(timestamp: int, timezone: int) -> tuple[time.struct_time, str]:
    return (
        time.gmtime(timestamp + timezone),
        format_timezone(timezone).decode("ascii"),
    )


def format_date_normal(timestamp: int, timezone: int) -> bytes:
    """Format a date the way ``git log`` does by default."""
    tm, tz = _time_fields(timestamp, timezone)
    return (
        f"{_DAYS[tm.tm_wday]} {_MONTHS[tm.tm_mon - 1]} {tm.tm_mday} "
        f"{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d} {tm.tm_year} {tz}"
    ).encode("ascii")


def format_date_rfc2822(timestamp: int, timezone: int) -> bytes:
    tm, tz = _time_fields(timestamp, timezone)
    return (
        f"{_DAYS[tm.tm_wday]}, {tm.tm_mday} {_MONTHS[tm.tm_mon - 1]} {tm.tm_year} "
        f"{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d} {tz}"
    ).encode("ascii")


def format_date_iso(timestamp: int, timezone: int) -> bytes:
    tm, tz = _time_fields(timestamp, timezone)
    return (
        f"{tm.tm_year:04d}-{tm.tm_mon:02d}-{tm.tm_mday:02d} "
        f"{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d} {tz}"
    ).encode("ascii")


def split_message(message: bytes) -> tuple[bytes, bytes]:
    """Split a commit message into subject and body.

    The subject is the first paragraph with its lines joined by spaces.
    """
    lines = message.split(b"\n")
    i = 0
    while i < len(lines) and not lines[i].strip():
        i += 1
    subject = []
    while i < len(lines) and lines[i].strip():
        subject.append(lines[i].strip())
        i += 1
    while i < len(lines) and not lines[i].strip():
        i += 1
    return b" ".join(subject), b"\n".join(lines[i:])


def _date_placeholders(
    timestamp: Callable[["Commit"], int], timezone: Callable[["Commit"], int]
) -> dict[bytes, Callable[["Commit"], bytes]]:
    return {
        b"d": lambda c: format_date_normal(timestamp(c), timezone(c)),
        b"D": lambda c: format_date_rfc2822(timestamp(c), timezone(c)),
        b"i": lambda c: format_date_iso(timestamp(c), timezone(c)),
        b"t": lambda c: str(timestamp(c)).encode("ascii"),
    }


def _identity_placeholders(
    identity: Callable[["Commit"], bytes],
    timestamp: Callable[["Commit"], int],
    timezone: Callable[["Commit"], int],
) -> dict[bytes, Callable[["Commit"], bytes]]:
    placeholders = {
        b"n": lambda c: split_identity(identity(c))[0],
        b"e": lambda c: split_identity(identity(c))[1],
    }
    placeholders.update(_date_placeholders(timestamp, timezone))
    return placeholders


_SIMPLE: dict[bytes, Callable[["Commit"], bytes]] = {
    b"H": lambda c: c.id,
    b"h": lambda c: c.id[:ABBREV_LENGTH],
    b"T": lambda c: c.tree,
    b"t": lambda c: c.tree[:ABBREV_LENGTH],
    b"P": lambda c: b" ".join(c.parents),
    b"p": lambda c: b" ".join(p[:ABBREV_LENGTH] for p in c.parents),
    b"s": lambda c: split_message(c.message)[0],
    b"b": lambda c: split_message(c.message)[1],
    b"B": lambda c: c.message,
    b"e": lambda c: c.encoding or b"",
    b"n": lambda c: b"\n",
    b"%": lambda c: b"%",
}

_AUTHOR = _identity_placeholders(
    lambda c: c.author, lambda c: c.author_time, lambda c: c.author_timezone
)
_COMMITTER = _identity_placeholders(
    lambda c: c.committer, lambda c: c.commit_time, lambda c: c.commit_timezone
)

_HEXDIGITS = b"0123456789abcdefABCDEF"


def _expand(commit: "Commit", fmt: bytes, i: int) -> tuple[bytes, int]:
    """Expand the placeholder starting just after the '%' at fmt[i - 1].

    Returns the expansion and the index to continue scanning from. An
    unknown placeholder expands to a bare '%' and scanning continues at i,
    so the characters after it are copied unchanged.
    """
    key = fmt[i : i + 1]
    if key == b"a" or key == b"c":
        table = _AUTHOR if key == b"a" else _COMMITTER
        func = table.get(fmt[i + 1 : i + 2])
        if func is not None:
            return func(commit), i + 2
    elif key == b"x":
        digits = fmt[i + 1 : i + 3]
        if len(digits) == 2 and all(d in _HEXDIGITS for d in digits):
            return bytes([int(digits, 16)]), i + 3
    else:
        func = _SIMPLE.get(key)
        if func is not None:
            return func(commit), i + 1
    return b"%", i


def format_commit(commit: "Commit", fmt: bytes) -> bytes:
    """Expand the placeholders in fmt for commit.

    Args:
      commit: Commit to take values from
      fmt: Format string, e.g. ``b"%h %s"``
    Returns: The formatted text
    """
    out = []
    i = 0
    while True:
        j = fmt.find(b"%", i)
        if j == -1:
            out.append(fmt[i:])
            break
        out.append(fmt[i:j])
        expansion, i = _expand(commit, fmt, j + 1)
        out.append(expansion)
    return b"".join(out)
