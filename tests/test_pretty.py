# test_pretty.py -- Tests for commit formatting
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

"""Tests for treearchive.pretty."""

from treearchive.pretty import (
    format_commit,
    format_date_iso,
    format_date_normal,
    format_date_rfc2822,
    split_identity,
    split_message,
)

from . import TestCase
from .utils import make_commit


class FormatDateTests(TestCase):
    def test_normal_epoch(self) -> None:
        self.assertEqual(b"Thu Jan 1 00:00:00 1970 +0000", format_date_normal(0, 0))

    def test_normal_timezone(self) -> None:
        # 2010-01-01 00:00:00 UTC seen from +0100
        self.assertEqual(
            b"Fri Jan 1 01:00:00 2010 +0100", format_date_normal(1262304000, 3600)
        )

    def test_rfc2822(self) -> None:
        self.assertEqual(
            b"Fri, 1 Jan 2010 00:00:00 +0000", format_date_rfc2822(1262304000, 0)
        )

    def test_iso(self) -> None:
        self.assertEqual(
            b"2009-12-31 19:00:00 -0500", format_date_iso(1262304000, -5 * 3600)
        )


class SplitTests(TestCase):
    def test_identity(self) -> None:
        self.assertEqual(
            (b"Jane Doe", b"jane@example.com"),
            split_identity(b"Jane Doe <jane@example.com>"),
        )

    def test_identity_without_email(self) -> None:
        self.assertEqual((b"nobody", b""), split_identity(b"nobody"))

    def test_message(self) -> None:
        self.assertEqual(
            (b"Subject line continued", b"Body text.\n"),
            split_message(b"Subject line\ncontinued\n\nBody text.\n"),
        )

    def test_message_subject_only(self) -> None:
        self.assertEqual((b"Just a subject", b""), split_message(b"Just a subject\n"))


class FormatCommitTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.parent = b"1" * 40
        self.commit = make_commit(
            tree=b"2" * 40,
            parents=[self.parent],
            author=b"Jane Doe <jane@example.com>",
            committer=b"John Roe <john@example.com>",
            message=b"Fix the frobnicator\n\nIt was broken.\n",
        )

    def test_hashes(self) -> None:
        self.assertEqual(self.commit.id, format_commit(self.commit, b"%H"))
        self.assertEqual(self.commit.id[:7], format_commit(self.commit, b"%h"))
        self.assertEqual(b"2" * 40, format_commit(self.commit, b"%T"))
        self.assertEqual(b"2222222", format_commit(self.commit, b"%t"))
        self.assertEqual(self.parent, format_commit(self.commit, b"%P"))
        self.assertEqual(b"1111111", format_commit(self.commit, b"%p"))

    def test_identities(self) -> None:
        self.assertEqual(
            b"Jane Doe <jane@example.com>",
            format_commit(self.commit, b"%an <%ae>"),
        )
        self.assertEqual(
            b"John Roe <john@example.com>",
            format_commit(self.commit, b"%cn <%ce>"),
        )

    def test_dates(self) -> None:
        self.assertEqual(b"1262304000", format_commit(self.commit, b"%at"))
        self.assertEqual(b"1262304000", format_commit(self.commit, b"%ct"))
        self.assertEqual(
            b"Fri Jan 1 00:00:00 2010 +0000", format_commit(self.commit, b"%ad")
        )
        self.assertEqual(
            b"2010-01-01 00:00:00 +0000", format_commit(self.commit, b"%ci")
        )

    def test_message(self) -> None:
        self.assertEqual(b"Fix the frobnicator", format_commit(self.commit, b"%s"))
        self.assertEqual(b"It was broken.\n", format_commit(self.commit, b"%b"))
        self.assertEqual(self.commit.message, format_commit(self.commit, b"%B"))

    def test_literals(self) -> None:
        self.assertEqual(b"a\nb", format_commit(self.commit, b"a%nb"))
        self.assertEqual(b"100%", format_commit(self.commit, b"100%%"))
        self.assertEqual(b"\x00A", format_commit(self.commit, b"%x00%x41"))

    def test_unknown_placeholders(self) -> None:
        self.assertEqual(b"%q %aX %x4", format_commit(self.commit, b"%q %aX %x4"))
        self.assertEqual(b"end%", format_commit(self.commit, b"end%"))

    def test_no_placeholders(self) -> None:
        self.assertEqual(b"plain", format_commit(self.commit, b"plain"))
