# test_writers.py -- Tests for the tar and zip writers
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

"""Tests for treearchive.writers."""

import stat
import tarfile
import zipfile
from io import BytesIO

from treearchive.config import ArchiveConfig
from treearchive.errors import UnsupportedOption, WriterFailure
from treearchive.writers import (
    ARCHIVERS,
    TarArchiveWriter,
    ZipArchiveWriter,
    archiver_for_filename,
    check_compression_level,
    lookup_archiver,
    open_writer,
    zip_date_time,
)

from . import TestCase
from .utils import DEFAULT_TIME, DIR_MODE, EXECUTABLE_MODE, FILE_MODE, SYMLINK_MODE

COMMIT_ID = b"0123456789abcdef0123456789abcdef01234567"


class BrokenStream:
    def write(self, data):
        raise OSError("No space left on device")

    def flush(self):
        pass


def write_sample(writer) -> None:
    writer.begin_directory(b"prefix/", 0o40777)
    writer.begin_directory(b"prefix/dir/", DIR_MODE)
    writer.write_file(b"prefix/dir/file.txt", FILE_MODE, b"contents\n")
    writer.write_file(b"prefix/run.sh", EXECUTABLE_MODE, b"#!/bin/sh\n")
    writer.write_file(b"prefix/link", SYMLINK_MODE, b"dir/file.txt")
    writer.close()


class TarArchiveWriterTests(TestCase):
    def archive(self, **kwargs) -> tarfile.TarFile:
        out = BytesIO()
        write_sample(TarArchiveWriter(out, DEFAULT_TIME, **kwargs))
        out.seek(0)
        tar = tarfile.open(fileobj=out, mode="r:")
        self.addCleanup(tar.close)
        return tar

    def test_members(self) -> None:
        tar = self.archive()
        self.assertEqual(
            ["prefix", "prefix/dir", "prefix/dir/file.txt", "prefix/run.sh", "prefix/link"],
            tar.getnames(),
        )
        self.assertEqual(
            b"contents\n", tar.extractfile("prefix/dir/file.txt").read()
        )

    def test_modes_default_umask(self) -> None:
        tar = self.archive()
        self.assertEqual(0o775, tar.getmember("prefix").mode)
        self.assertEqual(0o775, tar.getmember("prefix/dir").mode)
        self.assertEqual(0o664, tar.getmember("prefix/dir/file.txt").mode)
        self.assertEqual(0o775, tar.getmember("prefix/run.sh").mode)

    def test_modes_custom_umask(self) -> None:
        tar = self.archive(umask=0o022)
        self.assertEqual(0o755, tar.getmember("prefix/dir").mode)
        self.assertEqual(0o644, tar.getmember("prefix/dir/file.txt").mode)
        self.assertEqual(0o755, tar.getmember("prefix/run.sh").mode)

    def test_symlink(self) -> None:
        member = self.archive().getmember("prefix/link")
        self.assertTrue(member.issym())
        self.assertEqual("dir/file.txt", member.linkname)
        self.assertEqual(0o777, member.mode)

    def test_ownership_and_time(self) -> None:
        for member in self.archive().getmembers():
            self.assertEqual(DEFAULT_TIME, member.mtime)
            self.assertEqual((0, 0), (member.uid, member.gid))
            self.assertEqual(("root", "root"), (member.uname, member.gname))

    def test_commit_comment(self) -> None:
        tar = self.archive(commit_id=COMMIT_ID)
        tar.getmembers()
        self.assertEqual(COMMIT_ID.decode("ascii"), tar.pax_headers["comment"])

    def test_no_commit_comment(self) -> None:
        tar = self.archive()
        tar.getmembers()
        self.assertNotIn("comment", tar.pax_headers)

    def test_deterministic(self) -> None:
        first = BytesIO()
        second = BytesIO()
        write_sample(TarArchiveWriter(first, DEFAULT_TIME, COMMIT_ID))
        write_sample(TarArchiveWriter(second, DEFAULT_TIME, COMMIT_ID))
        self.assertEqual(first.getvalue(), second.getvalue())

    def test_non_utf8_name(self) -> None:
        out = BytesIO()
        writer = TarArchiveWriter(out, DEFAULT_TIME)
        writer.write_file(b"caf\xe9", FILE_MODE, b"x")
        writer.close()
        self.assertIn(b"caf\xe9", out.getvalue())

    def test_output_failure(self) -> None:
        writer = TarArchiveWriter(BrokenStream(), DEFAULT_TIME)
        with self.assertRaises(WriterFailure) as cm:
            writer.write_file(b"big", FILE_MODE, b"x" * 100000)
            writer.close()
        self.assertIsInstance(cm.exception.error, OSError)


class ZipDateTimeTests(TestCase):
    def test_utc(self) -> None:
        self.assertEqual((2010, 1, 1, 0, 0, 0), zip_date_time(DEFAULT_TIME))

    def test_clamped(self) -> None:
        self.assertEqual((1980, 1, 1, 0, 0, 0), zip_date_time(0))


class ZipArchiveWriterTests(TestCase):
    def archive(self, **kwargs) -> zipfile.ZipFile:
        out = BytesIO()
        write_sample(ZipArchiveWriter(out, DEFAULT_TIME, **kwargs))
        out.seek(0)
        zf = zipfile.ZipFile(out)
        self.addCleanup(zf.close)
        return zf

    def test_members(self) -> None:
        zf = self.archive()
        self.assertEqual(
            [
                "prefix/",
                "prefix/dir/",
                "prefix/dir/file.txt",
                "prefix/run.sh",
                "prefix/link",
            ],
            zf.namelist(),
        )
        self.assertEqual(b"contents\n", zf.read("prefix/dir/file.txt"))
        self.assertEqual(b"dir/file.txt", zf.read("prefix/link"))

    def test_unix_modes(self) -> None:
        zf = self.archive()
        modes = {info.filename: info.external_attr >> 16 for info in zf.infolist()}
        self.assertTrue(stat.S_ISDIR(modes["prefix/dir/"]))
        self.assertEqual(stat.S_IFREG | 0o644, modes["prefix/dir/file.txt"])
        self.assertEqual(stat.S_IFREG | 0o755, modes["prefix/run.sh"])
        self.assertEqual(stat.S_IFLNK | 0o777, modes["prefix/link"])
        self.assertTrue(zf.getinfo("prefix/dir/").external_attr & 0x10)

    def test_compression(self) -> None:
        zf = self.archive()
        self.assertEqual(
            zipfile.ZIP_DEFLATED, zf.getinfo("prefix/dir/file.txt").compress_type
        )
        self.assertEqual(zipfile.ZIP_STORED, zf.getinfo("prefix/link").compress_type)
        self.assertEqual(zipfile.ZIP_STORED, zf.getinfo("prefix/dir/").compress_type)

    def test_store_only(self) -> None:
        zf = self.archive(compression_level=0)
        self.assertEqual(
            zipfile.ZIP_STORED, zf.getinfo("prefix/dir/file.txt").compress_type
        )

    def test_date_time(self) -> None:
        for info in self.archive().infolist():
            self.assertEqual((2010, 1, 1, 0, 0, 0), info.date_time)

    def test_commit_comment(self) -> None:
        self.assertEqual(COMMIT_ID, self.archive(commit_id=COMMIT_ID).comment)

    def test_no_commit_comment(self) -> None:
        self.assertEqual(b"", self.archive().comment)

    def read_back(self, names) -> list:
        out = BytesIO()
        writer = ZipArchiveWriter(out, DEFAULT_TIME)
        for name in names:
            writer.write_file(name, FILE_MODE, b"x")
        writer.close()
        out.seek(0)
        zf = zipfile.ZipFile(out)
        self.addCleanup(zf.close)
        return zf.infolist()

    def test_non_utf8_names(self) -> None:
        infos = self.read_back([b"caf\xe9.txt", b"caf\xe8.txt"])
        # Without the UTF-8 flag readers fall back to cp437.
        self.assertEqual(
            [b"caf\xe9.txt", b"caf\xe8.txt"],
            [info.filename.encode("cp437") for info in infos],
        )
        for info in infos:
            self.assertFalse(info.flag_bits & 0x800)

    def test_utf8_name(self) -> None:
        [info] = self.read_back([b"caf\xc3\xa9.txt"])
        self.assertEqual("caf\xe9.txt", info.filename)
        self.assertTrue(info.flag_bits & 0x800)

    def test_ascii_name(self) -> None:
        [info] = self.read_back([b"plain.txt"])
        self.assertEqual("plain.txt", info.filename)
        self.assertFalse(info.flag_bits & 0x800)


class ArchiverTests(TestCase):
    def test_lookup(self) -> None:
        self.assertIs(ARCHIVERS["zip"], lookup_archiver("zip"))
        self.assertIs(TarArchiveWriter, lookup_archiver("tar").writer_class)

    def test_lookup_unknown(self) -> None:
        with self.assertRaises(UnsupportedOption) as cm:
            lookup_archiver("rar")
        self.assertEqual("Unknown archive format 'rar'", str(cm.exception))

    def test_for_filename(self) -> None:
        self.assertIs(ARCHIVERS["zip"], archiver_for_filename("out.zip"))
        self.assertIs(ARCHIVERS["tar"], archiver_for_filename("dir/out.tar"))
        self.assertIsNone(archiver_for_filename("out.tar.gz"))

    def test_compression_level(self) -> None:
        check_compression_level(ARCHIVERS["tar"], None)
        check_compression_level(ARCHIVERS["zip"], 0)
        check_compression_level(ARCHIVERS["zip"], 9)

    def test_compression_level_not_supported(self) -> None:
        with self.assertRaises(UnsupportedOption) as cm:
            check_compression_level(ARCHIVERS["tar"], 9)
        self.assertEqual(
            "Argument not supported for format 'tar': -9", str(cm.exception)
        )

    def test_compression_level_out_of_range(self) -> None:
        self.assertRaises(
            UnsupportedOption, check_compression_level, ARCHIVERS["zip"], 10
        )

    def test_open_writer_uses_config(self) -> None:
        writer = open_writer(
            ARCHIVERS["tar"], BytesIO(), DEFAULT_TIME, config=ArchiveConfig(tar_umask=0o077)
        )
        self.assertEqual(0o077, writer.umask)

    def test_open_writer_explicit_level_wins(self) -> None:
        config = ArchiveConfig(compression_level=0)
        writer = open_writer(ARCHIVERS["zip"], BytesIO(), DEFAULT_TIME, config=config)
        self.assertEqual(zipfile.ZIP_STORED, writer.compression)
        writer = open_writer(
            ARCHIVERS["zip"],
            BytesIO(),
            DEFAULT_TIME,
            config=config,
            compression_level=6,
        )
        self.assertEqual(zipfile.ZIP_DEFLATED, writer.compression)
        self.assertEqual(6, writer.compression_level)
