# writers.py -- tar and zip archive writers
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

"""Writers for the supported archive formats.

Both writers produce identical output for identical input: ownership,
timestamps and permissions only depend on the archived tree, the archive
time and configuration.
"""

__all__ = [
    "ARCHIVERS",
    "Archiver",
    "RawNameZipInfo",
    "TarArchiveWriter",
    "ZipArchiveWriter",
    "archiver_for_filename",
    "check_compression_level",
    "lookup_archiver",
    "open_writer",
]

import stat
import tarfile
import time
import zipfile
from io import BytesIO
from typing import BinaryIO, NamedTuple, Optional

from .config import DEFAULT_COMPRESSION_LEVEL, DEFAULT_TAR_UMASK, ArchiveConfig
from .errors import UnsupportedOption, WriterFailure
from .events import ArchiveWriter

SUPPORTED_COMPRESSION_LEVELS = range(0, 10)


class TarArchiveWriter(ArchiveWriter):
    """Writes entries to a tar stream.

    The output stream does not need to be seekable.
    """

    def __init__(
        self,
        outstream: BinaryIO,
        mtime: int,
        commit_id: Optional[bytes] = None,
        umask: int = DEFAULT_TAR_UMASK,
    ) -> None:
        """Start a new tar archive.

        Args:
          outstream: Binary stream to write the archive to
          mtime: Modification time for all members
          commit_id: Hex SHA of the archived commit, recorded in a pax
            global header
          umask: Permission bits to clear on members
        """
        self.mtime = mtime
        self.umask = umask
        pax_headers = {}
        if commit_id is not None:
            pax_headers["comment"] = commit_id.decode("ascii")
        try:
            self._tar = tarfile.open(
                name=None,
                mode="w|",
                fileobj=outstream,
                format=tarfile.PAX_FORMAT,
                pax_headers=pax_headers,
                encoding="utf-8",
                errors="surrogateescape",
            )
        except (OSError, tarfile.TarError) as e:
            raise WriterFailure(e) from e

    def _tarinfo(self, path: bytes) -> tarfile.TarInfo:
        info = tarfile.TarInfo(path.decode("utf-8", "surrogateescape"))
        info.mtime = self.mtime
        info.uid = info.gid = 0
        info.uname = info.gname = "root"
        return info

    def _addfile(self, info: tarfile.TarInfo, content: Optional[bytes] = None) -> None:
        try:
            if content is None:
                self._tar.addfile(info)
            else:
                self._tar.addfile(info, BytesIO(content))
        except (OSError, tarfile.TarError) as e:
            raise WriterFailure(e) from e

    def begin_directory(self, path: bytes, mode: int) -> None:
        info = self._tarinfo(path)
        info.type = tarfile.DIRTYPE
        info.mode = 0o777 & ~self.umask
        self._addfile(info)

    def write_file(self, path: bytes, mode: int, content: bytes) -> None:
        info = self._tarinfo(path)
        if stat.S_ISLNK(mode):
            info.type = tarfile.SYMTYPE
            info.linkname = content.decode("utf-8", "surrogateescape")
            info.mode = 0o777
            self._addfile(info)
            return
        info.type = tarfile.REGTYPE
        if mode & 0o100:
            info.mode = 0o777 & ~self.umask
        else:
            info.mode = 0o666 & ~self.umask
        info.size = len(content)
        self._addfile(info, content)

    def close(self) -> None:
        try:
            self._tar.close()
        except (OSError, tarfile.TarError) as e:
            raise WriterFailure(e) from e


def zip_date_time(mtime: int) -> tuple[int, int, int, int, int, int]:
    """Convert a UNIX timestamp to a zip date, clamped to 1980."""
    tm = time.gmtime(mtime)
    if tm.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return (tm.tm_year, tm.tm_mon, tm.tm_mday, tm.tm_hour, tm.tm_min, tm.tm_sec)


class RawNameZipInfo(zipfile.ZipInfo):
    """ZipInfo that stores the member name exactly as given.

    Names that are valid UTF-8 are written the usual way, with the UTF-8
    flag set when they are not plain ASCII. Any other name is written as
    its original bytes with the flag clear, as git does.
    """

    def __init__(self, raw_name: bytes, date_time: tuple[int, int, int, int, int, int]) -> None:
        super().__init__(raw_name.decode("utf-8", "surrogateescape"), date_time)
        self.raw_name = raw_name

    def _encodeFilenameFlags(self) -> tuple[bytes, int]:
        try:
            self.raw_name.decode("utf-8")
        except UnicodeDecodeError:
            return self.raw_name, self.flag_bits
        return super()._encodeFilenameFlags()


class ZipArchiveWriter(ArchiveWriter):
    """Writes entries to a zip file."""

    def __init__(
        self,
        outstream: BinaryIO,
        mtime: int,
        commit_id: Optional[bytes] = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> None:
        """Start a new zip archive.

        Args:
          outstream: Binary stream to write the archive to
          mtime: Modification time for all members
          commit_id: Hex SHA of the archived commit, stored as the zip comment
          compression_level: zlib level; 0 stores members uncompressed and
            -1 uses the zlib default
        """
        self.date_time = zip_date_time(mtime)
        if compression_level == 0:
            self.compression = zipfile.ZIP_STORED
        else:
            self.compression = zipfile.ZIP_DEFLATED
        self.compression_level = None if compression_level < 1 else compression_level
        try:
            self._zip = zipfile.ZipFile(outstream, mode="w")
        except (OSError, zipfile.BadZipFile) as e:
            raise WriterFailure(e) from e
        if commit_id is not None:
            self._zip.comment = commit_id

    def _zipinfo(self, path: bytes, unix_mode: int) -> zipfile.ZipInfo:
        info = RawNameZipInfo(path, self.date_time)
        info.create_system = 3
        info.external_attr = unix_mode << 16
        return info

    def _writestr(self, info: zipfile.ZipInfo, content: bytes, compress_type: int) -> None:
        try:
            self._zip.writestr(
                info,
                content,
                compress_type=compress_type,
                compresslevel=self.compression_level,
            )
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise WriterFailure(e) from e

    def begin_directory(self, path: bytes, mode: int) -> None:
        info = self._zipinfo(path, stat.S_IFDIR | 0o755)
        # MS-DOS directory flag
        info.external_attr |= 0x10
        self._writestr(info, b"", zipfile.ZIP_STORED)

    def write_file(self, path: bytes, mode: int, content: bytes) -> None:
        if stat.S_ISLNK(mode):
            info = self._zipinfo(path, stat.S_IFLNK | 0o777)
            self._writestr(info, content, zipfile.ZIP_STORED)
            return
        perms = 0o755 if mode & 0o100 else 0o644
        info = self._zipinfo(path, stat.S_IFREG | perms)
        self._writestr(info, content, self.compression)

    def close(self) -> None:
        try:
            self._zip.close()
        except (OSError, zipfile.BadZipFile) as e:
            raise WriterFailure(e) from e


class Archiver(NamedTuple):
    """An archive format that can be selected by name."""

    name: str
    writer_class: type
    uses_compression: bool = False
    extensions: tuple[str, ...] = ()


ARCHIVERS = {
    "tar": Archiver("tar", TarArchiveWriter, extensions=(".tar",)),
    "zip": Archiver("zip", ZipArchiveWriter, uses_compression=True, extensions=(".zip",)),
}


def lookup_archiver(name: str) -> Archiver:
    """Find an archiver by format name.

    Raises:
      UnsupportedOption: for unknown formats
    """
    try:
        return ARCHIVERS[name]
    except KeyError:
        raise UnsupportedOption(f"Unknown archive format '{name}'") from None


def archiver_for_filename(filename: str) -> Optional[Archiver]:
    """Guess the archive format from an output file name."""
    for archiver in ARCHIVERS.values():
        if any(filename.endswith(ext) for ext in archiver.extensions):
            return archiver
    return None


def check_compression_level(archiver: Archiver, level: Optional[int]) -> None:
    """Check that an explicit compression level makes sense for a format.

    Args:
      archiver: Selected archive format
      level: Requested level, or None if none was given
    Raises:
      UnsupportedOption: if the format doesn't compress or the level is
        out of range
    """
    if level is None:
        return
    if not archiver.uses_compression:
        raise UnsupportedOption(
            f"Argument not supported for format '{archiver.name}': -{level}"
        )
    if level not in SUPPORTED_COMPRESSION_LEVELS:
        raise UnsupportedOption(
            f"Compression level not supported for format '{archiver.name}': {level}"
        )


def open_writer(
    archiver: Archiver,
    outstream: BinaryIO,
    mtime: int,
    commit_id: Optional[bytes] = None,
    config: Optional[ArchiveConfig] = None,
    compression_level: Optional[int] = None,
) -> ArchiveWriter:
    """Create a writer for the given format.

    Args:
      archiver: Archive format to write
      outstream: Binary stream to write to
      mtime: Archive time
      commit_id: Hex SHA of the archived commit, if any
      config: Archive configuration
      compression_level: Explicit compression level, overriding config
    Returns: A new ArchiveWriter
    """
    check_compression_level(archiver, compression_level)
    if config is None:
        config = ArchiveConfig()
    if archiver.writer_class is TarArchiveWriter:
        return TarArchiveWriter(outstream, mtime, commit_id, umask=config.tar_umask)
    if archiver.writer_class is ZipArchiveWriter:
        if compression_level is None:
            compression_level = config.compression_level
        return ZipArchiveWriter(
            outstream, mtime, commit_id, compression_level=compression_level
        )
    return archiver.writer_class(outstream, mtime, commit_id)
