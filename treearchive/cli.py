# cli.py -- Command line interface for treearchive
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

"""Command line interface, modelled on ``git archive``.

Usage::

    treearchive [options] <tree-ish> [path...]
    treearchive --list
"""

import argparse
import os
import signal
import sys
from collections.abc import Sequence
from typing import BinaryIO, Optional

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from .archive import list_formats, write_archive
from .errors import ArchiveError, UnsupportedOption
from .log_utils import default_logging_config, getLogger
from .submodule import SubmodulePolicy
from .writers import archiver_for_filename, check_compression_level, lookup_archiver

logger = getLogger(__name__)

EXIT_FATAL = 128


def _compression_flag_help(level: int) -> str:
    return {0: "store only", 1: "compress faster", 9: "compress better"}.get(
        level, argparse.SUPPRESS
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the archive command."""
    parser = argparse.ArgumentParser(
        prog="treearchive",
        description="Create an archive of files from a named tree",
    )
    parser.add_argument("--format", type=str, help="archive format")
    parser.add_argument(
        "--prefix",
        type=str,
        default="",
        help="prepend prefix to each pathname in the archive",
    )
    parser.add_argument(
        "-o", "--output", type=str, help="write the archive to this file"
    )
    parser.add_argument(
        "--submodules",
        type=str,
        nargs="?",
        const=SubmodulePolicy.CHECKED_OUT.value,
        metavar="kind",
        help="include submodule content in the archive (none, checkedout, all)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="be verbose")
    for level in range(10):
        parser.add_argument(
            f"-{level}",
            dest="compression_level",
            action="store_const",
            const=level,
            help=_compression_flag_help(level),
        )
    parser.add_argument(
        "-l", "--list", action="store_true", help="list supported archive formats"
    )
    parser.add_argument(
        "--remote",
        type=str,
        metavar="repo",
        help="retrieve the archive from remote repository <repo>",
    )
    parser.add_argument(
        "--exec",
        type=str,
        metavar="cmd",
        help="path to the remote git-upload-archive command",
    )
    parser.add_argument(
        "--repo", type=str, default=".", help="repository (or subdirectory) to use"
    )
    parser.add_argument("treeish", type=str, nargs="?", metavar="tree-ish")
    parser.add_argument("paths", type=str, nargs="*", metavar="path")
    return parser


def _find_repo(path: str) -> tuple[Repo, Optional[str]]:
    """Open the repository containing path.

    Returns: The repository and the subdirectory of its working tree that
      path refers to, if any
    """
    repo = Repo.discover(path)
    if repo.bare:
        return repo, None
    subdir = os.path.relpath(os.path.abspath(path), os.path.abspath(repo.path))
    if subdir == os.curdir:
        return repo, None
    return repo, subdir.replace(os.sep, "/")


def _open_output(output: Optional[str]) -> BinaryIO:
    if output is None:
        return sys.stdout.buffer
    return open(output, "wb")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the archive command.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.remote is not None:
        parser.error("Unexpected option --remote")
    if args.exec is not None:
        parser.error("Option --exec can only be used together with --remote")

    if args.list:
        for name in list_formats():
            sys.stdout.write(name + "\n")
        return 0

    if args.treeish is None:
        parser.error("the following arguments are required: tree-ish")

    default_logging_config()

    format = args.format
    if format is None and args.output is not None:
        archiver = archiver_for_filename(args.output)
        if archiver is not None:
            format = archiver.name
    if format is None:
        format = "tar"

    try:
        archiver = lookup_archiver(format)
        check_compression_level(archiver, args.compression_level)
        if args.submodules is None:
            submodules = SubmodulePolicy.NONE
        else:
            submodules = SubmodulePolicy.parse(args.submodules)
    except UnsupportedOption as e:
        logger.error("fatal: %s", e)
        return EXIT_FATAL

    try:
        repo, subdir = _find_repo(args.repo)
    except NotGitRepository:
        logger.error("fatal: not a git repository: %s", args.repo)
        return EXIT_FATAL

    with repo:
        try:
            outstream = _open_output(args.output)
        except OSError as e:
            logger.error("fatal: could not create archive file: %s: %s", args.output, e)
            return EXIT_FATAL
        try:
            write_archive(
                repo,
                args.treeish,
                outstream,
                format=format,
                prefix=args.prefix,
                paths=args.paths,
                submodules=submodules,
                verbose=args.verbose,
                compression_level=args.compression_level,
                subdir=subdir,
            )
        except KeyError:
            logger.error("fatal: Not a valid object name %s", args.treeish)
            return EXIT_FATAL
        except (ValueError, ArchiveError) as e:
            logger.error("fatal: %s", e)
            return EXIT_FATAL
        finally:
            if args.output is not None:
                outstream.close()
            else:
                outstream.flush()
    return 0


def signal_int(signal: int, frame: object) -> None:
    """Exit quietly on Ctrl-C."""
    sys.exit(1)


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)
    sys.exit(main())


if __name__ == "__main__":
    _main()
