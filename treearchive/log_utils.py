# log_utils.py -- Logging and trace setup for treearchive
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

"""Logging utilities for treearchive.

treearchive is mostly used as a library, so nothing is logged unless the
caller configures logging. A null handler on the ``treearchive`` logger keeps
the standard library from complaining about missing handlers.

Verbose archive runs report each path at INFO level on the
``treearchive.archive`` logger; the command line routes that to stderr.
Setting ``GIT_TRACE`` enables DEBUG output for the whole package, using the
same values git accepts for it.
"""

import logging
import os
import sys
from typing import Any, Optional, Union

getLogger = logging.getLogger

_NULL_HANDLER = logging.NullHandler()
_TREEARCHIVE_LOGGER = getLogger("treearchive")
_TREEARCHIVE_LOGGER.addHandler(_NULL_HANDLER)

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def _get_trace_target() -> Optional[Union[str, int]]:
    """Work out where GIT_TRACE asks trace output to go.

    Returns: 2 for stderr, a file descriptor between 3 and 9, an absolute
      file or directory path, or None when tracing is off or the value
      isn't one git understands
    """
    value = os.environ.get("GIT_TRACE", "")
    if value.lower() in ("", "0", "false"):
        return None
    if value.lower() in ("1", "2", "true"):
        return 2
    if value.isdigit():
        fd = int(value)
        return fd if 3 <= fd <= 9 else None
    if os.path.isabs(value):
        return value
    return None


def _trace_destination(target: Union[str, int]) -> Optional[dict[str, Any]]:
    """Return the basicConfig arguments that send output to target."""
    if target == 2:
        return {"stream": sys.stderr}
    if isinstance(target, int):
        try:
            return {"stream": os.fdopen(target, "w", buffering=1)}
        except OSError as e:
            sys.stderr.write(f"warning: cannot trace to fd {target}: {e}\n")
            return None
    if os.path.isdir(target):
        # One file per archive run.
        target = os.path.join(target, f"trace.{os.getpid()}")
    return {"filename": target, "filemode": "a"}


def _configure_logging_from_trace() -> bool:
    """Send DEBUG output wherever GIT_TRACE points.

    Returns: False if tracing is off or its destination can't be opened
    """
    target = _get_trace_target()
    if target is None:
        return False
    destination = _trace_destination(target)
    if destination is None:
        return False
    try:
        logging.basicConfig(level=logging.DEBUG, format=_TRACE_FORMAT, **destination)
    except OSError as e:
        sys.stderr.write(f"warning: cannot trace to {target}: {e}\n")
        return False
    return True


def default_logging_config(message_format: str = "%(message)s") -> None:
    """Configure logging for the treearchive command line.

    Without GIT_TRACE, INFO messages such as the paths of a verbose run are
    printed to stderr as bare lines.

    Args:
        message_format: Format used when GIT_TRACE is not set
    """
    remove_null_handler()
    if not _configure_logging_from_trace():
        logging.basicConfig(level=logging.INFO, stream=sys.stderr, format=message_format)


def remove_null_handler() -> None:
    """Detach the package's null handler.

    Applications that install their own handlers may call this so
    treearchive records stop passing through the null handler.
    """
    _TREEARCHIVE_LOGGER.removeHandler(_NULL_HANDLER)
