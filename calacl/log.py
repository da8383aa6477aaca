# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2011-2017 Guillaume Ayoub
# Copyright © 2017-2023 Unrud <unrud@outlook.com>
# Copyright © 2024 CalACL contributors
#
# This library is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with CalACL.  If not, see <http://www.gnu.org/licenses/>.

"""
Functions to set up Python's logging facility for CalACL.

Log messages are written to ``sys.stderr`` unless another stream is passed
to ``setup()``. The format can be selected with the environment variable
``CALACL_LOG_FORMAT`` (``verbose`` or ``journal``).

"""

import logging
import os
import sys
import threading
from typing import Any, Callable, Mapping, Optional, Union

from calacl import types

LOGGER_NAME: str = "calacl"
LOGGER_FORMATS: Mapping[str, str] = {
    "verbose": "[%(asctime)s] [%(ident)s] [%(levelname)s] %(message)s",
    "journal": "[%(ident)s] [%(levelname)s] %(message)s",
}
DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S %z"

logger: logging.Logger = logging.getLogger(LOGGER_NAME)


class RemoveTracebackFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        record.exc_info = None
        return True


REMOVE_TRACEBACK_FILTER: logging.Filter = RemoveTracebackFilter()


class IdentLogRecordFactory:
    """LogRecordFactory that adds ``ident`` attribute."""

    def __init__(self, upstream_factory: Callable[..., logging.LogRecord]
                 ) -> None:
        self._upstream_factory = upstream_factory

    def __call__(self, *args: Any, **kwargs: Any) -> logging.LogRecord:
        record = self._upstream_factory(*args, **kwargs)
        ident = ("%d" % record.process if record.process is not None
                 else record.processName or "unknown")
        if (record.thread is not None and
                record.thread != threading.main_thread().ident):
            ident += "/%s" % (record.threadName or "unknown")
        record.ident = ident  # type:ignore[attr-defined]
        return record


def setup(stream: Optional[types.ErrorStream] = None) -> None:
    """Set global logging up."""
    format_name = os.environ.get("CALACL_LOG_FORMAT") or None
    sane_format_name = format_name if format_name in LOGGER_FORMATS else None
    handler = logging.StreamHandler(stream or sys.stderr)  # type: ignore
    handler.setFormatter(logging.Formatter(
        LOGGER_FORMATS[sane_format_name or "verbose"], DATE_FORMAT))
    logging.basicConfig(handlers=[handler])
    if not isinstance(logging.getLogRecordFactory(), IdentLogRecordFactory):
        logging.setLogRecordFactory(
            IdentLogRecordFactory(logging.getLogRecordFactory()))
    set_level(logging.INFO, True)
    if format_name != sane_format_name:
        logger.error("Invalid CALACL_LOG_FORMAT: %r", format_name)


def set_level(level: Union[int, str], backtrace_on_debug: bool) -> None:
    """Set logging level for global logger.

    Tracebacks are only kept on level ``debug`` and only if
    ``backtrace_on_debug`` is set.

    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
        assert isinstance(level, int)
    logger.setLevel(level)
    if level > logging.DEBUG or not backtrace_on_debug:
        logger.addFilter(REMOVE_TRACEBACK_FILTER)
    else:
        logger.removeFilter(REMOVE_TRACEBACK_FILTER)
