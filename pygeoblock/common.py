#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:21:07 krylon>
#
# /data/code/python/pygeoblock/common.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.common

(c) 2026 Benjamin Walkenhorst
"""

import logging
import logging.handlers
import os
import pathlib
import sys
from threading import Lock
from typing import Final

AppName: Final[str] = "PyGeoBlock"
AppVersion: Final[str] = "1.0.4"
Debug: Final[bool] = True

# Filled in by the release build.
CommitHash: str = ""
BuildDate: str = ""

log_level_tty: int = logging.WARNING


def version_string() -> str:
    """Return the version, followed by commit hash and build date, if known."""
    parts: list[str] = [AppVersion]
    if CommitHash != "":
        parts.append(CommitHash)
    if BuildDate != "":
        parts.append(BuildDate)
    return "-".join(parts)


class GeoBlockError(Exception):
    """Base class for application-specific Exceptions."""


class Path:
    """Holds the paths of folders and files used by the application"""

    __base: str

    def __init__(self, root: str = os.path.expanduser(f"~/.{AppName.lower()}.d")) -> None:  # noqa
        self.__base = root

    def base(self, folder: str = "") -> pathlib.Path:
        """
        Return the base directory for application specific files.

        If path is a non-empty string, set the base directory to its value.
        """
        if folder != "":
            self.__base = str(folder)
        return pathlib.Path(self.__base)

    @property
    def db(self) -> pathlib.Path:  # pylint: disable-msg=C0103
        """Return the default path of the geolocation database"""
        return pathlib.Path(os.path.join(self.__base, "GeoLite2-Country.mmdb"))

    @property
    def log(self) -> pathlib.Path:
        """Return the path to the log file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.log"))


path: Path = Path(os.path.expanduser(f"~/.{AppName.lower()}.d"))

_lock: Final[Lock] = Lock()  # pylint: disable-msg=C0103
_cache: Final[dict[str, logging.Logger]] = {}  # pylint: disable-msg=C0103


def set_basedir(folder: str) -> None:
    """Set the base dir to the speficied path."""
    path.base(folder)
    init_app()


def init_app() -> None:
    """Initialize the application environment"""
    if not os.path.isdir(path.base()):
        print(f"Create base directory {path.base()}", file=sys.stderr)
        os.mkdir(path.base())


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name"""
    with _lock:
        init_app()

        if name in _cache:
            return _cache[name]

        log_format = "%(asctime)s (%(name)-16s / line %(lineno)-4d) " + \
            "- %(levelname)-8s %(message)s"
        max_log_size = 4 * 2**20  # 4 MiB
        max_log_count = 10

        log_obj = logging.getLogger(f"{AppName.lower()}.{name}")
        log_obj.setLevel(logging.DEBUG)
        log_file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                'a',
                                                                max_log_size,
                                                                max_log_count)

        log_fmt = logging.Formatter(log_format)
        log_file_handler.setFormatter(log_fmt)
        log_obj.addHandler(log_file_handler)

        if terminal:
            # stdout carries the decisions, so diagnostics go to stderr.
            log_console_handler = logging.StreamHandler(sys.stderr)
            log_console_handler.setFormatter(log_fmt)
            log_console_handler.setLevel(log_level_tty)
            log_obj.addHandler(log_console_handler)

        _cache[name] = log_obj
        return log_obj


# Local Variables: #
# python-indent: 4 #
# End: #
