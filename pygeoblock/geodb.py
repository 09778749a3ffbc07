#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 10:12:31 krylon>
#
# /data/code/python/pygeoblock/geodb.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.geodb

(c) 2026 Benjamin Walkenhorst

Read access to a MaxMind-style geolocation database, reduced to the one
question we care about: which country does an address belong to?

Any database in the MaxMind DB format will do, as long as its records
carry a country.iso_code field. What the database calls itself in its
metadata does not matter.
"""

from pathlib import Path
from threading import Lock
from typing import Final, Union

import maxminddb

from pygeoblock import common
from pygeoblock.address import Address
from pygeoblock.common import GeoBlockError

modes: Final[dict[str, int]] = {
    "auto": maxminddb.MODE_AUTO,
    "mmap": maxminddb.MODE_MMAP,
    "mmap_ext": maxminddb.MODE_MMAP_EXT,
    "file": maxminddb.MODE_FILE,
    "memory": maxminddb.MODE_MEMORY,
}


class DatabaseError(GeoBlockError):
    """DatabaseError indicates a database file that cannot be opened."""


class GeoLookupError(GeoBlockError):
    """GeoLookupError indicates a lookup that failed, as opposed to one that found nothing."""


def country_of(rec) -> str:
    """Return the ISO country code in a database record, or an empty string."""
    match rec:
        case {"country": {"iso_code": str() as code}}:
            return code
    return ""


class GeoDatabase:
    """GeoDatabase is an open geolocation database."""

    __slots__ = [
        "db_type",
        "log",
        "lock",
        "path",
        "reader",
        "_closed",
    ]

    db_type: str
    path: Path
    reader: 'maxminddb.Reader'
    _closed: bool

    def __init__(self, path: Union[Path, str], mode: int = maxminddb.MODE_AUTO) -> None:
        self.path = path if isinstance(path, Path) else Path(path)
        self.log = common.get_logger("geodb")
        self.lock = Lock()
        self._closed = False

        self.log.debug("Open database at %s", self.path)
        try:
            self.reader = maxminddb.open_database(str(self.path), mode)
        except (OSError, ValueError, maxminddb.InvalidDatabaseError) as err:
            msg = f"Cannot open database {self.path}: {err}"
            self.log.error(msg)
            raise DatabaseError(msg) from err

        self.db_type = self.reader.metadata().database_type
        self.log.debug("Database %s (%s) loaded", self.path, self.db_type)

    @property
    def closed(self) -> bool:
        """Return True if the database has been closed."""
        with self.lock:
            return self._closed

    def resolve(self, addr: Address) -> str:
        """Return the ISO country code for <addr>.

        An address the database knows nothing about yields an empty string.
        """
        try:
            rec = self.reader.get(str(addr))
        except (ValueError, TypeError, maxminddb.InvalidDatabaseError) as err:
            raise GeoLookupError(f"Lookup of {addr} in {self.path} failed: {err}") from err

        return country_of(rec)

    def close(self) -> None:
        """Close the database. Closing it again does nothing."""
        with self.lock:
            if self._closed:
                return
            self._closed = True
            try:
                self.reader.close()
            except (OSError, ValueError) as err:
                self.log.error("Error closing database %s: %s", self.path, err)
            else:
                self.log.debug("Closed database %s", self.path)

    def __enter__(self) -> 'GeoDatabase':
        return self

    def __exit__(self, ex_type, ex_val, tb) -> None:
        self.close()


# Local Variables: #
# python-indent: 4 #
# End: #
