#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 11:04:17 krylon>
#
# /data/code/python/pygeoblock/test_geodb.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.test_geodb

(c) 2026 Benjamin Walkenhorst

Besides the tests for GeoDatabase, this module provides the test databases
used by the other test modules: write_fixtures() writes them as real
MaxMind DB files, and FakeReader serves the same data without touching
the disk, for tests that need to watch the reader at work.
"""

import errno
import os
import shutil
import time
import unittest
from datetime import datetime
from ipaddress import ip_address, ip_network
from types import SimpleNamespace
from typing import Any, Final, Optional
from unittest import mock

import maxminddb
from mmdb_writer import MMDBWriter
from netaddr import IPSet

from pygeoblock import common
from pygeoblock.geodb import DatabaseError, GeoDatabase, GeoLookupError, country_of

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_geodb_%Y%m%d_%H%M%S"))


def cc(code: str) -> dict[str, Any]:
    """Return a record for the country <code>."""
    return {"country": {"iso_code": code}}


# Maps file names to (database type, [(network, record), ...]).
fixtures: Final[dict[str, tuple[str, list[tuple[str, dict[str, Any]]]]]] = {
    "country.mmdb": ("GeoLite2-Country", [
        ("1.1.1.0/24", cc("AU")),
        ("2.2.2.0/24", cc("FR")),
        ("3.3.3.0/24", {"continent": {"code": "EU"}}),
        ("2a00:1450::/32", cc("IE")),
    ]),
    "country-2.mmdb": ("GeoIP2-Country", [
        ("1.1.1.0/24", cc("AU")),
        ("2.2.2.0/24", cc("FR")),
        ("4.4.4.0/24", cc("US")),
    ]),
    "city.mmdb": ("GeoLite2-City", [
        ("1.1.1.0/24", {"city": {"names": {"en": "Sydney"}}, **cc("AU")}),
    ]),
    "country-asn.mmdb": ("ipinfo country_asn", [
        ("2.2.2.0/24", {"asn": "AS3215", **cc("FR")}),
        ("6.6.6.0/24", {"asn": "AS749", "country": "US"}),
    ]),
    "lite.mmdb": ("IP2LOCATION-LITE-DB1", [
        ("1.1.1.0/24", cc("AU")),
    ]),
}


def write_fixtures(folder: str) -> None:
    """Write the test databases to <folder>."""
    for name, (db_type, networks) in fixtures.items():
        writer = MMDBWriter(ip_version=6,
                            database_type=db_type,
                            ipv4_compatible=True)
        for net, rec in networks:
            writer.insert_network(IPSet([net]), rec)
        writer.to_db_file(os.path.join(folder, name))


class FakeReader:
    """FakeReader imitates a maxminddb Reader, backed by fixtures."""

    # Lookups that happened on a closed reader.
    violations: list[str] = []
    delay: float = 0.0

    def __init__(self, database: str, mode: int = maxminddb.MODE_AUTO) -> None:  # pylint: disable-msg=W0613
        name: Final[str] = os.path.basename(database)
        if name not in fixtures:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), database)
        self.db_type, networks = fixtures[name]
        self.table = [(ip_network(n), rec) for n, rec in networks]
        self.closed = False

    def metadata(self) -> SimpleNamespace:
        """Return the database metadata."""
        return SimpleNamespace(database_type=self.db_type)

    def get(self, addr: str) -> Optional[dict[str, Any]]:
        """Return the record for <addr>, if there is one."""
        if self.closed:
            self.violations.append(addr)
            raise ValueError("Attempt to read from a closed MaxMind DB.")
        ip = ip_address(addr)
        if self.delay > 0:
            time.sleep(self.delay)
            if self.closed:
                self.violations.append(addr)
        for net, rec in self.table:
            if ip in net:
                return rec
        return None

    def close(self) -> None:
        """Close the reader."""
        self.closed = True


def patch_reader():
    """Replace maxminddb's open_database with FakeReader."""
    return mock.patch("maxminddb.open_database", FakeReader)


class TestCountryOf(unittest.TestCase):
    """Test extracting the country code from records."""

    def test_01_records(self) -> None:
        """Test records of various shapes."""
        test_cases: Final[list[tuple[Any, str]]] = [
            (None, ""),
            ({}, ""),
            ("FR", ""),
            ({"country": "FR"}, ""),
            ({"country": {}}, ""),
            ({"country": {"iso_code": None}}, ""),
            ({"country": {"iso_code": "FR"}}, "FR"),
            ({"country": {"iso_code": "FR", "names": {"en": "France"}}, "asn": 3215}, "FR"),
        ]

        for c in test_cases:
            self.assertEqual(country_of(c[0]), c[1], c[0])


class TestGeoDatabase(unittest.TestCase):
    """Test the database accessor with real database files."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        write_fixtures(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_open_missing(self) -> None:
        """Test opening a file that does not exist."""
        with self.assertRaises(DatabaseError):
            GeoDatabase(os.path.join(test_dir, "does-not-exist.mmdb"))

    def test_02_open_garbage(self) -> None:
        """Test opening a file that is not a database."""
        garbage: Final[str] = os.path.join(test_dir, "garbage.mmdb")
        with open(garbage, "wb") as fh:
            fh.write(b"This is not the database you are looking for.\n" * 64)

        with self.assertRaises(DatabaseError):
            GeoDatabase(garbage)

    def test_03_open_empty(self) -> None:
        """Test opening an empty file."""
        empty: Final[str] = os.path.join(test_dir, "empty.mmdb")
        with open(empty, "wb"):
            pass

        with self.assertRaises(DatabaseError):
            GeoDatabase(empty)

    def test_04_resolve(self) -> None:
        """Test resolving addresses to countries."""
        test_cases: Final[list[tuple[str, str]]] = [
            ("1.1.1.1", "AU"),
            ("2.2.2.2", "FR"),
            ("2a00:1450::1", "IE"),
            ("3.3.3.3", ""),
            ("5.5.5.5", ""),
            ("2001:db8::1", ""),
        ]

        with GeoDatabase(os.path.join(test_dir, "country.mmdb")) as db:
            self.assertEqual(db.db_type, "GeoLite2-Country")
            for c in test_cases:
                self.assertEqual(db.resolve(ip_address(c[0])), c[1], c[0])

    def test_05_database_types(self) -> None:
        """Test that the type a database claims to be does not matter."""
        test_cases: Final[list[tuple[str, str, str]]] = [
            ("city.mmdb", "1.1.1.1", "AU"),
            ("country-asn.mmdb", "2.2.2.2", "FR"),
            ("country-asn.mmdb", "6.6.6.6", ""),
            ("lite.mmdb", "1.1.1.1", "AU"),
        ]

        for c in test_cases:
            with GeoDatabase(os.path.join(test_dir, c[0])) as db:
                self.assertEqual(db.resolve(ip_address(c[1])), c[2], c[0])

    def test_06_modes(self) -> None:
        """Test the different ways of accessing the file."""
        for mode in (maxminddb.MODE_AUTO,
                     maxminddb.MODE_MMAP,
                     maxminddb.MODE_FILE,
                     maxminddb.MODE_MEMORY):
            with GeoDatabase(os.path.join(test_dir, "country.mmdb"), mode) as db:
                self.assertEqual(db.resolve(ip_address("1.1.1.1")), "AU", mode)
                self.assertEqual(db.resolve(ip_address("5.5.5.5")), "", mode)

    def test_07_close(self) -> None:
        """Test that closing is idempotent."""
        db: Final[GeoDatabase] = GeoDatabase(os.path.join(test_dir, "country.mmdb"))

        self.assertFalse(db.closed)
        db.close()
        self.assertTrue(db.closed)
        db.close()
        self.assertTrue(db.closed)

    def test_08_lookup_error(self) -> None:
        """Test that a failing lookup is not mistaken for a miss."""
        with patch_reader():
            db: Final[GeoDatabase] = GeoDatabase(os.path.join(test_dir, "country.mmdb"))

        db.reader.close()
        with self.assertRaises(GeoLookupError):
            db.resolve(ip_address("1.1.1.1"))
        FakeReader.violations.clear()
        db.close()


# Local Variables: #
# python-indent: 4 #
# End: #
