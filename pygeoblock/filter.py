#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 17:12:26 krylon>
#
# /data/code/python/pygeoblock/filter.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.filter

(c) 2026 Benjamin Walkenhorst

The Filter decides whether a connection from a given address may proceed,
based on the country the address is located in.

Whenever the country cannot be determined, the connection is allowed.
The order of the checks is:

1. Addresses that do not parse are allowed.
2. Private, loopback and link-local addresses are allowed.
3. If there is no database, or the address cannot be found in it, allow.
4. Denied countries are denied, even if they are also in the allow list.
5. Without an allow list, everything else is allowed.
6. With an allow list, only the countries on it are allowed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from threading import Lock
from typing import Final, Optional, Union

from pygeoblock import address, common
from pygeoblock.address import AddressError
from pygeoblock.config import Config, ConfigurationError
from pygeoblock.geodb import DatabaseError, GeoDatabase, GeoLookupError, modes
from pygeoblock.rwlock import RWLock

ReasonDenied: Final[str] = "country is denied"
ReasonNotAllowed: Final[str] = "country is not in the allow list"


class Verdict(Enum):
    """Verdict is the outcome of checking an address."""

    Allow = auto()
    Deny = auto()


@dataclass(kw_only=True, slots=True, frozen=True)
class Decision:
    """Decision is what the Filter has to say about an address."""

    verdict: Verdict
    addr: str
    country: str = ""
    reason: str = ""

    @property
    def allowed(self) -> bool:
        """Return True if the connection may proceed."""
        return self.verdict == Verdict.Allow

    @property
    def message(self) -> str:
        """Return a message for the operator, empty if the address was allowed."""
        if self.allowed:
            return ""
        return f"{self.reason}: {self.country}, ip {self.addr}"


@dataclass(kw_only=True, slots=True)
class Filter:
    """Filter checks addresses against lists of allowed and denied countries."""

    db_path: Path = field(default_factory=lambda: common.path.db)
    allowed: frozenset[str] = frozenset()
    denied: frozenset[str] = frozenset()
    mode: int = modes["auto"]
    log: logging.Logger = field(default_factory=lambda: common.get_logger("filter"))
    lock: RWLock = field(default_factory=RWLock)
    reload_lock: Lock = field(default_factory=Lock)
    dbg: bool = common.Debug
    _db: Optional[GeoDatabase] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.allowed = frozenset(self.allowed)
        self.denied = frozenset(self.denied)
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        if len(self.allowed) == 0 and len(self.denied) == 0:
            self.log.error("No country is set")
            raise ConfigurationError("please set allowed or denied countries or both")
        self.log.debug("Configured countries: allowed = %s, denied = %s",
                       sorted(self.allowed),
                       sorted(self.denied))

    @classmethod
    def from_config(cls, cfg: Config, log: Optional[logging.Logger] = None) -> 'Filter':
        """Create a Filter from a Config. The database is not loaded yet."""
        flt = cls(db_path=cfg.db_file,
                  allowed=cfg.allowed,
                  denied=cfg.denied,
                  mode=cfg.db_mode,
                  log=log if log is not None else common.get_logger("filter"))
        return flt

    @property
    def active(self) -> bool:
        """Return True if a database is loaded."""
        with self.lock.read():
            return self._db is not None

    def reload(self, path: Optional[Union[Path, str]] = None) -> None:
        """(Re-)Load the database.

        If <path> is given, it replaces the configured database path, but
        only once the database has been opened successfully. If opening the
        database fails, the Filter keeps using the database it had before.

        Reloads are serialized, so db_path always names the loaded database.
        """
        with self.reload_lock:
            new_path: Final[Path] = self.db_path if path is None else Path(path)

            try:
                db: Final[GeoDatabase] = GeoDatabase(new_path, mode=self.mode)
            except DatabaseError as err:
                self.log.error("Unable to load the database file %s: %s", new_path, err)
                raise

            with self.lock.write():
                old: Optional[GeoDatabase] = self._db
                self._db = db
                self.db_path = new_path

            # No reader can get at the old database anymore.
            if old is not None:
                old.close()
            self.log.debug("Database %s loaded", new_path)

    def close(self) -> None:
        """Close the database. Until the next reload, every address is allowed."""
        with self.lock.write():
            old: Optional[GeoDatabase] = self._db
            self._db = None

        if old is not None:
            old.close()

    def __enter__(self) -> 'Filter':
        return self

    def __exit__(self, ex_type, ex_val, tb) -> None:
        self.close()

    def _country(self, addr: address.Address) -> Optional[str]:
        """Return the country code of <addr>, or None if no database is loaded."""
        with self.lock.read():
            if self._db is None:
                return None
            return self._db.resolve(addr)

    def evaluate(self, addr_str: str) -> Decision:
        """Decide if a connection from <addr_str> is acceptable."""
        try:
            addr: Final[address.Address] = address.parse_addr(addr_str)
        except AddressError as err:
            self.log.warning("Error parsing IP address '%s', it will be allowed: %s",
                             addr_str,
                             err)
            return Decision(verdict=Verdict.Allow, addr=addr_str)

        astr: Final[str] = str(addr)

        if address.is_private(addr):
            return Decision(verdict=Verdict.Allow, addr=astr)

        try:
            country: Optional[str] = self._country(addr)
        except GeoLookupError as err:
            self.log.warning("Unable to lookup IP address %s, it will be allowed: %s",
                             astr,
                             err)
            return Decision(verdict=Verdict.Allow, addr=astr)

        if country is None:
            if self.dbg:
                self.log.debug("No database loaded, IP %s will be allowed", astr)
            return Decision(verdict=Verdict.Allow, addr=astr)
        if country == "":
            self.log.warning("Unable to get country, IP %s will be allowed", astr)
            return Decision(verdict=Verdict.Allow, addr=astr)

        if country in self.denied:
            if self.dbg:
                self.log.debug("Country denied: ip = %s, country = %s", astr, country)
            return Decision(verdict=Verdict.Deny,
                            addr=astr,
                            country=country,
                            reason=ReasonDenied)

        if len(self.allowed) == 0 or country in self.allowed:
            return Decision(verdict=Verdict.Allow, addr=astr, country=country)

        if self.dbg:
            self.log.debug("Country not allowed: ip = %s, country = %s", astr, country)
        return Decision(verdict=Verdict.Deny,
                        addr=astr,
                        country=country,
                        reason=ReasonNotAllowed)

    def check_ip(self, addr: str, _iface: str = "") -> tuple[bool, str]:
        """Check <addr> and return whether it is allowed plus an error message.

        The interface the connection arrived on does not matter to us.
        """
        d: Final[Decision] = self.evaluate(addr)
        return d.allowed, d.message


# Local Variables: #
# python-indent: 4 #
# End: #
