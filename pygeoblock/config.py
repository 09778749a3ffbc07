#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 16:05:52 krylon>
#
# /data/code/python/pygeoblock/config.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.config

(c) 2026 Benjamin Walkenhorst
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Mapping, Optional

from pygeoblock import common
from pygeoblock.common import GeoBlockError
from pygeoblock.geodb import modes

EnvPrefix: Final[str] = "PYGEOBLOCK_"


class ConfigurationError(GeoBlockError):
    """ConfigurationError indicates a configuration we cannot work with."""


def parse_countries(lst: Optional[str]) -> frozenset[str]:
    """Parse a comma-separated list of country codes."""
    if lst is None:
        return frozenset()
    return frozenset(c.strip().upper() for c in lst.split(",") if c.strip() != "")


@dataclass(kw_only=True, slots=True)
class Config:
    """Config holds the settings the filter is built from."""

    db_file: Path = field(default_factory=lambda: common.path.db)
    allowed: frozenset[str] = frozenset()
    denied: frozenset[str] = frozenset()
    mode: str = "auto"

    def __post_init__(self) -> None:
        if self.mode not in modes:
            raise ConfigurationError(f"Invalid database mode '{self.mode}', " +
                                     f"valid modes are {', '.join(modes)}")

    @property
    def db_mode(self) -> int:
        """Return the reader mode constant for our mode."""
        return modes[self.mode]

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **override) -> 'Config':
        """Build a Config from environment variables.

        Keyword arguments that are not None take precedence over the
        environment, that's how command line flags get in here.
        """
        if env is None:
            env = os.environ

        def get(key: str) -> Optional[str]:
            val = override.get(key)
            if val is not None:
                return val
            return env.get(EnvPrefix + key.upper())

        db_file: Optional[str] = get("db_file")
        cfg = cls(
            db_file=Path(db_file) if db_file else common.path.db,
            allowed=parse_countries(get("allowed_countries")),
            denied=parse_countries(get("denied_countries")),
            mode=get("db_mode") or "auto",
        )
        return cfg


# Local Variables: #
# python-indent: 4 #
# End: #
