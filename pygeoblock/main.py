#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 18:01:44 krylon>
#
# /data/code/python/pygeoblock/main.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import pathlib
import signal
import sys
from threading import Thread
from typing import Final, TextIO

from pygeoblock import common
from pygeoblock.config import Config, ConfigurationError, EnvPrefix
from pygeoblock.filter import Filter
from pygeoblock.geodb import DatabaseError, modes


def answer(flt: Filter, line: str) -> str:
    """Check the address on <line> and return the answer for it.

    A line holds an address, optionally followed by the name of the
    interface the connection came in on.
    """
    fields: Final[list[str]] = line.split()
    addr: Final[str] = fields[0] if fields else ""
    iface: Final[str] = fields[1] if len(fields) > 1 else ""
    ok, msg = flt.check_ip(addr, iface)
    if ok:
        return f"ALLOW {addr}"
    return f"DENY {msg}"


def serve(flt: Filter, src: TextIO, dst: TextIO) -> None:
    """Answer one line from <src> at a time, until <src> runs dry."""
    for line in src:
        if line.strip() == "":
            continue
        print(answer(flt, line), file=dst, flush=True)


def install_reload_handler(flt: Filter) -> None:
    """Reload the database on SIGHUP."""
    if not hasattr(signal, "SIGHUP"):
        return

    def reload() -> None:
        try:
            flt.reload()
        except DatabaseError as err:
            flt.log.error("Reload failed, keeping the previous database: %s", err)

    def handler(_signum, _frame) -> None:
        # The handler runs in the main thread, which may hold a read lock.
        Thread(target=reload, name="reload", daemon=True).start()

    signal.signal(signal.SIGHUP, handler)


def main() -> None:
    argp: argparse.ArgumentParser = argparse.ArgumentParser(
        prog=common.AppName.lower(),
        description="Check IP addresses against allowed and denied countries")
    argp.add_argument("-d", "--db-file",
                      help="Path to the MaxMind GeoLite2 or GeoIP2 database " +
                      f"(env: {EnvPrefix}DB_FILE)")
    argp.add_argument("-a", "--allowed-countries",
                      help="Comma separated allowed countries in ISO 3166-1 alpha-2 format " +
                      f"(env: {EnvPrefix}ALLOWED_COUNTRIES)")
    argp.add_argument("-D", "--denied-countries",
                      help="Comma separated denied countries in ISO 3166-1 alpha-2 format " +
                      f"(env: {EnvPrefix}DENIED_COUNTRIES)")
    argp.add_argument("-m", "--mode",
                      choices=list(modes),
                      help=f"How to access the database file (env: {EnvPrefix}DB_MODE)")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data in")
    argp.add_argument("-V", "--version",
                      action="version",
                      version=f"%(prog)s {common.version_string()}")
    argp.add_argument("addr",
                      nargs="*",
                      help="Addresses to check. Without any, read them from stdin")

    args = argp.parse_args()
    common.set_basedir(args.basedir)
    log = common.get_logger("main")
    log.info("Starting %s %s", common.AppName, common.version_string())

    try:
        cfg: Config = Config.from_env(db_file=args.db_file,
                                      allowed_countries=args.allowed_countries,
                                      denied_countries=args.denied_countries,
                                      db_mode=args.mode)
        flt: Filter = Filter.from_config(cfg)
        flt.reload()
    except (ConfigurationError, DatabaseError) as err:
        log.error("%s: %s", err.__class__.__name__, err)
        sys.exit(1)

    with flt:
        install_reload_handler(flt)
        try:
            if args.addr:
                for a in args.addr:
                    print(answer(flt, a))
            else:
                serve(flt, sys.stdin, sys.stdout)
        except KeyboardInterrupt:
            print("Quitting.", file=sys.stderr)


if __name__ == '__main__':
    main()

# Local Variables: #
# python-indent: 4 #
# End: #
