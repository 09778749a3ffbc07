#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:48:32 krylon>
#
# /data/code/python/pygeoblock/address.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.address

(c) 2026 Benjamin Walkenhorst

Parsing of the addresses we are asked about, and the check whether an
address belongs to a range that is never subject to geolocation.
"""

from ipaddress import (IPv4Address, IPv4Network, IPv6Address, IPv6Network,
                       ip_address, ip_network)
from typing import Final, Union

from pygeoblock.common import GeoBlockError

Address = Union[IPv4Address, IPv6Address]

private_networks: Final[list[Union[IPv4Network, IPv6Network]]] = [
    ip_network(x) for x in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "fc00::/7",
        "::1/128",
        "fe80::/10",
    )
]


class AddressError(GeoBlockError):
    """AddressError indicates a string that is not a valid IP address."""


def parse_addr(text: str) -> Address:
    """Parse <text> as an IPv4 or IPv6 address.

    A zone suffix (fe80::1%eth0) is accepted on IPv6 addresses and dropped.
    IPv4-mapped IPv6 addresses are returned as plain IPv4 addresses.
    """
    if text == "":
        raise AddressError("empty address")

    host, sep, zone = text.partition("%")
    if sep and zone == "":
        raise AddressError(f"'{text}' has an empty zone")

    try:
        addr: Address = ip_address(host)
    except ValueError as verr:
        raise AddressError(str(verr)) from verr

    match addr:
        case IPv4Address() if sep:
            raise AddressError(f"'{text}' is an IPv4 address with a zone")
        case IPv6Address() if addr.ipv4_mapped is not None:
            return addr.ipv4_mapped

    return addr


def is_private(addr: Address) -> bool:
    """Return True if <addr> is a private, loopback or link-local address."""
    return any(addr in net for net in private_networks if net.version == addr.version)


# Local Variables: #
# python-indent: 4 #
# End: #
