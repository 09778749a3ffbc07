#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:10:02 krylon>
#
# /data/code/python/pygeoblock/__init__.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.__init__

(c) 2026 Benjamin Walkenhorst
"""

# Local Variables: #
# python-indent: 4 #
# End: #
