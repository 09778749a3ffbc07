#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 15:02:11 krylon>
#
# /data/code/python/pygeoblock/rwlock.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyGeoBlock access filter. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pygeoblock.rwlock

(c) 2026 Benjamin Walkenhorst
"""

from contextlib import contextmanager
from threading import Condition, Lock


class RWLock:
    """RWLock lets any number of readers in, or exactly one writer.

    Readers are preferred: a new reader only waits while a writer actually
    holds the lock, not while one is merely waiting for it.
    """

    __slots__ = [
        "_cond",
        "_readers",
        "_writing",
    ]

    def __init__(self) -> None:
        self._cond = Condition(Lock())
        self._readers: int = 0
        self._writing: bool = False

    @property
    def readers(self) -> int:
        """Return the number of readers currently holding the lock."""
        with self._cond:
            return self._readers

    def acquire_read(self) -> None:
        """Acquire the lock for reading."""
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release a read lock."""
        with self._cond:
            if self._readers < 1:
                raise RuntimeError("release_read called without a reader")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Acquire the lock for writing."""
        with self._cond:
            while self._writing or self._readers > 0:
                self._cond.wait()
            self._writing = True

    def release_write(self) -> None:
        """Release the write lock."""
        with self._cond:
            if not self._writing:
                raise RuntimeError("release_write called without a writer")
            self._writing = False
            self._cond.notify_all()

    @contextmanager
    def read(self):
        """Hold the lock for reading for the duration of a with-block."""
        self.acquire_read()
        try:
            yield self
        finally:
            self.release_read()

    @contextmanager
    def write(self):
        """Hold the lock for writing for the duration of a with-block."""
        self.acquire_write()
        try:
            yield self
        finally:
            self.release_write()


# Local Variables: #
# python-indent: 4 #
# End: #
