# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2014 Jean-Marc Martins
# Copyright © 2012-2017 Guillaume Ayoub
# Copyright © 2017-2019 Unrud <unrud@outlook.com>
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

import os
from typing import Iterator

from calacl import config, pathutils, types
from calacl.log import logger
from calacl.storage.multifilesystem.base import LOCK_FILE_NAME, StorageBase

# Shared by all storage instances of the process, otherwise two instances
# could both take the in-process part of a lock
_LOCKS = pathutils.LockRegistry()


class StoragePartLock(StorageBase):

    _locks: pathutils.LockRegistry

    def __init__(self, configuration: config.Configuration) -> None:
        super().__init__(configuration)
        self._locks = _LOCKS

    def directory_lock(self, directory: str) -> pathutils.RwLock:
        return self._locks.get(os.path.join(directory, LOCK_FILE_NAME))

    @types.contextmanager
    def _acquire_directory_lock(self, directory: str, mode: str
                                ) -> Iterator[None]:
        lock = self.directory_lock(directory)
        logger.debug("Locking %r (%s)", directory, mode)
        with lock.acquire(mode):
            yield
