# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2014 Jean-Marc Martins
# Copyright © 2012-2017 Guillaume Ayoub
# Copyright © 2017-2021 Unrud <unrud@outlook.com>
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

"""
Storage backend that stores ACL records in the file system.

Uses one XML file per directory that holds the records of the directory
itself and of all files in it.

"""

from calacl import config
from calacl.log import logger
from calacl.storage.multifilesystem.verify import StoragePartVerify


class Storage(StoragePartVerify):

    def __init__(self, configuration: config.Configuration) -> None:
        super().__init__(configuration)
        logger.info("Storage location: %r", self._filesystem_folder)
        self._makedirs_synced(self.root_folder)
        logger.debug("Storage root folder: %r", self.root_folder)
