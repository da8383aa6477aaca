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

import os
import posixpath

from calacl import pathutils
from calacl.log import logger
from calacl.storage.multifilesystem.base import ACL_FILE_NAME
from calacl.storage.multifilesystem.records import StoragePartRecords


class StoragePartVerify(StoragePartRecords):

    def verify(self) -> bool:
        """Check that every ACL file can be read and only contains records
        of resources in its directory."""
        file_errors = record_errors = 0
        root = self.root_folder
        for directory, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames
                                 if pathutils.is_safe_filesystem_path_component(d))
            if ACL_FILE_NAME not in filenames:
                continue
            relative = os.path.relpath(directory, root)
            sane_path = "" if relative == os.curdir else relative.replace(
                os.sep, "/")
            path = pathutils.unstrip_path(sane_path)
            logger.info("Verifying   ACL of %r", path)
            try:
                with self.acquire_records(directory, "r") as record_file:
                    records = record_file.records()
            except Exception as e:
                file_errors += 1
                logger.error("Invalid ACL file in %r: %s", path, e,
                             exc_info=True)
                continue
            for record in records:
                if record.path != path and posixpath.dirname(
                        record.path) != path:
                    record_errors += 1
                    logger.error("Invalid ACL record %r in %r: resource "
                                 "outside of directory", record.path, path)
                elif record.owner is None:
                    logger.warning("ACL record %r in %r has no owner",
                                   record.path, path)
            logger.info("Verified    ACL of %r (records: %d)",
                        path, len(records))
        return file_errors == 0 and record_errors == 0
