# This file is part of CalACL - access control for CalDAV resources
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

"""
Tests for CalACL.

"""

import logging
import os
import shutil
import tempfile
from typing import Optional

import calacl
from calacl import acl, config, types
from calacl.principal import Principal, Transaction
from calacl.storage.multifilesystem.base import ACL_FILE_NAME

# Enable debug output
calacl.log.logger.setLevel(logging.DEBUG)


class BaseTest:
    """Base class for tests."""

    colpath: str
    configuration: config.Configuration
    acl: acl.BaseACL

    def setup_method(self) -> None:
        self.configuration = config.load()
        self.colpath = tempfile.mkdtemp()
        self.configure({
            "storage": {"filesystem_folder": self.colpath,
                        # Disable syncing to disk for better performance
                        "_filesystem_fsync": "False"}})

    def configure(self, config_: types.CONFIG) -> None:
        self.configuration.update(config_, "test", privileged=True)
        self.acl = acl.load(self.configuration)

    def teardown_method(self) -> None:
        shutil.rmtree(self.colpath)

    @property
    def root(self) -> str:
        return os.path.join(self.colpath, "collection-root")

    def filesystem_path(self, path: str) -> str:
        return os.path.join(self.root, *path.strip("/").split("/"))

    def mkdir(self, path: str) -> str:
        """Create the collection ``path`` in the storage."""
        filesystem_path = self.filesystem_path(path)
        os.makedirs(filesystem_path, exist_ok=True)
        return filesystem_path

    def mkfile(self, path: str, content: str = "") -> str:
        """Create the calendar object ``path`` in the storage."""
        filesystem_path = self.filesystem_path(path)
        with open(filesystem_path, "w", encoding="utf-8") as f:
            f.write(content)
        return filesystem_path

    def acl_file(self, directory: str) -> str:
        return os.path.join(self.filesystem_path(directory), ACL_FILE_NAME)

    def read_acl_file(self, directory: str) -> Optional[str]:
        try:
            with open(self.acl_file(directory), encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def write_acl_file(self, directory: str, content: str) -> None:
        with open(self.acl_file(directory), "w", encoding="utf-8") as f:
            f.write(content)

    @staticmethod
    def transaction(name: str) -> Transaction:
        return Transaction(Principal(name))

    def get_resource_acl(self, user: str, path: str
                         ) -> acl.BaseResourceACL:
        return self.acl.get_resource_acl(self.transaction(user), path)
