# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2014 Jean-Marc Martins
# Copyright © 2012-2017 Guillaume Ayoub
# Copyright © 2017-2022 Unrud <unrud@outlook.com>
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
The storage module that keeps the ACL records of resources.

Records are grouped per directory of the storage, all resources in one
directory share one record file.

Take a look at the classes ``BaseStorage`` and ``BaseRecordFile`` if you want
to implement your own.

"""

from typing import ContextManager, List, Optional, Sequence

from calacl import config, utils
from calacl.xmlutils import ResourceRecord

INTERNAL_TYPES: Sequence[str] = ("multifilesystem",)


def load(configuration: "config.Configuration") -> "BaseStorage":
    """Load the storage module chosen in configuration."""
    return utils.load_plugin(INTERNAL_TYPES, "storage", "Storage", BaseStorage,
                             configuration)


class BaseRecordFile:
    """Handle of the record file of one directory.

    Changes are collected in memory and written by ``commit()``.

    """

    @property
    def directory(self) -> str:
        """The directory this record file belongs to."""
        raise NotImplementedError

    @property
    def exists(self) -> bool:
        """The record file existed when it was opened or was committed."""
        raise NotImplementedError

    @property
    def dirty(self) -> bool:
        """There are changes that are not committed."""
        raise NotImplementedError

    def records(self) -> List[ResourceRecord]:
        """Get copies of all records in file order."""
        raise NotImplementedError

    def find(self, path: str) -> Optional[ResourceRecord]:
        """Get a copy of the record of the resource ``path``."""
        for record in self.records():
            if record.path == path:
                return record
        return None

    def create(self, path: str) -> ResourceRecord:
        """Create a new record that is not part of the file yet.

        Use ``update()`` to add it.

        """
        return ResourceRecord(path)

    def update(self, record: ResourceRecord) -> None:
        """Replace the record with the same path or append ``record``."""
        raise NotImplementedError

    def remove(self, path: str) -> bool:
        """Remove the record of ``path``.

        Returns ``False`` if there is no such record.

        """
        raise NotImplementedError

    def commit(self) -> None:
        """Write all changes to durable storage."""
        raise NotImplementedError

    def discard(self) -> None:
        """Drop all changes since the last commit."""
        raise NotImplementedError


class BaseStorage:

    def __init__(self, configuration: "config.Configuration") -> None:
        """Initialize BaseStorage.

        ``configuration`` see ``calacl.config`` module.
        The ``configuration`` must not change during the lifetime of
        this object, it is kept as an internal reference.

        """
        self.configuration = configuration

    @property
    def root_folder(self) -> str:
        """The directory that corresponds to the resource path ``/``."""
        raise NotImplementedError

    def record_file_path(self, directory: str) -> str:
        """Location of the record file of ``directory``."""
        raise NotImplementedError

    def acquire_records(self, directory: str, mode: str
                        ) -> ContextManager[BaseRecordFile]:
        """Open the record file of ``directory``.

        ``mode`` is ``"r"`` for shared read access or ``"w"`` for exclusive
        access. Uncommitted changes are committed when the context is left
        normally and discarded when it is left with an exception.

        """
        raise NotImplementedError

    def verify(self) -> bool:
        """Check the storage for errors."""
        return True
