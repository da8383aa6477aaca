# This file is part of CalACL - access control for CalDAV resources
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
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional

from calacl import storage, types, xmlutils
from calacl.log import logger
from calacl.storage.multifilesystem.lock import StoragePartLock
from calacl.xmlutils import ResourceRecord


class RecordFile(storage.BaseRecordFile):
    """Record file of one directory, opened while the directory lock is
    held."""

    _storage: "StoragePartRecords"
    _directory: str
    _mode: str
    _path: str
    _exists: bool
    _records: Dict[str, ResourceRecord]
    _saved: Dict[str, ResourceRecord]
    _dirty: bool

    def __init__(self, storage_: "StoragePartRecords", directory: str,
                 mode: str) -> None:
        self._storage = storage_
        self._directory = directory
        self._mode = mode
        self._path = storage_.record_file_path(directory)
        self._exists = False
        self._records = OrderedDict()
        self._saved = OrderedDict()
        self._dirty = False
        self._load()

    def _load(self) -> None:
        try:
            with open(self._path, encoding=self._storage._encoding) as f:
                text = f.read()
        except FileNotFoundError:
            return
        self._exists = True
        for record in xmlutils.decode(text):
            self._records[record.path] = record
        self._saved = OrderedDict(
            (path, record.copy()) for path, record in self._records.items())

    def _check_writable(self) -> None:
        if self._mode != "w":
            raise RuntimeError("Record file %r is opened read-only" %
                               self._path)

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def path(self) -> str:
        return self._path

    @property
    def exists(self) -> bool:
        return self._exists

    @property
    def dirty(self) -> bool:
        return self._dirty

    def records(self) -> List[ResourceRecord]:
        return [record.copy() for record in self._records.values()]

    def find(self, path: str) -> Optional[ResourceRecord]:
        record = self._records.get(path)
        return None if record is None else record.copy()

    def update(self, record: ResourceRecord) -> None:
        self._check_writable()
        xmlutils.check_record(record)
        self._records[record.path] = record.copy()
        self._dirty = True

    def remove(self, path: str) -> bool:
        self._check_writable()
        if self._records.pop(path, None) is None:
            return False
        self._dirty = True
        return True

    def commit(self) -> None:
        self._check_writable()
        if not self._dirty:
            return
        if self._records:
            content = xmlutils.encode(self._records.values())
            with self._storage._atomic_write(self._path) as f:
                f.write(content)
            self._exists = True
        elif self._exists:
            os.remove(self._path)
            self._storage._sync_directory(self._directory)
            self._exists = False
        logger.debug("Committed %d ACL record(s) to %r",
                     len(self._records), self._path)
        self._saved = OrderedDict(
            (path, record.copy()) for path, record in self._records.items())
        self._dirty = False

    def discard(self) -> None:
        if self._dirty:
            logger.debug("Discarding changes of %r", self._path)
        self._records = OrderedDict(
            (path, record.copy()) for path, record in self._saved.items())
        self._dirty = False


class StoragePartRecords(StoragePartLock):

    @types.contextmanager
    def acquire_records(self, directory: str, mode: str
                        ) -> Iterator[RecordFile]:
        if not os.path.isdir(directory):
            raise NotADirectoryError("Not a directory: %r" % directory)
        with self._acquire_directory_lock(directory, mode):
            record_file = RecordFile(self, directory, mode)
            try:
                yield record_file
            except BaseException:
                record_file.discard()
                raise
            if record_file.dirty:
                record_file.commit()
