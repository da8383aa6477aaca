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

"""
ACL backend that keeps the ACL of a resource in the record file of the
directory that contains the resource.

Collections are directories and use their own record file, calendar objects
are files and use the record file of their collection. Resources that don't
exist yet use the record file of their parent directory.

"""

import os
from collections import OrderedDict
from typing import Iterator, List, Optional

from calacl import acl, config, pathutils, storage, types
from calacl.log import logger
from calacl.principal import ALL, Principal, Transaction
from calacl.privilege import (DENY, GRANT, ACLError, Privilege,
                              PrivilegeCollection, sort_privileges,
                              supported_privileges)
from calacl.xmlutils import (CorruptRecordError, EntryRecord,
                             MissingOwnerError, ResourceRecord)


class ResourceACL(acl.BaseResourceACL):

    _acl: "ACL"
    _storage: storage.BaseStorage
    _path: str
    _directory: str
    _privileges: Optional[PrivilegeCollection]
    _record: Optional[ResourceRecord]
    _state: str

    def __init__(self, acl_: "ACL", path: str) -> None:
        """Bind the resource ``path`` to its record file.

        Nothing is read or written, use ``load()``.

        """
        if not path:
            raise ACLError("invalid resource path")
        self._acl = acl_
        self._storage = acl_.storage
        sane_path = pathutils.strip_path(pathutils.sanitize_path(path))
        self._path = pathutils.unstrip_path(sane_path)
        self._directory = self._resolve_directory(sane_path)
        self._privileges = None
        self._record = None
        self._state = acl.STATE_ABSENT

    def _resolve_directory(self, sane_path: str) -> str:
        root = self._storage.root_folder
        try:
            filesystem_path = pathutils.path_to_filesystem(root, sane_path)
        except ValueError as e:
            logger.error("Invalid resource path %r: %s", self._path, e)
            raise ACLError("invalid resource path %r: %s" %
                           (self._path, e)) from e
        if os.path.isdir(filesystem_path):
            return filesystem_path
        if filesystem_path == root:
            directory = ""
        else:
            # Regular file or resource that doesn't exist yet
            directory = os.path.dirname(filesystem_path)
        if not directory or not os.path.isdir(directory):
            logger.error("Can't determine the filesystem context of %r",
                         self._path)
            raise ACLError("can not determine the filesystem context of %r" %
                           self._path)
        return directory

    @property
    def path(self) -> str:
        return self._path

    @property
    def directory(self) -> str:
        """The directory whose record file holds the ACL."""
        return self._directory

    @property
    def filesystem_path(self) -> str:
        """Location of the record file."""
        return self._storage.record_file_path(self._directory)

    @property
    def state(self) -> str:
        return self._state

    @types.contextmanager
    def _acquire_records(self, mode: str, action: str
                         ) -> Iterator[storage.BaseRecordFile]:
        """Open the record file and report failures as ``ACLError``.

        ``CorruptRecordError`` and ``AccessDenied`` are not wrapped.

        """
        try:
            with self._storage.acquire_records(self._directory, mode
                                               ) as record_file:
                yield record_file
        except (ACLError, CorruptRecordError, acl.AccessDenied):
            raise
        except Exception as e:
            logger.error("Failed to %s ACL of %r in %r: %s", action,
                         self._path, self.filesystem_path, e, exc_info=True)
            raise ACLError("Failed to %s ACL of %r: %s" %
                           (action, self._path, e)) from e

    def load(self, transaction: Transaction) -> None:
        """Read the ACL of the resource or create it.

        If there is no record for the resource, a collection owned by the
        principal of ``transaction`` is stored immediately.

        """
        if self._state != acl.STATE_ABSENT:
            raise RuntimeError("ACL of %r is already %s" %
                               (self._path, self._state))
        with self._acquire_records("r", "load") as record_file:
            record = record_file.find(self._path)
            file_exists = record_file.exists
        if record is not None:
            self._load_record(record)
            return
        with self._acquire_records("w", "create") as record_file:
            # Another request might have created it in the meantime
            record = record_file.find(self._path)
            if record is not None:
                self._load_record(record)
                return
            self._privileges = PrivilegeCollection(
                transaction.principal, self._acl.collation)
            try:
                self._write_record(record_file, transaction)
                record_file.commit()
            except BaseException:
                self._privileges = None
                raise
        self._state = acl.STATE_BOOTSTRAPPED
        logger.info("Created ACL of %r for %r (%s)", self._path,
                    transaction.principal.name,
                    "existing ACL file" if file_exists else "new ACL file")

    def _load_record(self, record: ResourceRecord) -> None:
        collection = PrivilegeCollection(collation=self._acl.collation)
        if record.owner is not None:
            collection.set_owner(Principal(record.owner))
        elif self._acl.strict_owner:
            raise MissingOwnerError(record.path)
        else:
            logger.warning("ACL of %r has no owner, the next principal "
                           "that stores it becomes the owner", self._path)
        for entry in record.entries:
            privilege = Privilege(Principal(
                entry.principal if entry.principal is not None else ALL))
            for name in supported_privileges():
                value = entry.privileges.get(name)
                if value == GRANT:
                    privilege.set_grant_privilege(name)
                elif value == DENY:
                    privilege.set_deny_privilege(name)
            collection.set_privilege(privilege)
        self._privileges = collection
        self._record = record
        self._state = acl.STATE_LOADED
        logger.debug("Loaded ACL of %r: %r", self._path, collection)

    def _entry_records(self) -> List[EntryRecord]:
        assert self._privileges is not None
        entries = []
        for privilege in self._privileges.get_all_privileges():
            values: "OrderedDict[str, str]" = OrderedDict()
            for name in sort_privileges(privilege.granted):
                values[name] = GRANT
            # Denials overwrite grants of the same privilege
            for name in sort_privileges(privilege.denied):
                values[name] = DENY
            entries.append(EntryRecord(privilege.principal_name, values))
        return entries

    def _write_record(self, record_file: storage.BaseRecordFile,
                      transaction: Transaction) -> None:
        assert self._privileges is not None
        # Another instance might have stored the record since it was loaded
        record = record_file.find(self._path)
        if record is None:
            record = record_file.create(self._path)
        owner = self._privileges.owner
        if record.owner is None:
            if owner is None:
                if self._acl.strict_owner:
                    raise MissingOwnerError(self._path)
                owner = transaction.principal
                logger.warning("ACL of %r has no owner, assigning %r",
                               self._path, owner.name)
            record.owner = owner.name
        elif owner is None or owner.name != record.owner:
            if owner is not None:
                logger.warning("Keeping owner %r of %r, requested owner %r "
                               "is ignored", record.owner, self._path,
                               owner.name)
            owner = Principal(record.owner)
        record.entries = self._entry_records()
        record_file.update(record)
        self._privileges.set_owner(owner)
        self._record = record

    def store(self, transaction: Transaction) -> None:
        """Write the ACL of the resource and commit it.

        Records of other resources in the same file are kept.

        """
        if self._privileges is None:
            raise RuntimeError("ACL of %r is not loaded" % self._path)
        with self._acquire_records("w", "store") as record_file:
            self._write_record(record_file, transaction)
            record_file.commit()
        logger.debug("Stored ACL of %r", self._path)

    def get_privilege_collection(self) -> PrivilegeCollection:
        if self._privileges is None:
            raise RuntimeError("ACL of %r is not loaded" % self._path)
        return self._privileges

    def get_principal_collection_set(self) -> List[str]:
        return list(self._acl.principal_collection_set)

    def set_privilege_collection(self, transaction: Transaction,
                                 collection: PrivilegeCollection) -> None:
        self._privileges = collection
        self.store(transaction)

    def remove_collection(self, transaction: Transaction) -> None:
        self.get_privilege_collection().authorize(
            transaction.principal, "write")
        if self._record is None:
            logger.debug("No stored ACL of %r to remove", self._path)
            return
        with self._acquire_records("w", "remove") as record_file:
            record_file.remove(self._path)
            record_file.commit()
        self._record = None
        self._state = acl.STATE_ABSENT
        logger.info("Removed ACL of %r", self._path)


class ACL(acl.BaseACL):

    storage: storage.BaseStorage
    collation: str
    strict_owner: bool
    principal_collection_set: List[str]

    def __init__(self, configuration: config.Configuration) -> None:
        super().__init__(configuration)
        self.storage = storage.load(configuration)
        self.collation = configuration.get("acl", "collation")
        self.strict_owner = configuration.get("acl", "strict_owner")
        self.principal_collection_set = configuration.get(
            "acl", "principal_collection_set")

    def get_resource_acl(self, transaction: Transaction, path: str
                         ) -> ResourceACL:
        resource_acl = ResourceACL(self, path)
        resource_acl.load(transaction)
        return resource_acl
