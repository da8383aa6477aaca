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
Privileges of principals on a resource and the authorization decision.

Supported privileges (see RFC 3744):

  - all: any operation
  - read: read any object
  - read-acl: read the ACL
  - read-current-user-privilege-set: read the current privilege set property
  - write: write any object
  - write-acl: write the ACL
  - write-properties: write properties
  - write-content: write resource content
  - unlock: unlock a resource

The owner of a resource has every privilege. An owner named ``all`` makes
everybody an owner. Other principals need an explicit grant and an explicit
deny always wins over a grant.

"""

from types import MappingProxyType
from typing import (Callable, Dict, Iterable, List, Mapping, Optional, Set,
                    Tuple)

from calacl.log import logger
from calacl.principal import ALL, Principal

SUPPORTED_PRIVILEGES: Mapping[str, str] = MappingProxyType({
    "all": "Any operation",
    "read": "Read any object",
    "read-acl": "Read ACL",
    "read-current-user-privilege-set": "Read current privilege set property",
    "write": "Write any object",
    "write-acl": "Write ACL",
    "write-properties": "Write properties",
    "write-content": "Write resource content",
    "unlock": "Unlock resource"})

GRANT: str = "grant"
DENY: str = "deny"

COLLATIONS: Mapping[str, Callable[[str], Tuple[str, ...]]] = {
    "codepoint": lambda name: (name,),
    "casefold": lambda name: (name.casefold(), name)}


def supported_privileges() -> Mapping[str, str]:
    """Get the names of all supported privileges with their descriptions."""
    return SUPPORTED_PRIVILEGES


def is_supported_privilege(name: str) -> bool:
    return name in SUPPORTED_PRIVILEGES


def sort_privileges(names: Iterable[str]) -> List[str]:
    """Sort privilege names in the order of ``SUPPORTED_PRIVILEGES``."""
    order = list(SUPPORTED_PRIVILEGES)
    return sorted(names, key=order.index)


class ACLError(RuntimeError):
    """Invalid ACL data or failure of the underlying storage."""


class AccessDenied(Exception):

    privilege: str

    def __init__(self, privilege: str) -> None:
        super().__init__(privilege)
        self.privilege = privilege


def _check_supported(names: Iterable[str]) -> None:
    for name in names:
        if not is_supported_privilege(name):
            raise ACLError("privilege %r not supported" % name)


class Privilege:
    """Granted and denied privileges of one principal."""

    principal: Optional[Principal]
    _granted: Set[str]
    _denied: Set[str]

    def __init__(self, principal: Optional[Principal] = None,
                 granted: Iterable[str] = (),
                 denied: Iterable[str] = ()) -> None:
        self.principal = principal
        self._granted = set()
        self._denied = set()
        self.set_granted_privileges(granted)
        self.set_denied_privileges(denied)

    @property
    def principal_name(self) -> str:
        if self.principal is None:
            raise ACLError("privilege without principal")
        return self.principal.name

    @property
    def granted(self) -> Set[str]:
        """Copy of the granted privilege names."""
        return set(self._granted)

    @property
    def denied(self) -> Set[str]:
        """Copy of the denied privilege names."""
        return set(self._denied)

    def is_empty(self) -> bool:
        return not self._granted and not self._denied

    def has_granted_privilege(self, name: str) -> bool:
        return name in self._granted

    def has_denied_privilege(self, name: str) -> bool:
        return name in self._denied

    def set_grant_privilege(self, name: str) -> None:
        _check_supported((name,))
        self._granted.add(name)

    def set_deny_privilege(self, name: str) -> None:
        """Deny ``name``, a grant of the same privilege is dropped."""
        _check_supported((name,))
        self._granted.discard(name)
        self._denied.add(name)

    def set_granted_privileges(self, names: Iterable[str]) -> None:
        names = set(names)
        _check_supported(names)
        self._granted = names

    def set_denied_privileges(self, names: Iterable[str]) -> None:
        names = set(names)
        _check_supported(names)
        self._denied = names

    def remove_granted_privilege(self, name: str) -> None:
        self._granted.discard(name)

    def remove_denied_privilege(self, name: str) -> None:
        self._denied.discard(name)

    def remove_all_granted_privileges(self) -> None:
        self._granted = set()

    def remove_all_denied_privileges(self) -> None:
        self._denied = set()

    def copy(self) -> "Privilege":
        return Privilege(self.principal, self._granted, self._denied)

    def __repr__(self) -> str:
        return "Privilege(%r, granted=%r, denied=%r)" % (
            self.principal, sort_privileges(self._granted),
            sort_privileges(self._denied))


class PrivilegeCollection:
    """The ACL of one resource: an owner and the privileges of other
    principals.

    Entries are enumerated in the order of the ``collation`` (see
    ``COLLATIONS``), this order is also used when the collection is stored.

    """

    _owner: Optional[Principal]
    _privileges: Dict[str, Privilege]
    _sort_key: Callable[[str], Tuple[str, ...]]

    def __init__(self, owner: Optional[Principal] = None,
                 collation: str = "codepoint") -> None:
        if collation not in COLLATIONS:
            raise ValueError("Unsupported collation: %r" % collation)
        self._owner = owner
        self._privileges = {}
        self._collation = collation
        self._sort_key = COLLATIONS[collation]

    @property
    def owner(self) -> Optional[Principal]:
        return self._owner

    @property
    def collation(self) -> str:
        return self._collation

    def set_owner(self, principal: Optional[Principal]) -> None:
        self._owner = principal

    def _is_owner(self, principal: Principal) -> bool:
        if self._owner is None:
            return False
        return self._owner.name == ALL or self._owner.name == principal.name

    def authorize(self, principal: Principal, name: str) -> None:
        """Check that ``principal`` has the privilege ``name``.

        Raises ``AccessDenied`` otherwise. The order of the checks matters:
        unknown privileges, the owner (or wildcard owner), unlisted
        principals, denials and finally grants.

        """
        if not is_supported_privilege(name):
            reason = "unsupported privilege"
        elif self._owner is None:
            reason = "resource without owner"
        elif self._is_owner(principal):
            return
        elif principal.name not in self._privileges:
            reason = "no privileges"
        elif self._privileges[principal.name].has_denied_privilege(name):
            reason = "denied"
        elif not self._privileges[principal.name].has_granted_privilege(name):
            reason = "not granted"
        else:
            return
        logger.debug("Access to %r denied for %r: %s",
                     name, principal.name, reason)
        raise AccessDenied(name)

    def is_authorized(self, principal: Principal, name: str) -> bool:
        try:
            self.authorize(principal, name)
        except AccessDenied:
            return False
        return True

    def get_effective_privilege(self, principal: Principal) -> Privilege:
        """Get the privileges of ``principal``.

        The owner gets every supported privilege, principals without an
        entry get an empty ``Privilege``. The result is a copy.

        """
        if self._is_owner(principal):
            return Privilege(principal, SUPPORTED_PRIVILEGES)
        return self.get_privilege(principal) or Privilege(principal)

    def get_privilege(self, principal: Principal) -> Optional[Privilege]:
        """Get a copy of the stored entry of ``principal``."""
        privilege = self._privileges.get(principal.name)
        return None if privilege is None else privilege.copy()

    def get_all_privileges(self) -> List[Privilege]:
        return [self._privileges[name].copy() for name in
                sorted(self._privileges, key=self._sort_key)]

    def set_privilege(self, privilege: Privilege) -> None:
        """Store a copy of ``privilege``, replacing the entry of its principal.

        An empty ``privilege`` removes the entry.

        The caller must have checked the ``write-acl`` privilege.

        """
        if privilege.is_empty():
            self._privileges.pop(privilege.principal_name, None)
        else:
            self._privileges[privilege.principal_name] = privilege.copy()

    def remove_principal_privilege(self, principal: Principal) -> None:
        self._privileges.pop(principal.name, None)

    def __contains__(self, principal: object) -> bool:
        return (isinstance(principal, Principal) and
                principal.name in self._privileges)

    def __len__(self) -> int:
        return len(self._privileges)

    def __repr__(self) -> str:
        return "PrivilegeCollection(owner=%r, %r)" % (
            self._owner, self.get_all_privileges())
