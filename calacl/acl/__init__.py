# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2012-2017 Guillaume Ayoub
# Copyright © 2017-2018 Unrud <unrud@outlook.com>
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
The ACL module binds the privileges of a resource to its path.

A resource ACL goes through these states:

  - absent: constructed, nothing loaded yet
  - bootstrapped: no ACL existed, a new one owned by the requesting principal
    was created and stored
  - loaded: the stored ACL of the resource was read

Take a look at the classes ``BaseACL`` and ``BaseResourceACL`` if you want to
implement your own.

"""

from typing import List, Mapping, Sequence

from calacl import config, privilege, utils
from calacl.principal import Transaction
from calacl.privilege import (AccessDenied, ACLError,  # noqa:F401
                              PrivilegeCollection)

INTERNAL_TYPES: Sequence[str] = ("filesystem",)

STATE_ABSENT: str = "absent"
STATE_BOOTSTRAPPED: str = "bootstrapped"
STATE_LOADED: str = "loaded"


def load(configuration: "config.Configuration") -> "BaseACL":
    """Load the ACL module chosen in configuration."""
    return utils.load_plugin(INTERNAL_TYPES, "acl", "ACL", BaseACL,
                             configuration)


class BaseResourceACL:

    @property
    def path(self) -> str:
        """The sanitized resource path with leading ``/``."""
        raise NotImplementedError

    @property
    def state(self) -> str:
        """One of ``STATE_ABSENT``, ``STATE_BOOTSTRAPPED`` and
        ``STATE_LOADED``."""
        raise NotImplementedError

    def get_privilege_collection(self) -> PrivilegeCollection:
        """Get the ACL of the resource."""
        raise NotImplementedError

    def get_supported_privilege_set(self) -> Mapping[str, str]:
        """Get the supported privileges with their descriptions."""
        return privilege.supported_privileges()

    def get_principal_collection_set(self) -> List[str]:
        """Get the hrefs of the collections that contain principals."""
        return []

    def set_privilege_collection(self, transaction: Transaction,
                                 collection: PrivilegeCollection) -> None:
        """Replace the ACL of the resource and store it.

        The caller must have checked the ``write-acl`` privilege.

        """
        raise NotImplementedError

    def remove_collection(self, transaction: Transaction) -> None:
        """Remove the stored ACL of the resource.

        Requires the ``write`` privilege, raises ``AccessDenied`` otherwise.

        """
        raise NotImplementedError


class BaseACL:

    def __init__(self, configuration: "config.Configuration") -> None:
        """Initialize BaseACL.

        ``configuration`` see ``calacl.config`` module.
        The ``configuration`` must not change during the lifetime of
        this object, it is kept as an internal reference.

        """
        self.configuration = configuration

    def get_resource_acl(self, transaction: Transaction, path: str
                         ) -> BaseResourceACL:
        """Get the ACL of the resource ``path``.

        A missing ACL is created for the principal of ``transaction``.

        Raises ``ACLError`` if the path can't be mapped to the storage.

        """
        raise NotImplementedError
