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
Principals and the transaction context of a request.

Authentication happens before this layer, a ``Principal`` is an already
resolved identity.

"""

# Reserved principal name, an owner with this name is a wildcard owner
ALL: str = "all"


class Principal:

    _name: str

    def __init__(self, name: str) -> None:
        """Initialize Principal.

        ``name`` is either a plain principal name or a principal href like
        ``/principals/users/alice/``; only the last path segment is kept.

        """
        name = name.rstrip("/")
        if "/" in name:
            name = name[name.rindex("/") + 1:]
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_all(self) -> bool:
        return self._name == ALL

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Principal):
            return NotImplemented
        return self._name == other._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return "Principal(%r)" % self._name

    def __str__(self) -> str:
        return self._name


class Transaction:
    """Context of one operation, carries the authenticated principal."""

    principal: Principal

    def __init__(self, principal: Principal) -> None:
        self.principal = principal

    def __repr__(self) -> str:
        return "Transaction(%r)" % self.principal
