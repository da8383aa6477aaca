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
Custom ACL backend.

Lists the principal collection given by the ``principals_href`` option and
keeps the ACLs in the filesystem.

"""

from calacl import config
from calacl.acl import filesystem


class ACL(filesystem.ACL):

    def __init__(self, configuration: config.Configuration) -> None:
        super().__init__(configuration)
        self.principal_collection_set = [
            configuration.get("acl", "principals_href")]
