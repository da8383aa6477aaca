# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2008 Nicolas Kandel
# Copyright © 2008 Pascal Halter
# Copyright © 2008-2017 Guillaume Ayoub
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
Access control for CalDAV resources.

Privileges of principals are kept per resource in an ACL file in the
directory of the resource. Use ``calacl.acl.load()`` with a configuration
from ``calacl.config.load()`` to obtain an ACL backend.

"""

# config must be imported first, the plugin modules read it lazily
from calacl import config, log, utils  # noqa:F401  # isort:skip

VERSION: str = utils.package_version("CalACL")
