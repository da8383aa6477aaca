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
CalACL Helpers module.

This module offers helpers to use in tests.

"""

from calacl import config


def _raw_value(value):
    if isinstance(value, list):
        return ", ".join(value)
    return str(value)


def configuration_to_dict(configuration: config.Configuration):
    """Convert configuration to a dict with values in config file syntax."""
    return {section: {option: _raw_value(configuration.get(section, option))
                      for option in configuration.options(section)
                      if not option.startswith("_")}
            for section in configuration.sections()
            if not section.startswith("_")}


def acl_file(*resources: str) -> str:
    """Build the content of an ACL file from ``resource`` elements."""
    return '<?xml version="1.0"?>\n<acl>\n%s\n</acl>\n' % "\n".join(resources)
