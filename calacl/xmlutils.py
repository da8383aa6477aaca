# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2008 Nicolas Kandel
# Copyright © 2008 Pascal Halter
# Copyright © 2008-2015 Guillaume Ayoub
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
Records of ACL files and their XML representation.

One ACL file holds the ACLs of all resources in a directory::

    <?xml version="1.0"?>
    <acl>
      <resource path="/alice/calendar" principal="alice">
        <privilege principal="bob" read="grant" write="deny" />
      </resource>
    </acl>

A ``privilege`` element without ``principal`` applies to ``all``.

"""

import copy
import re
import sys
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Mapping, Optional

# HACK: https://github.com/tiran/defusedxml/issues/54
import defusedxml.ElementTree as DefusedET  # isort:skip
sys.modules["xml.etree"].ElementTree = ET  # type:ignore[attr-defined]

ROOT_TAG: str = "acl"
RESOURCE_TAG: str = "resource"
PRIVILEGE_TAG: str = "privilege"
PATH_ATTRIBUTE: str = "path"
PRINCIPAL_ATTRIBUTE: str = "principal"
VALUES: Iterable[str] = ("grant", "deny")

# Characters that XML 1.0 can not represent, not even as references
INVALID_CHARACTERS = re.compile(
    "[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class CorruptRecordError(ValueError):
    """A record violates the format of ACL files."""


class MissingOwnerError(CorruptRecordError):

    def __init__(self, path: str) -> None:
        super().__init__("ACL of %r has no owner" % path)


class InvalidCharacterError(ValueError):

    def __init__(self, name: str, value: str) -> None:
        super().__init__("%s %r contains characters that can't be stored "
                         "in ACL files" % (name, value))


class EntryRecord:
    """Privileges of one principal, ``principal`` is ``None`` for ``all``."""

    principal: Optional[str]
    privileges: Dict[str, str]

    def __init__(self, principal: Optional[str] = None,
                 privileges: Optional[Mapping[str, str]] = None) -> None:
        self.principal = principal
        self.privileges = dict(privileges or {})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntryRecord):
            return NotImplemented
        return (self.principal == other.principal and
                self.privileges == other.privileges)

    def __repr__(self) -> str:
        return "EntryRecord(%r, %r)" % (self.principal, self.privileges)


class ResourceRecord:
    """ACL of one resource."""

    path: str
    owner: Optional[str]
    entries: List[EntryRecord]

    def __init__(self, path: str, owner: Optional[str] = None,
                 entries: Optional[Iterable[EntryRecord]] = None) -> None:
        self.path = path
        self.owner = owner
        self.entries = list(entries or [])

    def copy(self) -> "ResourceRecord":
        return copy.deepcopy(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceRecord):
            return NotImplemented
        return (self.path == other.path and self.owner == other.owner and
                self.entries == other.entries)

    def __repr__(self) -> str:
        return "ResourceRecord(%r, %r, %r)" % (
            self.path, self.owner, self.entries)


def pretty_xml(element: ET.Element) -> str:
    """Indent an ElementTree ``element`` and its children."""
    def pretty_xml_recursive(element: ET.Element, level: int) -> None:
        indent = "\n" + level * "  "
        if len(element) > 0:
            if not (element.text or "").strip():
                element.text = indent + "  "
            if not (element.tail or "").strip():
                element.tail = indent
            for sub_element in element:
                pretty_xml_recursive(sub_element, level + 1)
            if not (sub_element.tail or "").strip():
                sub_element.tail = indent
        elif level > 0 and not (element.tail or "").strip():
            element.tail = indent
    element = copy.deepcopy(element)
    pretty_xml_recursive(element, 0)
    return '<?xml version="1.0"?>\n%s\n' % ET.tostring(element, "unicode")


def _decode_entry(element: ET.Element, path: str) -> EntryRecord:
    if element.tag != PRIVILEGE_TAG:
        raise CorruptRecordError("Unexpected element %r in ACL of %r" %
                                 (element.tag, path))
    entry = EntryRecord(element.get(PRINCIPAL_ATTRIBUTE))
    for name, value in element.attrib.items():
        if name == PRINCIPAL_ATTRIBUTE:
            continue
        if value not in VALUES:
            raise CorruptRecordError(
                "Invalid value %r for privilege %r in ACL of %r" %
                (value, name, path))
        entry.privileges[name] = value
    return entry


def decode(text: str) -> List[ResourceRecord]:
    """Parse the content of an ACL file.

    Raises ``xml.etree.ElementTree.ParseError`` for malformed XML and
    ``CorruptRecordError`` if the XML is not a valid ACL file.

    """
    root = DefusedET.fromstring(text)
    if root.tag != ROOT_TAG:
        raise CorruptRecordError("Unexpected root element %r" % root.tag)
    records: List[ResourceRecord] = []
    paths = set()
    for element in root:
        if element.tag != RESOURCE_TAG:
            raise CorruptRecordError("Unexpected element %r" % element.tag)
        path = element.get(PATH_ATTRIBUTE)
        if not path:
            raise CorruptRecordError("Resource record without path")
        if path in paths:
            raise CorruptRecordError("Duplicate resource record %r" % path)
        paths.add(path)
        records.append(ResourceRecord(
            path, element.get(PRINCIPAL_ATTRIBUTE),
            (_decode_entry(e, path) for e in element)))
    return records


def _check_text(name: str, value: Optional[str]) -> None:
    if value is not None and INVALID_CHARACTERS.search(value):
        raise InvalidCharacterError(name, value)


def check_record(record: ResourceRecord) -> None:
    """Check that ``record`` can be written to an ACL file.

    Raises ``InvalidCharacterError`` for paths and principal names with
    characters that XML can't represent and ``ValueError`` for unknown
    privilege values.

    """
    _check_text("Resource path", record.path)
    _check_text("Principal", record.owner)
    for entry in record.entries:
        _check_text("Principal", entry.principal)
        for name, value in entry.privileges.items():
            _check_text("Privilege", name)
            if value not in VALUES:
                raise ValueError("Invalid value %r for privilege %r" %
                                 (value, name))


def encode(records: Iterable[ResourceRecord]) -> str:
    """Serialize ``records`` to the content of an ACL file.

    Attribute order is kept: ``path`` and ``principal`` first, then the
    privileges in the order of the entry.

    """
    root = ET.Element(ROOT_TAG)
    for record in records:
        check_record(record)
        element = ET.SubElement(root, RESOURCE_TAG)
        element.set(PATH_ATTRIBUTE, record.path)
        if record.owner is not None:
            element.set(PRINCIPAL_ATTRIBUTE, record.owner)
        for entry in record.entries:
            sub_element = ET.SubElement(element, PRIVILEGE_TAG)
            if entry.principal is not None:
                sub_element.set(PRINCIPAL_ATTRIBUTE, entry.principal)
            for name, value in entry.privileges.items():
                sub_element.set(name, value)
    return pretty_xml(root)
