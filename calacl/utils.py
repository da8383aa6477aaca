# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2014 Jean-Marc Martins
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

from importlib import import_module, metadata
from typing import Callable, List, Sequence, Type, TypeVar, Union

from calacl import config
from calacl.log import logger

_T_co = TypeVar("_T_co", covariant=True)

CALACL_MODULES: Sequence[str] = ("CalACL", "defusedxml")


def load_plugin(internal_types: Sequence[str], module_name: str,
                class_name: str, base_class: Type[_T_co],
                configuration: "config.Configuration") -> _T_co:
    type_: Union[str, Callable] = configuration.get(module_name, "type")
    if callable(type_):
        logger.info("%s type is %r", module_name, type_)
        return type_(configuration)
    if type_ in internal_types:
        module = "calacl.%s.%s" % (module_name, type_)
    else:
        module = type_
    try:
        class_ = getattr(import_module(module), class_name)
    except Exception as e:
        raise RuntimeError("Failed to load %s module %r: %s" %
                           (module_name, module, e)) from e
    if not issubclass(class_, base_class):
        raise RuntimeError("%s module %r: %r is not a subclass of %r" %
                           (module_name, module, class_, base_class))
    logger.info("%s type is %r", module_name, module)
    return class_(configuration)


def package_version(name: str) -> str:
    return metadata.version(name)


def packages_version() -> str:
    versions: List[str] = []
    for pkg in CALACL_MODULES:
        try:
            versions.append("%s=%s" % (pkg, package_version(pkg)))
        except metadata.PackageNotFoundError:
            versions.append("%s=unknown" % pkg)
    return " ".join(versions)
