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

from pytest import fixture, raises

import calacl.utils as utils
from calacl.utils import load_plugin


class Configuration:
    def __init__(self, data):
        self.data = data

    def get(self, a, b):
        return self.data.get(a, {}).get(b)


class Base:
    def __init__(self, configuration):
        self.configuration = configuration


class Module:
    class Plugin(Base):
        pass

    class Unrelated:
        def __init__(self, configuration):
            self.configuration = configuration


class TestLoadPlugin:
    @fixture(autouse=True)
    def import_module(self, monkeypatch):
        imported = []

        def import_module(module):
            imported.append(module)
            if module in ("test.plugin", "calacl.test.plugin"):
                return Module
            raise ImportError(module)

        monkeypatch.setattr(utils, "import_module", import_module)

        return imported

    @fixture
    def config(self):
        return Configuration({"test": {"type": "plugin"}})

    def test_internal(self, config, import_module):
        plugin = load_plugin(["plugin"], "test", "Plugin", Base, config)
        assert isinstance(plugin, Module.Plugin)
        assert plugin.configuration is config
        assert import_module == ["calacl.test.plugin"]

    def test_external(self, import_module):
        config = Configuration({"test": {"type": "test.plugin"}})
        plugin = load_plugin([], "test", "Plugin", Base, config)
        assert isinstance(plugin, Module.Plugin)
        assert import_module == ["test.plugin"]

    def test_callable(self):
        config = Configuration({"test": {"type": Module.Plugin}})
        plugin = load_plugin([], "test", "Plugin", Base, config)
        assert isinstance(plugin, Module.Plugin)

    def test_not_subclass(self, config):
        with raises(RuntimeError) as exc_info:
            load_plugin(["plugin"], "test", "Unrelated", Base, config)
        assert "is not a subclass" in str(exc_info.value)

    def test_not_found(self, config):
        with raises(RuntimeError):
            load_plugin([], "any", "CustomPlugin", Base, config)


class TestVersions:

    def test_packages_version(self, monkeypatch):
        def package_version(name):
            if name == "defusedxml":
                raise utils.metadata.PackageNotFoundError(name)
            return "1.0"
        monkeypatch.setattr(utils, "package_version", package_version)
        assert utils.packages_version() == "CalACL=1.0 defusedxml=unknown"
