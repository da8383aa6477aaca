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
Tests for pathutils module.

"""

import gc
import os
import tempfile

import pytest

from calacl import pathutils


class TestPaths:

    @pytest.mark.parametrize(["path", "sane_path"], [
        ("/", "/"),
        ("", "/"),
        ("alice", "/alice"),
        ("/alice/calendar/", "/alice/calendar/"),
        ("/alice//calendar/./event.ics", "/alice/calendar/event.ics"),
        ("/../alice/../../bob", "/bob")])
    def test_sanitize_path(self, path: str, sane_path: str) -> None:
        assert pathutils.sanitize_path(path) == sane_path

    def test_unstrip_path(self) -> None:
        assert pathutils.unstrip_path("") == "/"
        assert pathutils.unstrip_path("alice/calendar") == "/alice/calendar"
        assert pathutils.unstrip_path(pathutils.strip_path(
            pathutils.sanitize_path("/alice/calendar/"))) == "/alice/calendar"

    @pytest.mark.parametrize("name", [
        "", ".", "..", ".CalACL.acl.xml", "backup~", "a/b"])
    def test_unsafe_filesystem_path_component(self, name: str) -> None:
        assert not pathutils.is_safe_filesystem_path_component(name)

    def test_safe_filesystem_path_component(self) -> None:
        assert pathutils.is_safe_filesystem_path_component("event.ics")


class TestPathToFilesystem:
    """Tests for path_to_filesystem function."""

    def test_path_to_filesystem(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            assert pathutils.path_to_filesystem(tmpdir, "") == tmpdir
            subdir = os.path.join(tmpdir, "alice")
            os.makedirs(subdir)
            assert pathutils.path_to_filesystem(tmpdir, "alice") == subdir
            # The path doesn't have to exist
            assert pathutils.path_to_filesystem(
                tmpdir, "alice/calendar/event.ics") == os.path.join(
                    subdir, "calendar", "event.ics")

    def test_unsafe_path_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(pathutils.UnsafePathError):
                pathutils.path_to_filesystem(tmpdir, ".CalACL.lock")
            with pytest.raises(pathutils.UnsafePathError):
                pathutils.path_to_filesystem(tmpdir, "alice/backup~")


class TestLocks:

    def test_registry(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = pathutils.LockRegistry()
            path = os.path.join(tmpdir, "lock")
            lock = registry.get(path)
            assert registry.get(os.path.join(tmpdir, ".", "lock")) is lock
            assert registry.get(os.path.join(tmpdir, "other")) is not lock
            assert lock.path == path

    def test_registry_releases_unused_locks(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = pathutils.LockRegistry()
            path = os.path.join(tmpdir, "lock")
            with registry.get(path).acquire("w"):
                gc.collect()
                assert len(registry) == 1
                assert registry.get(path).locked == "w"
            gc.collect()
            assert len(registry) == 0
            assert registry.get(path).locked == ""

    def test_modes(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            lock = pathutils.RwLock(os.path.join(tmpdir, "lock"))
            with lock.acquire("r"):
                assert lock.locked == "r"
                with lock.acquire("r"):
                    assert lock.locked == "r"
            assert lock.locked == ""
            with lock.acquire("w"):
                assert lock.locked == "w"
            with pytest.raises(ValueError):
                with lock.acquire("x"):
                    pass
