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
Tests for the command line interface.

"""

from typing import List

import pytest

from calacl import xmlutils
from calacl.__main__ import run
from calacl.tests import BaseTest


class TestMain(BaseTest):
    """Run commands against a temporary storage."""

    def setup_method(self) -> None:
        super().setup_method()
        self.mkdir("/alice/calendar")

    @pytest.fixture(autouse=True)
    def environment(self, monkeypatch) -> None:
        monkeypatch.delenv("CALACL_CONFIG", raising=False)
        monkeypatch.delenv("USER", raising=False)

    def run(self, *args: str, user: str = "alice", status: int = 0) -> None:
        argv: List[str] = ["--storage-filesystem-folder", self.colpath]
        if user:
            argv.extend(["--user", user])
        argv.extend(args)
        if status == 0:
            run(argv)
            return
        with pytest.raises(SystemExit) as exc_info:
            run(argv)
        assert exc_info.value.code == status

    def output(self, capsys, *args: str, **kwargs) -> List[str]:
        capsys.readouterr()
        self.run(*args, **kwargs)
        return capsys.readouterr().out.splitlines()

    def test_privileges(self, capsys) -> None:
        lines = self.output(capsys, "privileges", user="")
        assert len(lines) == 9
        assert lines[0] == "all: Any operation"

    def test_show(self, capsys) -> None:
        lines = self.output(capsys, "show", "/alice/calendar")
        assert lines == ["/alice/calendar (bootstrapped)", "owner: alice"]
        lines = self.output(capsys, "show", "/alice/calendar")
        assert lines[0] == "/alice/calendar (loaded)"

    def test_show_denied(self, capsys) -> None:
        self.run("show", "/alice/calendar")
        assert self.output(capsys, "show", "/alice/calendar", user="bob",
                           status=1) == []

    def test_grant_deny_revoke(self, capsys) -> None:
        self.run("grant", "/alice/calendar", "bob", "write", "read")
        self.run("deny", "/alice/calendar", "carol", "write")
        lines = self.output(capsys, "show", "/alice/calendar")
        assert lines[2:] == ["bob: grant read, write",
                             "carol: deny write"]
        self.run("deny", "/alice/calendar", "bob", "write")
        self.run("revoke", "/alice/calendar", "carol")
        lines = self.output(capsys, "show", "/alice/calendar")
        assert lines[2:] == ["bob: grant read; deny write"]
        self.run("grant", "/alice/calendar", "bob", "write")
        lines = self.output(capsys, "show", "/alice/calendar")
        assert lines[2:] == ["bob: grant read, write"]

    def test_check(self, capsys) -> None:
        self.run("grant", "/alice/calendar", "bob", "read")
        assert self.output(capsys, "check", "/alice/calendar", "bob",
                           "read") == ["granted"]
        assert self.output(capsys, "check", "/alice/calendar", "bob",
                           "write", status=1) == ["denied"]
        assert self.output(capsys, "check", "/alice/calendar", "alice",
                           "write-acl") == ["granted"]

    def test_edit_denied(self) -> None:
        self.run("grant", "/alice/calendar", "bob", "read")
        self.run("grant", "/alice/calendar", "bob", "write", user="bob",
                 status=1)
        self.run("grant", "/alice/calendar", "bob", "write-acl")
        self.run("grant", "/alice/calendar", "carol", "read", user="bob")
        record, = xmlutils.decode(self.read_acl_file("/alice/calendar"))
        assert record.owner == "alice"
        assert [e.principal for e in record.entries] == ["bob", "carol"]

    def test_unsupported_privilege(self) -> None:
        self.run("grant", "/alice/calendar", "bob", "bind", status=1)

    def test_remove(self) -> None:
        self.run("show", "/alice/calendar")
        self.run("remove", "/alice/calendar", user="bob", status=1)
        assert self.read_acl_file("/alice/calendar") is not None
        self.run("remove", "/alice/calendar")
        assert self.read_acl_file("/alice/calendar") is None

    def test_invalid_path(self) -> None:
        self.run("show", "/bob/calendar/event.ics", status=1)

    def test_no_user(self) -> None:
        self.run("show", "/alice/calendar", user="", status=1)

    def test_verify(self) -> None:
        self.run("show", "/alice/calendar")
        self.run("verify", user="")
        self.write_acl_file("/alice/calendar", "<acl>")
        self.run("verify", user="", status=1)

    def test_invalid_config(self) -> None:
        self.run("--acl-collation", "locale", "verify", status=1)

    def test_unrecognized_argument(self) -> None:
        self.run("--unknown", "verify", status=2)
