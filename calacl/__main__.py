# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2011-2017 Guillaume Ayoub
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
CalACL executable module.

This module can be executed from a command line with ``$python -m calacl``.
Inspects and edits the ACLs in the storage.

"""

import argparse
import contextlib
import os
import sys
from typing import List, Optional, Sequence, cast

from calacl import VERSION, acl, config, log, storage, types, utils
from calacl.log import logger
from calacl.principal import Principal, Transaction
from calacl.privilege import (AccessDenied, ACLError, Privilege,
                              sort_privileges, supported_privileges)
from calacl.xmlutils import CorruptRecordError


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    # Configuration options are stored in dest with format "c:SECTION:OPTION"
    for section, section_data in config.DEFAULT_CONFIG_SCHEMA.items():
        if section.startswith("_"):
            continue
        assert ":" not in section  # check field separator
        assert "-" not in section and "_" not in section  # not implemented
        group_description = None
        if "type" in section_data:
            group_description = "backend specific options omitted"
        group = parser.add_argument_group(section, group_description)
        for option, data in section_data.items():
            if option.startswith("_"):
                continue
            kwargs = data.copy()
            long_name = "--%s-%s" % (section, option.replace("_", "-"))
            args: List[str] = list(kwargs.pop("aliases", ()))
            args.append(long_name)
            kwargs["dest"] = "c:%s:%s" % (section, option)
            kwargs["metavar"] = "VALUE"
            kwargs["default"] = argparse.SUPPRESS
            del kwargs["value"]
            with contextlib.suppress(KeyError):
                del kwargs["internal"]

            if kwargs["type"] == bool:
                del kwargs["type"]
                opposite_args = list(kwargs.pop("opposite_aliases", ()))
                opposite_args.append("--no%s" % long_name[1:])
                group.add_argument(*args, nargs="?", const="True", **kwargs)
                # Opposite argument
                kwargs["help"] = "do not %s (opposite of %s)" % (
                    kwargs["help"], long_name)
                group.add_argument(*opposite_args, action="store_const",
                                   const="False", **kwargs)
            else:
                del kwargs["type"]
                group.add_argument(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calacl", usage="%(prog)s [OPTIONS] COMMAND ...",
        allow_abbrev=False)

    parser.add_argument("--version", action="version", version=VERSION)
    parser.add_argument("-C", "--config",
                        help="use specific configuration files", nargs="*")
    parser.add_argument("-D", "--debug", action="store_const", const="debug",
                        dest="c:logging:level", default=argparse.SUPPRESS,
                        help="print debug information")
    parser.add_argument("-u", "--user", default=os.environ.get("USER", ""),
                        help="principal that runs the command "
                        "(default: $USER)")
    _add_config_arguments(parser)

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True
    command = commands.add_parser("show", help="print the ACL of a resource")
    command.add_argument("path")
    command = commands.add_parser(
        "check", help="check a privilege of a principal, exit with status 1 "
        "if it is denied")
    command.add_argument("path")
    command.add_argument("principal")
    command.add_argument("privilege")
    command = commands.add_parser(
        "grant", help="grant privileges to a principal")
    command.add_argument("path")
    command.add_argument("principal")
    command.add_argument("privileges", nargs="+", metavar="privilege")
    command = commands.add_parser(
        "deny", help="deny privileges to a principal")
    command.add_argument("path")
    command.add_argument("principal")
    command.add_argument("privileges", nargs="+", metavar="privilege")
    command = commands.add_parser(
        "revoke", help="remove all privileges of a principal")
    command.add_argument("path")
    command.add_argument("principal")
    command = commands.add_parser(
        "remove", help="remove the ACL of a resource")
    command.add_argument("path")
    commands.add_parser("privileges", help="list the supported privileges")
    commands.add_parser("verify", help="check the storage for errors")
    return parser


def _parse_arguments(parser: argparse.ArgumentParser,
                     argv: Optional[Sequence[str]]) -> argparse.Namespace:
    args_ns, remaining_args = parser.parse_known_args(argv)
    unrecognized_args = []
    while remaining_args:
        arg = remaining_args.pop(0)
        for section, data in config.DEFAULT_CONFIG_SCHEMA.items():
            if "type" not in data:
                continue
            prefix = "--%s-" % section
            if arg.startswith(prefix):
                arg = arg[len(prefix):]
                break
        else:
            unrecognized_args.append(arg)
            continue
        value = ""
        if "=" in arg:
            arg, value = arg.split("=", maxsplit=1)
        elif remaining_args and not remaining_args[0].startswith("-"):
            value = remaining_args.pop(0)
        option = arg.replace("-", "_")
        vars(args_ns)["c:%s:%s" % (section, option)] = value
    if unrecognized_args:
        parser.error("unrecognized arguments: %s" %
                     " ".join(unrecognized_args))
    return args_ns


def _format_privilege(privilege: Privilege) -> str:
    parts = []
    if privilege.granted:
        parts.append("grant %s" % ", ".join(sort_privileges(privilege.granted)))
    if privilege.denied:
        parts.append("deny %s" % ", ".join(sort_privileges(privilege.denied)))
    return "%s: %s" % (privilege.principal_name, "; ".join(parts))


def _show(resource_acl: acl.BaseResourceACL, transaction: Transaction
          ) -> None:
    collection = resource_acl.get_privilege_collection()
    collection.authorize(transaction.principal, "read-acl")
    print("%s (%s)" % (resource_acl.path, resource_acl.state))
    print("owner: %s" % (collection.owner.name if collection.owner
                         else "-"))
    for privilege in collection.get_all_privileges():
        print(_format_privilege(privilege))


def _edit(resource_acl: acl.BaseResourceACL, transaction: Transaction,
          args_ns: argparse.Namespace) -> None:
    collection = resource_acl.get_privilege_collection()
    collection.authorize(transaction.principal, "write-acl")
    principal = Principal(args_ns.principal)
    if args_ns.command == "revoke":
        collection.remove_principal_privilege(principal)
    else:
        privilege = (collection.get_privilege(principal) or
                     Privilege(principal))
        for name in args_ns.privileges:
            if args_ns.command == "grant":
                # A denial would still win over the new grant
                privilege.remove_denied_privilege(name)
                privilege.set_grant_privilege(name)
            else:
                privilege.set_deny_privilege(name)
        collection.set_privilege(privilege)
    resource_acl.set_privilege_collection(transaction, collection)
    logger.info("Changed ACL of %r: %s %s", resource_acl.path,
                args_ns.command, principal.name)


def _run_command(configuration: config.Configuration,
                 args_ns: argparse.Namespace) -> int:
    if args_ns.command == "privileges":
        for name, description in supported_privileges().items():
            print("%s: %s" % (name, description))
        return 0
    if args_ns.command == "verify":
        logger.info("Verifying storage")
        if not storage.load(configuration).verify():
            logger.critical("Storage verification failed")
            return 1
        return 0
    if not args_ns.user:
        logger.critical("No principal given, use --user")
        return 1
    transaction = Transaction(Principal(args_ns.user))
    acl_ = acl.load(configuration)
    resource_acl = acl_.get_resource_acl(transaction, args_ns.path)
    if args_ns.command == "show":
        _show(resource_acl, transaction)
    elif args_ns.command == "check":
        collection = resource_acl.get_privilege_collection()
        collection.authorize(transaction.principal, "read-acl")
        if not collection.is_authorized(Principal(args_ns.principal),
                                        args_ns.privilege):
            print("denied")
            return 1
        print("granted")
    elif args_ns.command == "remove":
        resource_acl.remove_collection(transaction)
    else:
        _edit(resource_acl, transaction, args_ns)
    return 0


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Run a CalACL command and exit."""
    log.setup()

    parser = _build_parser()
    args_ns = _parse_arguments(parser, argv)

    # Preliminary configure logging
    with contextlib.suppress(ValueError):
        log.set_level(config.DEFAULT_CONFIG_SCHEMA["logging"]["level"]["type"](
            vars(args_ns).get("c:logging:level", "")), True)

    # Update CalACL configuration according to arguments
    arguments_config: types.MUTABLE_CONFIG = {}
    for key, value in vars(args_ns).items():
        if key.startswith("c:"):
            _, section, option = key.split(":", maxsplit=2)
            arguments_config[section] = arguments_config.get(section, {})
            arguments_config[section][option] = value

    try:
        configuration = config.load(config.parse_compound_paths(
            config.DEFAULT_CONFIG_PATH,
            os.environ.get("CALACL_CONFIG"),
            os.pathsep.join(args_ns.config) if args_ns.config is not None
            else None))
        if arguments_config:
            configuration.update(arguments_config, "command line arguments")
    except Exception as e:
        logger.critical("Invalid configuration: %s", e, exc_info=True)
        sys.exit(1)

    # Configure logging
    log.set_level(cast(str, configuration.get("logging", "level")),
                  configuration.get("logging", "backtrace_on_debug"))

    # Log configuration after logger is configured
    for source, miss in configuration.sources():
        logger.debug("%s %s", "Skipped missing/unreadable" if miss
                     else "Loaded", source)
    logger.debug("Versions: %s", utils.packages_version())

    try:
        status = _run_command(configuration, args_ns)
    except AccessDenied as e:
        logger.error("Access denied for %r: %s", args_ns.user, e)
        sys.exit(1)
    except (ACLError, CorruptRecordError) as e:
        logger.error("%s", e, exc_info=True)
        sys.exit(1)
    except Exception as e:
        logger.critical("An exception occurred during %s: %s",
                        args_ns.command, e, exc_info=True)
        sys.exit(1)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    run()
