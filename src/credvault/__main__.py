# Main Entry Point - Command Line Interface
#
# Thin argparse front end over CommandDispatcher, backed by the SQLite
# key/value store at the configured path. The master secret is read from
# $CREDVAULT_MASTER_SECRET when set (scripting), else prompted for.
#
#   credvault init | verify | list | find DOMAIN | add ... | delete ID
#   credvault export FILE | import FILE | generate | clear

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import get_config
from .vault import CommandDispatcher, CommandResult, CredentialStore, SQLiteStore, StorageFailure
from .vault import commands as cmd
from .vault.models import CredentialEntry


def _read_secret(prompt: str = "Master password: ") -> str:
    secret = os.environ.get("CREDVAULT_MASTER_SECRET")
    if secret:
        return secret
    return getpass.getpass(prompt)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credvault",
        description="credvault - local encrypted credential vault",
    )
    parser.add_argument("--db", help="Path to the vault database (default: from config)")
    parser.add_argument("--version", action="version", version=f"credvault v{__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Set the master password")
    sub.add_parser("verify", help="Check the master password")
    sub.add_parser("list", help="List stored credentials (passwords hidden)")

    find = sub.add_parser("find", help="Find credentials for a domain")
    find.add_argument("domain")
    find.add_argument("--show-password", action="store_true")

    add = sub.add_parser("add", help="Add a credential")
    add.add_argument("domain")
    add.add_argument("username")
    add.add_argument("--url", default="", help="Full URL of the login page")
    add.add_argument("--notes", default="")
    add.add_argument("--tag", action="append", default=[], dest="tags")
    add.add_argument("--generate", type=int, metavar="LENGTH",
                     help="Generate a password of this length instead of prompting")

    delete = sub.add_parser("delete", help="Delete a credential by id")
    delete.add_argument("entry_id")

    export = sub.add_parser("export", help="Write an export file")
    export.add_argument("file", type=Path)

    imp = sub.add_parser("import", help="Replace the vault from an export file")
    imp.add_argument("file", type=Path)

    gen = sub.add_parser("generate", help="Print a random password")
    gen.add_argument("--length", type=int, default=16)
    gen.add_argument("--no-symbols", action="store_true")

    sub.add_parser("clear", help="Erase all vault data")
    return parser


def _fail(result: CommandResult) -> int:
    print(f"Error ({result.failure.value if result.failure else 'unknown'}): {result.message}",
          file=sys.stderr)
    for error in result.errors:
        print(f"  - {error}", file=sys.stderr)
    return 1


def _print_entry(entry: CredentialEntry, show_password: bool = False) -> None:
    line = f"{entry.id}  {entry.domain}  {entry.username}"
    if show_password:
        line += f"  {entry.password}"
    print(line)


def run(args: argparse.Namespace, dispatcher: CommandDispatcher) -> int:
    """Execute one parsed CLI command. Returns the process exit code."""
    if args.command == "generate":
        result = dispatcher.dispatch(cmd.GeneratePassword(length=args.length, symbols=not args.no_symbols))
        if not result.ok:
            return _fail(result)
        print(result.value)
        return 0

    if args.command == "clear":
        result = dispatcher.dispatch(cmd.ClearAll())
        if not result.ok:
            return _fail(result)
        print("All vault data erased.")
        return 0

    if args.command == "init":
        secret = _read_secret("New master password: ")
        result = dispatcher.dispatch(cmd.SetMasterSecret(secret))
        if not result.ok:
            return _fail(result)
        print("Master password set.")
        return 0

    secret = _read_secret()

    if args.command == "verify":
        result = dispatcher.dispatch(cmd.VerifyMasterSecret(secret))
        if not result.ok:
            return _fail(result)
        print("Master password OK." if result.value else "Master password incorrect.")
        return 0 if result.value else 1

    if args.command == "list":
        result = dispatcher.dispatch(cmd.GetAll(secret))
        if not result.ok:
            return _fail(result)
        for entry in result.value:
            _print_entry(entry)
        return 0

    if args.command == "find":
        result = dispatcher.dispatch(cmd.FindByDomain(args.domain, secret))
        if not result.ok:
            return _fail(result)
        for entry in result.value:
            _print_entry(entry, show_password=args.show_password)
        return 0

    if args.command == "add":
        if args.generate:
            generated = dispatcher.dispatch(cmd.GeneratePassword(length=args.generate))
            if not generated.ok:
                return _fail(generated)
            password = generated.value
        else:
            password = getpass.getpass("Site password: ")
        entry = CredentialEntry(
            domain=args.domain,
            full_url=args.url,
            username=args.username,
            password=password,
            notes=args.notes,
            tags=args.tags,
        )
        result = dispatcher.dispatch(cmd.Add(entry, secret))
        if not result.ok:
            return _fail(result)
        print(result.value.id)
        return 0

    if args.command == "delete":
        result = dispatcher.dispatch(cmd.Delete(args.entry_id, secret))
        if not result.ok:
            return _fail(result)
        print(f"Removed {result.value} credential(s).")
        return 0

    if args.command == "export":
        result = dispatcher.dispatch(cmd.ExportAll(secret))
        if not result.ok:
            return _fail(result)
        args.file.write_text(result.value.to_json(indent=2), encoding="utf-8")
        print(f"Exported {len(result.value.passwords or [])} credential(s) to {args.file}")
        return 0

    if args.command == "import":
        try:
            document = args.file.read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
            return 1
        result = dispatcher.dispatch(cmd.ImportAll(document, secret))
        if not result.ok:
            return _fail(result)
        print(f"Imported {result.value} credential(s).")
        return 0

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for credvault."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    logging.basicConfig(level=config.log_level_value, format="%(levelname)s %(name)s: %(message)s")

    try:
        store = SQLiteStore(args.db or config.db_path)
    except StorageFailure as e:
        print(f"Error (storage): {e.message}", file=sys.stderr)
        return 1
    dispatcher = CommandDispatcher(CredentialStore(store))

    try:
        return run(args, dispatcher)
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
