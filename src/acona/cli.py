"""acona CLI - command-line access to a configured store tree.

Usage:
    acona [--config FILE] ls PATH
    acona [--config FILE] stat PATH
    acona [--config FILE] get PATH [--out FILE]
    acona [--config FILE] put LOCAL_FILE PATH [--checksum KIND:HEX]
    acona [--config FILE] rm PATH
    acona [--config FILE] mv SOURCE TARGET

Without --config the tree comes from ACONA_CONFIG, or a single local store
named "local" configured from ACONA_LOCAL_ROOT_DIR.

Exit codes:
    0: Success
    1: Store error / Internal error
    2: Configuration or usage error
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any

from acona.observability.tracing import configure_tracing
from acona.storage.config import (
    StoreConfigError,
    build_store,
    build_store_from_env,
    load_store_config,
)
from acona.storage.errors import StoreError
from acona.storage.object_store import Store

logger = logging.getLogger(__name__)


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _error_result(kind: str, message: str, path: str | None = None) -> dict[str, Any]:
    return {"error": {"kind": kind, "message": message, "path": path}}


def _load_store(config_path: str | None) -> Store:
    if config_path:
        return build_store(load_store_config(config_path))
    return build_store_from_env()


def cmd_ls(store: Store, args: argparse.Namespace) -> int:
    objects = store.list_tree(args.path)
    _output_json({"objects": [o.to_dict() for o in objects]})
    return 0


def cmd_stat(store: Store, args: argparse.Namespace) -> int:
    _output_json(store.examine(args.path).to_dict())
    return 0


def cmd_get(store: Store, args: argparse.Namespace) -> int:
    """Copy an object to a local file, or raw to stdout without --out."""
    with store.get_object(args.path) as src:
        if args.out:
            with open(args.out, "wb") as dest:
                shutil.copyfileobj(src, dest)
            _output_json({"ok": True, "path": args.path, "out": args.out})
        else:
            shutil.copyfileobj(src, sys.stdout.buffer)
            sys.stdout.buffer.flush()
    return 0


def cmd_put(store: Store, args: argparse.Namespace) -> int:
    local_file = Path(args.local_file)
    try:
        src = local_file.open("rb")
    except OSError as e:
        _output_json(_error_result("usage", f"Cannot read input: {e}", str(local_file)))
        return 2
    with src:
        store.put_object(src, args.path, args.checksum or "")
    _output_json({"ok": True, "path": args.path})
    return 0


def cmd_rm(store: Store, args: argparse.Namespace) -> int:
    store.remove(args.path)
    _output_json({"ok": True, "path": args.path})
    return 0


def cmd_mv(store: Store, args: argparse.Namespace) -> int:
    store.rename(args.source, args.target)
    _output_json({"ok": True, "source": args.source, "target": args.target})
    return 0


COMMAND_DISPATCH = {
    "ls": cmd_ls,
    "stat": cmd_stat,
    "get": cmd_get,
    "put": cmd_put,
    "rm": cmd_rm,
    "mv": cmd_mv,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="acona",
        description="acona - uniform object storage CLI",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        default=None,
        help="YAML store configuration (default: $ACONA_CONFIG)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for messages on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ls_parser = subparsers.add_parser("ls", help="List the children of a directory")
    ls_parser.add_argument("path", nargs="?", default="", help="Directory path (default: root)")

    stat_parser = subparsers.add_parser("stat", help="Show object metadata")
    stat_parser.add_argument("path")

    get_parser = subparsers.add_parser("get", help="Download an object")
    get_parser.add_argument("path")
    get_parser.add_argument(
        "--out",
        metavar="FILE",
        help="Local file to write (writes raw bytes to stdout if omitted)",
    )

    put_parser = subparsers.add_parser("put", help="Upload a local file")
    put_parser.add_argument("local_file", metavar="LOCAL_FILE")
    put_parser.add_argument("path")
    put_parser.add_argument(
        "--checksum",
        metavar="KIND:HEX",
        help="Checksum of the content, e.g. sha256:<hex>",
    )

    rm_parser = subparsers.add_parser("rm", help="Remove an object or directory tree")
    rm_parser.add_argument("path")

    mv_parser = subparsers.add_parser("mv", help="Rename an object within one store")
    mv_parser.add_argument("source")
    mv_parser.add_argument("target")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Store error / Internal error (unexpected)
        2: Configuration or usage error
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        configure_tracing()
        store = _load_store(args.config)
        return COMMAND_DISPATCH[args.command](store, args)

    except StoreConfigError as e:
        _output_json(_error_result("config", e.message, e.path))
        return 2

    except StoreError as e:
        _output_json(_error_result(str(e.kind), e.message, e.path))
        return 1

    except Exception as e:
        logger.exception("Unexpected error running %s", args.command)
        _output_json(_error_result("internal", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
