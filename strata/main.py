#!/usr/bin/env python3
"""strata — inspect and check a recipe channel."""

import argparse
import importlib
import json
import logging
import os
import sys

from strata import base32, nar, serialize
from strata.lock import LockDriftError, check_lock, dump_lock, read_lock
from strata.source import ChecksumMismatchError, verify_source

DEFAULT_CHANNEL = "stratapkgs.channel:EditorPkgs"


def load_channel(target: str):
    """Instantiate a recipe set from "module:attr"."""
    module_name, sep, attr = target.partition(":")
    if not sep or not attr:
        raise ValueError(f"channel must be module:attr, got {target!r}")
    module = importlib.import_module(module_name)
    if not hasattr(module, attr):
        raise ValueError(f"channel module {module_name!r} has no attribute {attr!r}")
    return getattr(module, attr)()


def _recipe(args):
    return load_channel(args.channel).lookup(args.name)


def cmd_list(args):
    for recipe in load_channel(args.channel).recipes().values():
        print(f"{recipe.name}\t{recipe.full_version}")


def cmd_show(args):
    recipe = _recipe(args)
    if not args.json:
        print(serialize.serialize(recipe))
        return
    src = recipe.source
    info = {
        "name": recipe.name,
        "version": recipe.version,
        "revision": recipe.revision,
        "source": None if src is None else {
            "method": src.method, "url": src.url,
            "commit": src.commit, "sha256": src.sha256,
        },
        "inputs": [
            {"class": i.kind.value, "name": i.name, "source": i.source}
            for i in recipe.inputs
        ],
        "flags": list(recipe.flags),
        "makeFlags": list(recipe.make_flags),
        "phases": [{"name": p.name, "payload": p.payload} for p in recipe.phases],
        "searchPaths": {sp.variable: list(sp.files) for sp in recipe.search_paths},
    }
    json.dump(info, sys.stdout, indent=2)
    print()


def cmd_phases(args):
    for name in _recipe(args).phase_names():
        print(name)


def cmd_digest(args):
    print(serialize.recipe_digest(_recipe(args)))


def cmd_hash_path(args):
    exclude = nar.VCS_DIRS if args.exclude_vcs else ()
    h = nar.nar_hash(args.path, exclude=exclude)
    if args.base32:
        print(f"sha256:{base32.encode(h)}")
    else:
        print(f"sha256:{h.hex()}")


def cmd_verify(args):
    recipe = _recipe(args)
    if recipe.source is None:
        raise ValueError(f"{recipe.name} has no source to verify")
    verify_source(recipe.source, args.path)
    print(f"{recipe.name}: sha256 {recipe.source.sha256} ok")


def cmd_lock(args):
    text = dump_lock(load_channel(args.channel).recipes().values())
    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
    else:
        sys.stdout.write(text)


def cmd_check_lock(args):
    recipes = load_channel(args.channel).recipes().values()
    check_lock(read_lock(args.lockfile), recipes)
    print("lock ok")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="strata", description="Inspect and check a recipe channel")
    parser.add_argument(
        "--channel",
        default=os.environ.get("STRATA_CHANNEL", DEFAULT_CHANNEL),
        help="recipe set to load, as module:attr (default: $STRATA_CHANNEL or %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log overlay edits")
    sub = parser.add_subparsers(dest="command")

    # list
    p = sub.add_parser("list", help="List recipes in the channel")
    p.set_defaults(func=cmd_list)

    # show
    p = sub.add_parser("show", help="Show a recipe")
    p.add_argument("name")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_show)

    # phases
    p = sub.add_parser("phases", help="List a recipe's phases in order")
    p.add_argument("name")
    p.set_defaults(func=cmd_phases)

    # digest
    p = sub.add_parser("digest", help="Print a recipe's content digest")
    p.add_argument("name")
    p.set_defaults(func=cmd_digest)

    # hash-path
    p = sub.add_parser("hash-path", help="Hash a path in NAR format")
    p.add_argument("path")
    p.add_argument("--base32", action="store_true")
    p.add_argument("--exclude-vcs", action="store_true", help="skip .git/.hg/.svn")
    p.set_defaults(func=cmd_hash_path)

    # verify
    p = sub.add_parser("verify", help="Check fetched source against a recipe's checksum")
    p.add_argument("name")
    p.add_argument("path")
    p.set_defaults(func=cmd_verify)

    # lock
    p = sub.add_parser("lock", help="Write the channel's reproducibility lock")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_lock)

    # check-lock
    p = sub.add_parser("check-lock", help="Fail if a recipe changed without a revision bump")
    p.add_argument("lockfile")
    p.set_defaults(func=cmd_check_lock)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.command:
        parser.print_help()
        sys.exit(1)
    try:
        args.func(args)
    except KeyError as e:
        print(f"strata: {e.args[0]}", file=sys.stderr)
        sys.exit(1)
    except (LookupError, ValueError, OSError, ImportError,
            ChecksumMismatchError, LockDriftError) as e:
        print(f"strata: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
