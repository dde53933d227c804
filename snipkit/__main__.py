from argparse import ArgumentParser, ArgumentTypeError, Namespace
from contextlib import nullcontext
from datetime import datetime
from json import dumps
from pathlib import Path
from sys import exit
from typing import Any, Tuple

from std2.pickle.encoder import new_encoder
from std2.pickle.types import DecodeError
from yaml import YAMLError

from .expand import Expanded, ExpansionContext
from .loaders.load import load
from .logging import log, setup
from .registry import Registry
from .settings import Settings, ValidationError
from .settings import load as load_settings
from .types import SnippetError
from .variables import builtin_variables

_ENCODER = new_encoder[Expanded](Expanded)


def _int_pair(arg: str) -> Tuple[int, str]:
    lhs, sep, rhs = arg.partition("=")
    if not sep or not lhs.isdigit():
        raise ArgumentTypeError(f"expected INDEX=TEXT, got {arg!r}")
    else:
        return int(lhs), rhs


def _str_pair(arg: str) -> Tuple[str, str]:
    lhs, sep, rhs = arg.partition("=")
    if not sep or not lhs:
        raise ArgumentTypeError(f"expected NAME=TEXT, got {arg!r}")
    else:
        return lhs, rhs


def _parse_args() -> Namespace:
    parser = ArgumentParser(prog="snipkit")
    parser.add_argument("--config", type=Path)

    sub_parsers = parser.add_subparsers(dest="command", required=True)

    with nullcontext(sub_parsers.add_parser("check")) as p:
        p.add_argument("paths", nargs="+", type=Path)

    with nullcontext(sub_parsers.add_parser("list")) as p:
        p.add_argument("paths", nargs="+", type=Path)

    with nullcontext(sub_parsers.add_parser("expand")) as p:
        p.add_argument("prefix")
        p.add_argument("paths", nargs="+", type=Path)
        p.add_argument("--indent", default="")
        p.add_argument("--value", action="append", default=[], type=_int_pair)
        p.add_argument("--var", action="append", default=[], type=_str_pair)
        p.add_argument("--file", type=Path)
        p.add_argument("--json", action="store_true")

    return parser.parse_args()


def _jsonify(o: Any) -> str:
    return dumps(o, check_circular=False, ensure_ascii=False, indent=2)


def _context(settings: Settings, args: Namespace) -> ExpansionContext:
    variables = builtin_variables(datetime.now(), filename=args.file, cwd=Path.cwd())
    return ExpansionContext(
        indent=args.indent,
        linefeed=settings.expand.linefeed,
        expandtab=settings.expand.expandtab,
        tabstop=settings.expand.tabstop,
        values=dict(args.value),
        variables={**variables, **dict(args.var)},
    )


def _run(settings: Settings, args: Namespace) -> None:
    registry = Registry(policy=settings.duplicate_policy)
    registry.load(load(args.paths, exts=settings.source_exts))

    if args.command == "check":
        print(len(registry))

    elif args.command == "list":
        for definition in registry.list():
            prefixes = ", ".join(definition.prefixes)
            print(prefixes, definition.name, definition.description or "", sep="\t")

    elif args.command == "expand":
        expanded = registry.expand(args.prefix, context=_context(settings, args=args))
        if args.json:
            print(_jsonify(_ENCODER(expanded)))
        else:
            print(expanded.text, end=settings.expand.linefeed)

    else:
        assert False, args.command


def main() -> int:
    args = _parse_args()
    setup("INFO")

    try:
        settings = load_settings(args.config)
    except (OSError, YAMLError, DecodeError, ValidationError) as e:
        log.error("%s", f"invalid settings -- {e}")
        return 1

    setup(settings.log_level)
    try:
        _run(settings, args=args)
    except SnippetError as e:
        log.error("%s", e)
        return 1
    else:
        return 0


if __name__ == "__main__":
    exit(main())
