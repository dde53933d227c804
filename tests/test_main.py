from contextlib import redirect_stdout
from io import StringIO
from json import dumps, loads
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Sequence, Tuple
from unittest import TestCase
from unittest.mock import patch

from snipkit.__main__ import main

_FIXTURES = Path(__file__).resolve().parent / "fixtures" / "collections"
_STANDARD = str(_FIXTURES / "standard.code-snippets")


def _run(*argv: str) -> Tuple[int, str]:
    out = StringIO()
    with patch("sys.argv", ["snipkit", *argv]), redirect_stdout(out):
        code = main()
    return code, out.getvalue()


class Cli(TestCase):
    def test_check(self) -> None:
        code, out = _run("check", _STANDARD)
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "5")

    def test_check_collision(self) -> None:
        code, _ = _run("check", str(_FIXTURES))
        self.assertEqual(code, 1)

    def test_list(self) -> None:
        code, out = _run("list", _STANDARD)
        self.assertEqual(code, 0)
        lines: Sequence[str] = out.splitlines()
        self.assertEqual(len(lines), 5)
        self.assertEqual(lines[0], "ft-warp\tfastForward\tAdvance block.timestamp")

    def test_expand(self) -> None:
        code, out = _run("expand", "ft-warp", _STANDARD, "--value", "1=2 hours")
        self.assertEqual(code, 0)
        self.assertEqual(out, "vm.warp(block.timestamp + 2 hours);\n")

    def test_expand_json(self) -> None:
        code, out = _run("expand", "ft-warp", _STANDARD, "--json")
        self.assertEqual(code, 0)
        payload = loads(out)
        self.assertEqual(payload["text"], "vm.warp(block.timestamp + 1 days);")
        self.assertEqual(payload["cursor"], 26)
        (region,) = payload["regions"]
        self.assertEqual((region["idx"], region["begin"], region["end"]), (1, 26, 32))

    def test_expand_unknown(self) -> None:
        code, out = _run("expand", "ft-nope", _STANDARD)
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_expand_context(self) -> None:
        body = ["// ${TM_FILENAME} by $AUTHOR", "contract ${1:Foo} {", "}"]
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "sol.json"
            path.write_text(dumps({"contract": {"prefix": "ft-contract", "body": body}}))
            code, out = _run(
                "expand",
                "ft-contract",
                str(path),
                "--indent",
                "  ",
                "--var",
                "AUTHOR=alice",
                "--file",
                "/w/Foo.t.sol",
            )
        self.assertEqual(code, 0)
        self.assertEqual(out, "// Foo.t.sol by alice\n  contract Foo {\n  }\n")
