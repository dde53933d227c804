from pathlib import Path, PurePath
from tempfile import TemporaryDirectory
from unittest import TestCase

from snipkit.loaders.load import load
from snipkit.loaders.vscode import load_json, load_source, load_yaml
from snipkit.registry import Registry
from snipkit.settings import DuplicatePolicy
from snipkit.types import DuplicatePrefixError, MalformedSourceError

_FIXTURES = Path(__file__).resolve().parent.parent / "fixtures" / "collections"
_EXTS = {".code-snippets", ".json", ".yml", ".yaml"}


class LoadJson(TestCase):
    def test_1(self) -> None:
        text = """
        {
          "fastForward": {
            "prefix": "ft-warp",
            "scope": "solidity",
            "body": "vm.warp(${1:1 days});\\n$0",
            "description": ["Advance", "time"]
          },
          "bare": {
            "body": ["a", "b\\nc", ""]
          }
        }
        """
        warp, bare = load_json(PurePath("forge.json"), text=text)

        self.assertEqual(warp.name, "fastForward")
        self.assertEqual(warp.prefixes, ("ft-warp",))
        self.assertEqual(warp.body, ("vm.warp(${1:1 days});", "$0"))
        self.assertEqual(warp.description, "Advance\ntime")

        self.assertEqual(bare.prefixes, ())
        self.assertEqual(bare.body, ("a", "b", "c", ""))
        self.assertIsNone(bare.description)

    def test_syntax_error(self) -> None:
        with self.assertRaises(MalformedSourceError) as ctx:
            load_json(PurePath("broken.json"), text='{\n  "a": {\n    "body": [}\n}')
        self.assertIn("broken.json:3", str(ctx.exception))
        self.assertIn('"body": [}', str(ctx.exception))

    def test_missing_body(self) -> None:
        with self.assertRaises(MalformedSourceError):
            load_json(PurePath("a.json"), text='{"a": {"prefix": "x"}}')

    def test_wrong_shape(self) -> None:
        with self.assertRaises(MalformedSourceError):
            load_json(PurePath("a.json"), text="[1, 2]")


class LoadYaml(TestCase):
    def test_1(self) -> None:
        text = """
        target:
          prefix: [ft-target, ft-tc]
          body: "targetContract(address(${1:handler}));"
        """
        (snip,) = load_yaml(PurePath("invariant.yml"), text=text)
        self.assertEqual(snip.prefixes, ("ft-target", "ft-tc"))
        self.assertEqual(snip.body, ("targetContract(address(${1:handler}));",))

    def test_empty(self) -> None:
        self.assertEqual(load_yaml(PurePath("empty.yml"), text=""), ())

    def test_syntax_error(self) -> None:
        with self.assertRaises(MalformedSourceError):
            load_yaml(PurePath("broken.yml"), text="a: [b\nc: d")

    def test_dispatch(self) -> None:
        text = "a:\n  prefix: a\n  body: a\n"
        (snip,) = load_source(PurePath("a.yaml"), text=text)
        self.assertEqual(snip.name, "a")


class LoadPaths(TestCase):
    def test_fixtures(self) -> None:
        definitions = load((_FIXTURES,), exts=_EXTS)
        self.assertEqual(
            tuple(d.name for d in definitions),
            (
                "invariantTest",
                "handlerSetUp",
                "targetContract",
                "fastForward",
                "rollForward",
                "expectRevert",
                "testFunction",
                "setUp",
            ),
        )

    def test_sibling_collections_reject(self) -> None:
        with self.assertRaises(DuplicatePrefixError) as ctx:
            Registry().load(load((_FIXTURES,), exts=_EXTS))
        self.assertEqual(ctx.exception.prefix, "ft-setup")

    def test_sibling_collections_merge(self) -> None:
        registry = Registry(policy=DuplicatePolicy.merge)
        with self.assertLogs("snipkit", level="WARNING"):
            registry.load(load((_FIXTURES,), exts=_EXTS))

        self.assertEqual(len(registry), 7)
        found = registry.lookup("ft-setup")
        assert found
        self.assertEqual(found.name, "handlerSetUp")

        seen = set()
        for definition in registry.list():
            for prefix in definition.prefixes:
                self.assertNotIn(prefix, seen)
                self.assertIs(registry.lookup(prefix), definition)
                seen.add(prefix)

    def test_single_file(self) -> None:
        definitions = load((_FIXTURES / "invariant.yml",), exts=set())
        self.assertEqual(len(definitions), 3)

    def test_skips_other_exts(self) -> None:
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "notes.txt").write_text("not snippets")
            (root / "nested").mkdir()
            (root / "nested" / "a.json").write_text(
                '{"a": {"prefix": "a", "body": "a"}}'
            )
            definitions = load((root,), exts=_EXTS)
        self.assertEqual(tuple(d.name for d in definitions), ("a",))

    def test_missing_file(self) -> None:
        with self.assertRaises(MalformedSourceError):
            load((_FIXTURES / "nope.json",), exts=_EXTS)
