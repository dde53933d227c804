from dataclasses import dataclass, field
from functools import lru_cache
from typing import (
    Iterable,
    Mapping,
    MutableMapping,
    MutableSequence,
    Sequence,
    Tuple,
)

from std2.types import never

from .consts import SNIP_LINE_SEP, UTF8
from .parsers.lsp import tokenizer
from .parsers.types import Choice, Newline, Node, Placeholder, Template, Text, Variable
from .types import SnippetDefinition

NvimPos = Tuple[int, int]


@dataclass(frozen=True)
class ExpansionContext:
    indent: str = ""
    linefeed: str = SNIP_LINE_SEP
    expandtab: bool = False
    tabstop: int = 4
    values: Mapping[int, str] = field(default_factory=dict)
    variables: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Region:
    idx: int
    begin: int
    end: int
    text: str
    choices: Sequence[str] = ()


@dataclass(frozen=True)
class Expanded:
    text: str
    cursor: int
    regions: Sequence[Region]


@dataclass(frozen=True)
class Mark:
    idx: int
    begin: NvimPos
    end: NvimPos
    text: str


def _len8(text: str) -> int:
    return len(text.encode(UTF8))


_CACHE_SIZE = 1024


@lru_cache(maxsize=_CACHE_SIZE)
def _compile(body: Tuple[str, ...]) -> Template:
    return tokenizer(body)


def compile_body(body: Sequence[str]) -> Template:
    """
    Parse once per distinct body, raises `ParseError`
    """

    return _compile(tuple(body))


def clear_cache() -> None:
    _compile.cache_clear()


def _nav_key(region: Region) -> Tuple[bool, int, int, int]:
    return region.idx == 0, region.idx, region.begin, -region.end


class _Renderer:
    def __init__(self, template: Template, context: ExpansionContext) -> None:
        self._template = template
        self._context = context
        self._resolved: MutableMapping[int, str] = {}

    def _text(self, node: Text) -> str:
        if self._context.expandtab:
            return node.text.replace("\t", " " * self._context.tabstop)
        else:
            return node.text

    def _newline(self, node: Newline) -> str:
        return self._context.linefeed + ("" if node.blank else self._context.indent)

    def value(self, idx: int) -> str:
        if idx in self._context.values:
            return self._context.values[idx]
        elif idx not in self._resolved:
            node = self._template.defaults.get(idx)
            if node is None:
                text = ""
            elif isinstance(node, Choice):
                text = next(iter(node.options), "")
            elif isinstance(node, Placeholder):
                text, _ = self.walk(node.children, offset=0)
            else:
                assert False, node
            self._resolved[idx] = text
        return self._resolved[idx]

    def walk(self, nodes: Iterable[Node], offset: int) -> Tuple[str, Sequence[Region]]:
        slices: MutableSequence[str] = []
        regions: MutableSequence[Region] = []
        pos = offset

        for node in nodes:
            if isinstance(node, Text):
                text = self._text(node)

            elif isinstance(node, Newline):
                text = self._newline(node)

            elif isinstance(node, Variable):
                if node.name in self._context.variables:
                    text = self._context.variables[node.name]
                elif node.children is not None:
                    text, nested = self.walk(node.children, offset=pos)
                    regions.extend(nested)
                else:
                    text = node.name

            elif isinstance(node, Placeholder):
                if node.idx in self._context.values:
                    text = self._context.values[node.idx]
                elif node is self._template.defaults.get(node.idx):
                    text, nested = self.walk(node.children, offset=pos)
                    regions.extend(nested)
                else:
                    text = self.value(node.idx)
                region = Region(
                    idx=node.idx, begin=pos, end=pos + _len8(text), text=text
                )
                regions.append(region)

            elif isinstance(node, Choice):
                text = self.value(node.idx)
                region = Region(
                    idx=node.idx,
                    begin=pos,
                    end=pos + _len8(text),
                    text=text,
                    choices=node.options,
                )
                regions.append(region)

            else:
                never(node)

            slices.append(text)
            pos += _len8(text)

        return "".join(slices), regions


def expand(definition: SnippetDefinition, context: ExpansionContext) -> Expanded:
    template = compile_body(definition.body)
    renderer = _Renderer(template, context=context)
    text, regions = renderer.walk(template.nodes, offset=0)
    ordered = sorted(regions, key=_nav_key)
    cursor = ordered[0].begin if ordered else _len8(text)
    return Expanded(text=text, cursor=cursor, regions=tuple(ordered))


def marks(
    expanded: Expanded, row: int, col: int, linefeed: str = SNIP_LINE_SEP
) -> Sequence[Mark]:
    """
    Rows are counted in lines, columns in UTF-8 bytes
    """

    encoded = expanded.text.encode(UTF8)
    lf = linefeed.encode(UTF8)

    def pos(offset: int) -> NvimPos:
        head = encoded[:offset]
        if lines := head.count(lf):
            return row + lines, len(head) - (head.rfind(lf) + len(lf))
        else:
            return row, col + offset

    return tuple(
        Mark(idx=region.idx, begin=pos(region.begin), end=pos(region.end), text=region.text)
        for region in expanded.regions
    )
