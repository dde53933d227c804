from itertools import groupby
from string import Template as StrTemplate
from textwrap import dedent
from typing import (
    AbstractSet,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    MutableSequence,
    NoReturn,
    Sequence,
    Tuple,
    Union,
)

from std2.itertools import deiter
from std2.types import never

from ..consts import SNIP_LINE_SEP
from .types import (
    Choice,
    EChar,
    End,
    Index,
    IntBegin,
    Newline,
    Node,
    ParseError,
    ParserCtx,
    Placeholder,
    Template,
    Text,
    TokenStream,
    VarBegin,
    Variable,
    VarRef,
)


def raise_err(
    text: str, pos: Index, condition: str, expected: Iterable[str], actual: str
) -> NoReturn:
    band = 5
    char = f"'{actual}'" if actual else "EOF"
    expected_chars = ", ".join(map(lambda c: f"'{c}'", expected))
    ctx = "" if pos.i == -1 else text[max(pos.i - band, 0) : pos.i + band + 1]
    tpl = """
    Unexpected char found :: `${condition}`:
    row:  ${row}
    col:  ${col}
    Expected one of: > ${expected_chars} <
    Found:           ${char}
    Context: |-
    ${ctx}
    Text:    |-
    ${text}
    """
    msg = StrTemplate(dedent(tpl)).substitute(
        condition=condition,
        row=pos.row,
        col=pos.col,
        expected_chars=expected_chars,
        char=char,
        ctx=ctx,
        text=text,
    )
    raise ParseError(msg)


def next_char(it: Iterator[EChar]) -> EChar:
    return next(it, (Index(i=-1, row=-1, col=-1), ""))


def pushback_chars(context: ParserCtx, *vals: EChar) -> None:
    for pos, char in reversed(vals):
        if char:
            context.dit.push_back((pos, char))


def _gen_iter(src: str) -> Iterator[EChar]:
    row, col = 1, 1
    for i, c in enumerate(src):
        yield Index(i=i, row=row, col=col), c
        col += 1
        if c == SNIP_LINE_SEP:
            row += 1
            col = 1


def context_from(lines: Sequence[str]) -> ParserCtx:
    text = SNIP_LINE_SEP.join(lines)
    ctx = ParserCtx(text=text, dit=deiter(_gen_iter(text)), stack=[])
    return ctx


def _compact(items: Iterable[Union[str, Node]]) -> Sequence[Node]:
    def cont() -> Iterator[Node]:
        for is_text, group in groupby(items, key=lambda item: isinstance(item, str)):
            if is_text:
                yield Text(text="".join(item for item in group if isinstance(item, str)))
            else:
                yield from (item for item in group if not isinstance(item, str))

    return tuple(cont())


def _deps(nodes: Iterable[Node]) -> Iterator[int]:
    for node in nodes:
        if isinstance(node, (Placeholder, Choice)):
            yield node.idx
        elif isinstance(node, Variable):
            yield from _deps(node.children or ())


def _check_cycles(text: str, defaults: Mapping[int, Node]) -> None:
    graph: Mapping[int, AbstractSet[int]] = {
        idx: {*_deps(node.children)} if isinstance(node, Placeholder) else set()
        for idx, node in defaults.items()
    }
    done: MutableMapping[int, bool] = {}

    def visit(idx: int, path: Tuple[int, ...]) -> None:
        if done.get(idx) is False:
            cycle = " -> ".join(map(str, (*path, idx)))
            raise ParseError(
                dedent(
                    f"""
                    Recursive placeholder defaults :: {cycle}
                    Text: |-
                    {text}
                    """
                )
            )
        elif idx not in done:
            done[idx] = False
            for dep in sorted(graph.get(idx, ())):
                visit(dep, path=(*path, idx))
            done[idx] = True

    for idx in sorted(graph):
        visit(idx, path=())


def token_parser(context: ParserCtx, stream: TokenStream) -> Template:
    root: MutableSequence[Union[str, Node]] = []
    frames: MutableSequence[
        Tuple[Union[IntBegin, VarBegin], MutableSequence[Union[str, Node]]]
    ] = []
    defaults: MutableMapping[int, Node] = {}

    def acc() -> MutableSequence[Union[str, Node]]:
        if frames:
            _, items = frames[-1]
            return items
        else:
            return root

    for token in stream:
        if isinstance(token, str):
            acc().append(token)
        elif isinstance(token, Newline):
            acc().append(token)
        elif isinstance(token, VarRef):
            acc().append(Variable(name=token.name, children=None))
        elif isinstance(token, Choice):
            defaults.setdefault(token.idx, token)
            acc().append(token)
        elif isinstance(token, (IntBegin, VarBegin)):
            frames.append((token, []))
        elif isinstance(token, End):
            begin, items = frames.pop()
            children = _compact(items)
            node: Node
            if isinstance(begin, IntBegin):
                node = Placeholder(idx=begin.idx, children=children)
                if children:
                    defaults.setdefault(begin.idx, node)
            else:
                node = Variable(name=begin.name, children=children)
            acc().append(node)
        else:
            never(token)

    if frames:
        tpl = """
        Unbalanced `{…}` :: unclosed - ${unclosed}
        Text: |-
        ${text}
        """
        unclosed = ", ".join(str(begin) for begin, _ in frames)
        msg = StrTemplate(dedent(tpl)).substitute(unclosed=unclosed, text=context.text)
        raise ParseError(msg)

    _check_cycles(context.text, defaults=defaults)
    template = Template(nodes=_compact(root), defaults=defaults)
    return template
