from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, MutableSequence, Optional, Sequence, Tuple, Union

from std2.itertools import deiter


class ParseError(Exception): ...


@dataclass(frozen=True)
class Index:
    i: int
    row: int
    col: int


EChar = Tuple[Index, str]


@dataclass(frozen=True)
class ParserCtx(Iterator):
    text: str
    dit: deiter[EChar]
    stack: MutableSequence[Union[int, str]]

    def __iter__(self) -> ParserCtx:
        return self

    def __next__(self) -> EChar:
        return next(self.dit)


@dataclass(frozen=True)
class IntBegin:
    idx: int


@dataclass(frozen=True)
class VarBegin:
    name: str


@dataclass(frozen=True)
class VarRef:
    name: str


@dataclass(frozen=True)
class End: ...


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Newline:
    blank: bool


@dataclass(frozen=True)
class Choice:
    idx: int
    options: Sequence[str]


@dataclass(frozen=True)
class Placeholder:
    idx: int
    children: Sequence[Node]


@dataclass(frozen=True)
class Variable:
    name: str
    children: Optional[Sequence[Node]]


Token = Union[IntBegin, VarBegin, VarRef, Choice, Newline, End, str]
TokenStream = Iterator[Token]

Node = Union[Text, Newline, Placeholder, Choice, Variable]


@dataclass(frozen=True)
class Template:
    nodes: Sequence[Node]
    defaults: Mapping[int, Node]
