from dataclasses import dataclass
from typing import Optional, Sequence


class SnippetError(Exception):
    ...


class MalformedSourceError(SnippetError):
    ...


class DuplicatePrefixError(SnippetError):
    def __init__(self, prefix: str, first: str, second: str) -> None:
        super().__init__(
            f"prefix {prefix!r} is declared by both {first!r} and {second!r}"
        )
        self.prefix = prefix
        self.names = (first, second)


class EmptyBodyError(SnippetError):
    def __init__(self, name: str) -> None:
        super().__init__(f"snippet {name!r} has an empty body")
        self.name = name


class UnknownPrefixError(SnippetError):
    def __init__(self, prefix: str) -> None:
        super().__init__(f"no snippet is registered under {prefix!r}")
        self.prefix = prefix


@dataclass(frozen=True)
class SnippetDefinition:
    name: str
    prefixes: Sequence[str]
    body: Sequence[str]
    description: Optional[str] = None
