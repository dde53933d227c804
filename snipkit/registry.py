from dataclasses import dataclass, replace
from typing import (
    AbstractSet,
    Iterable,
    Mapping,
    MutableMapping,
    MutableSequence,
    Optional,
    Sequence,
)

from .expand import Expanded, ExpansionContext, clear_cache, compile_body, expand
from .logging import log
from .parsers.types import ParseError
from .settings import DuplicatePolicy
from .types import (
    DuplicatePrefixError,
    EmptyBodyError,
    MalformedSourceError,
    SnippetDefinition,
    UnknownPrefixError,
)


@dataclass(frozen=True)
class _Snapshot:
    by_prefix: Mapping[str, SnippetDefinition]
    ordered: Sequence[SnippetDefinition]


_EMPTY = _Snapshot(by_prefix={}, ordered=())


def _validate(definition: SnippetDefinition) -> SnippetDefinition:
    name = definition.name
    if not isinstance(name, str) or not name or name.isspace():
        raise MalformedSourceError(f"snippet name must not be blank -- {definition}")

    for field, value in (("prefixes", definition.prefixes), ("body", definition.body)):
        if isinstance(value, str) or not isinstance(value, Sequence):
            raise MalformedSourceError(
                f"snippet {name!r} -- {field} must be a sequence of strings, got {value!r}"
            )
        if not all(isinstance(item, str) for item in value):
            raise MalformedSourceError(
                f"snippet {name!r} -- {field} must only hold strings, got {value!r}"
            )

    if not definition.body:
        raise EmptyBodyError(name)

    prefixes = tuple(dict.fromkeys(definition.prefixes))
    if not prefixes:
        raise MalformedSourceError(f"snippet {name!r} declares no prefix")
    for prefix in prefixes:
        if not prefix or prefix.isspace():
            raise MalformedSourceError(f"snippet {name!r} declares a blank prefix")

    try:
        compile_body(definition.body)
    except ParseError as e:
        raise MalformedSourceError(f"snippet {name!r} -- {e}") from e

    if prefixes == tuple(definition.prefixes):
        return definition
    else:
        return replace(definition, prefixes=prefixes)


def _build(
    policy: DuplicatePolicy, definitions: Iterable[SnippetDefinition]
) -> _Snapshot:
    names: MutableMapping[str, SnippetDefinition] = {}
    by_prefix: MutableMapping[str, SnippetDefinition] = {}
    ordered: MutableSequence[SnippetDefinition] = []

    for definition in definitions:
        valid = _validate(definition)

        if valid.name in names:
            if policy is DuplicatePolicy.reject:
                raise MalformedSourceError(f"duplicate snippet name {valid.name!r}")
            else:
                log.warning("%s", f"duplicate snippet name -- {valid.name!r}, skipped")
                continue

        kept: MutableSequence[str] = []
        for prefix in valid.prefixes:
            first = by_prefix.get(prefix)
            if first is None:
                kept.append(prefix)
            elif policy is DuplicatePolicy.reject:
                raise DuplicatePrefixError(prefix, first=first.name, second=valid.name)
            else:
                log.warning(
                    "%s",
                    f"duplicate prefix {prefix!r} -- kept {first.name!r}, dropped from {valid.name!r}",
                )

        if not kept:
            log.warning("%s", f"snippet {valid.name!r} has no prefix left, skipped")
            continue

        final = (
            valid
            if len(kept) == len(valid.prefixes)
            else replace(valid, prefixes=tuple(kept))
        )
        names[final.name] = final
        for prefix in kept:
            by_prefix[prefix] = final
        ordered.append(final)

    return _Snapshot(by_prefix=by_prefix, ordered=tuple(ordered))


class Registry:
    """
    Immutable prefix -> snippet mapping

    `load` replaces the whole contents or nothing at all,
    readers only ever see one snapshot
    """

    def __init__(self, policy: DuplicatePolicy = DuplicatePolicy.reject) -> None:
        self._policy = policy
        self._snapshot = _EMPTY

    @property
    def policy(self) -> DuplicatePolicy:
        return self._policy

    def load(self, definitions: Iterable[SnippetDefinition]) -> None:
        clear_cache()
        snapshot = _build(self._policy, definitions=definitions)
        self._snapshot = snapshot
        log.info(
            "%s",
            f"loaded {len(snapshot.ordered)} snippets, {len(snapshot.by_prefix)} prefixes",
        )

    def lookup(self, prefix: str) -> Optional[SnippetDefinition]:
        return self._snapshot.by_prefix.get(prefix)

    def list(self) -> Sequence[SnippetDefinition]:
        return self._snapshot.ordered

    def prefixes(self) -> AbstractSet[str]:
        return self._snapshot.by_prefix.keys()

    def expand(self, prefix: str, context: ExpansionContext) -> Expanded:
        definition = self.lookup(prefix)
        if definition is None:
            raise UnknownPrefixError(prefix)
        else:
            return expand(definition, context=context)

    def __len__(self) -> int:
        return len(self._snapshot.ordered)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._snapshot.by_prefix
