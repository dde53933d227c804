from dataclasses import dataclass
from json import loads
from json.decoder import JSONDecodeError
from pathlib import PurePath
from typing import Any, Iterator, Mapping, NoReturn, Optional, Sequence, Union

from std2.pickle.decoder import new_decoder
from std2.pickle.types import DecodeError
from yaml import MarkedYAMLError, YAMLError, safe_load

from ..consts import SNIP_LINE_SEP
from ..types import MalformedSourceError, SnippetDefinition


@dataclass
class _Unit:
    body: Union[str, Sequence[str]]
    prefix: Union[str, Sequence[str], None] = None
    description: Union[str, Sequence[str], None] = None


_DECODER = new_decoder[Mapping[str, _Unit]](Mapping[str, _Unit], strict=False)

YAML_EXTS = {".yml", ".yaml"}


def _syntax_err(path: PurePath, lineno: int, text: str, reason: str) -> NoReturn:
    lines = text.splitlines()
    line = lines[lineno - 1] if 0 < lineno <= len(lines) else ""
    raise MalformedSourceError(f"{path}:{lineno} -- {reason}\n{line}")


def _prefixes(prefix: Union[str, Sequence[str], None]) -> Sequence[str]:
    if prefix is None:
        return ()
    elif isinstance(prefix, str):
        return (prefix.strip(),)
    else:
        return tuple(p.strip() for p in prefix)


def _body(body: Union[str, Sequence[str]]) -> Sequence[str]:
    if isinstance(body, str):
        return tuple(body.splitlines())
    else:
        return tuple(line for chunk in body for line in (chunk.splitlines() or ("",)))


def _description(description: Union[str, Sequence[str], None]) -> Optional[str]:
    if description is None:
        return None
    else:
        text = (
            description
            if isinstance(description, str)
            else SNIP_LINE_SEP.join(description)
        ).strip()
        return text or None


def _decode(path: PurePath, data: Any) -> Sequence[SnippetDefinition]:
    try:
        fmt = _DECODER(data)
    except DecodeError as e:
        raise MalformedSourceError(f"Cannot decode snippets :: {path}\n{e}") from e

    def cont() -> Iterator[SnippetDefinition]:
        for name, unit in fmt.items():
            yield SnippetDefinition(
                name=name,
                prefixes=_prefixes(unit.prefix),
                body=_body(unit.body),
                description=_description(unit.description),
            )

    return tuple(cont())


def load_json(path: PurePath, text: str) -> Sequence[SnippetDefinition]:
    try:
        data = loads(text)
    except JSONDecodeError as e:
        _syntax_err(path, lineno=e.lineno, text=text, reason=e.msg)
    else:
        return _decode(path, data=data)


def load_yaml(path: PurePath, text: str) -> Sequence[SnippetDefinition]:
    try:
        data = safe_load(text)
    except MarkedYAMLError as e:
        mark = e.problem_mark
        lineno = mark.line + 1 if mark else -1
        _syntax_err(path, lineno=lineno, text=text, reason=str(e.problem))
    except YAMLError as e:
        _syntax_err(path, lineno=-1, text=text, reason=str(e))
    else:
        return _decode(path, data=data if data is not None else {})


def load_source(path: PurePath, text: str) -> Sequence[SnippetDefinition]:
    if path.suffix in YAML_EXTS:
        return load_yaml(path, text=text)
    else:
        return load_json(path, text=text)
