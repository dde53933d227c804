from os.path import normcase
from pathlib import Path
from typing import AbstractSet, Iterable, Iterator, MutableSequence, Sequence

from std2.pathlib import walk

from ..consts import UTF8
from ..logging import log
from ..types import MalformedSourceError, SnippetDefinition
from .vscode import load_source


def load_paths(search: Iterable[Path], exts: AbstractSet[str]) -> Iterator[Path]:
    for search_path in search:
        if search_path.is_dir():
            found = (path for path in walk(search_path) if path.suffix in exts)
            for path in sorted(found):
                if path.is_file():
                    yield Path(normcase(path))
        else:
            yield search_path


def load_direct(paths: Iterable[Path]) -> Sequence[SnippetDefinition]:
    definitions: MutableSequence[SnippetDefinition] = []
    for path in paths:
        try:
            text = path.read_text(UTF8)
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedSourceError(f"Cannot read :: {path}\n{e}") from e
        snips = load_source(path, text=text)
        log.debug("%s", f"{path} -- {len(snips)} snippets")
        definitions.extend(snips)
    return definitions


def load(search: Iterable[Path], exts: AbstractSet[str]) -> Sequence[SnippetDefinition]:
    return load_direct(load_paths(search, exts=exts))
