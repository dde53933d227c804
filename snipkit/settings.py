from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import AbstractSet, Any, Optional

from std2.pickle.decoder import new_decoder
from std2.tree import merge
from yaml import safe_load

from .consts import CONFIG_YML, UTF8


class DuplicatePolicy(Enum):
    reject = auto()
    merge = auto()


@dataclass(frozen=True)
class ExpandOptions:
    expandtab: bool
    tabstop: int
    linefeed: str


@dataclass(frozen=True)
class Settings:
    duplicate_policy: DuplicatePolicy
    log_level: str
    source_exts: AbstractSet[str]
    expand: ExpandOptions


class ValidationError(Exception): ...


_DECODER = new_decoder[Settings](Settings)


def _read(path: Path) -> Any:
    return safe_load(path.read_text(UTF8)) or {}


def load(user_config: Optional[Path] = None) -> Settings:
    defaults = _read(CONFIG_YML)
    overrides = _read(user_config) if user_config else {}
    settings = _DECODER(merge(defaults, overrides, replace=True))

    if settings.expand.tabstop <= 0:
        raise ValidationError("expand.tabstop <= 0")

    if not settings.expand.linefeed:
        raise ValidationError("expand.linefeed is empty")

    return settings
