from datetime import datetime
from os.path import normcase
from pathlib import PurePath
from typing import Iterator, Mapping, Optional, Tuple

_DATES = {
    "CURRENT_YEAR": "%Y",
    "CURRENT_YEAR_SHORT": "%y",
    "CURRENT_MONTH": "%m",
    "CURRENT_MONTH_NAME": "%B",
    "CURRENT_MONTH_NAME_SHORT": "%b",
    "CURRENT_DATE": "%d",
    "CURRENT_DAY_NAME": "%A",
    "CURRENT_DAY_NAME_SHORT": "%a",
    "CURRENT_HOUR": "%H",
    "CURRENT_MINUTE": "%M",
    "CURRENT_SECOND": "%S",
}


def _paths(
    filename: Optional[PurePath], cwd: Optional[PurePath]
) -> Iterator[Tuple[str, str]]:
    if filename is not None:
        yield "TM_FILENAME", filename.name
        yield "TM_FILENAME_BASE", filename.stem
        yield "TM_DIRECTORY", normcase(filename.parent)
        yield "TM_FILEPATH", normcase(filename)

        if cwd is not None:
            try:
                yield "RELATIVE_FILEPATH", normcase(filename.relative_to(cwd))
            except ValueError:
                pass

    if cwd is not None:
        yield "WORKSPACE_NAME", cwd.name
        yield "WORKSPACE_FOLDER", normcase(cwd)


def builtin_variables(
    now: datetime,
    filename: Optional[PurePath] = None,
    cwd: Optional[PurePath] = None,
) -> Mapping[str, str]:
    dates = {name: now.strftime(fmt) for name, fmt in _DATES.items()}
    dates["CURRENT_SECONDS_UNIX"] = str(round(now.timestamp()))
    return {**dates, **dict(_paths(filename, cwd=cwd))}
