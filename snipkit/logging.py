from logging import (
    DEBUG,
    ERROR,
    FATAL,
    INFO,
    WARN,
    Formatter,
    StreamHandler,
    getLevelName,
    getLogger,
)
from typing import Mapping

from .consts import DEBUG as DEBUG_ENV
from .consts import LOGGER_NAME

LOG_FMT = """
--  {name}    {levelname}    {asctime}
module:   {module}
line:     {lineno}
function: {funcName}
message:  |-
{message}
"""

DATE_FMT = "%Y-%m-%d %H:%M:%S"

LEVELS: Mapping[str, int] = {
    getLevelName(lv): lv for lv in (DEBUG, INFO, WARN, ERROR, FATAL)
}


log = getLogger(LOGGER_NAME)


def setup(level: str) -> None:
    log.setLevel(DEBUG if DEBUG_ENV else LEVELS.get(level.upper(), INFO))
    if not log.handlers:
        handler = StreamHandler()
        handler.setFormatter(Formatter(fmt=LOG_FMT, datefmt=DATE_FMT, style="{"))
        log.addHandler(handler)
