from os import environ
from pathlib import Path

TOP_LEVEL = Path(__file__).resolve().parent

_CONF_DIR = TOP_LEVEL / "config"
CONFIG_YML = _CONF_DIR / "defaults.yml"

LOGGER_NAME = "snipkit"

SNIP_LINE_SEP = "\n"

DEBUG = "SNIPKIT_DEBUG" in environ

UTF8 = "UTF-8"
