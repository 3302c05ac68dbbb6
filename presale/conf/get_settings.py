import os
from functools import lru_cache
from pathlib import Path

from presale.conf.settings import PresaleSettings

CONFIG_FILE_ENV = "PRESALE_CONFIG_FILE"


@lru_cache(maxsize=None)
def get_settings() -> PresaleSettings:
    """Return the process settings.

    Defaults are used unless `PRESALE_CONFIG_FILE` points to a JSON document,
    in which case every key in it overrides the matching default.
    """
    config_file = os.environ.get(CONFIG_FILE_ENV)
    if not config_file:
        return PresaleSettings()
    return PresaleSettings.model_validate_json(Path(config_file).read_text())
