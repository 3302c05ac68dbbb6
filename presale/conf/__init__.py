from presale.conf.get_settings import get_settings
from presale.conf.settings import PresaleSettings

settings = get_settings()

__all__ = ["PresaleSettings", "get_settings", "settings"]
