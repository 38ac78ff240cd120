import importlib
import logging
import os
from typing import NamedTuple, Optional

from dappsale.conf.settings import SaleSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'dappsale.conf.localnet'
CONFIG_FILE_ENV = 'DAPPSALE_CONFIG_FILE'


class _SettingsMetadata(NamedTuple):
    source: str
    settings: SaleSettings


_settings_singleton: Optional[_SettingsMetadata] = None


def get_global_settings() -> SaleSettings:
    """Return the active settings, loading them on first use.

    The `DAPPSALE_CONFIG_FILE` environment variable names a module exposing a
    `SETTINGS` attribute. Once loaded, asking for a different source is an error.
    """
    global _settings_singleton

    source = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
    if _settings_singleton is not None:
        if _settings_singleton.source != source:
            raise RuntimeError(
                f'settings already loaded from {_settings_singleton.source}, cannot switch to {source}'
            )
        return _settings_singleton.settings

    settings = load_settings_module(source)
    logger.info('loaded settings for network %s from %s', settings.NETWORK_NAME, source)
    _settings_singleton = _SettingsMetadata(source, settings)
    return settings


def load_settings_module(module_path: str) -> SaleSettings:
    module = importlib.import_module(module_path)
    settings = getattr(module, 'SETTINGS', None)
    if not isinstance(settings, SaleSettings):
        raise TypeError(f'{module_path}.SETTINGS must be a SaleSettings instance')
    return settings


def reset_global_settings() -> None:
    """Forget the loaded settings. Meant for tests."""
    global _settings_singleton
    _settings_singleton = None
