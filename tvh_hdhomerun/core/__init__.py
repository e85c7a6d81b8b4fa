from .config_manager import ConfigManager, ServiceSettings, get_config_manager
from .logging_config import configure_logging
from .logging_utils import get_module_logger
from .settings_store import JSONSettingsStore

__all__ = [
    'ConfigManager',
    'ServiceSettings',
    'get_config_manager',
    'configure_logging',
    'get_module_logger',
    'JSONSettingsStore',
]
