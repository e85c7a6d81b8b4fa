"""
Service configuration.

``config.txt`` holds ``key = value`` lines (``#`` starts a comment). The
shipped file is merged with a file of the same name under the user
override directory, so an installed package can be reconfigured without
touching site-packages.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger
from tvh_hdhomerun.core.paths import CONFIG_PATH, DEFAULT_SETTINGS_DIR, USER_CONFIG_OVERRIDES_DIR


logger = get_module_logger("ConfigManager")

_TRUE_VALUES = ('true', '1', 'yes', 'on')


@dataclass
class ServiceSettings:
    """Typed view of config.txt, used as CLI defaults."""
    scan_interval: float = 60.0
    max_devices: int = 8
    discovery_timeout: float = 1.0
    settings_dir: Path = DEFAULT_SETTINGS_DIR
    api_enabled: bool = True
    api_host: str = "127.0.0.1"
    api_port: int = 9982
    log_level: str = "info"
    console_output: bool = True
    log_file: bool = True


class ConfigManager:

    def __init__(self, overrides_dir: Path = USER_CONFIG_OVERRIDES_DIR):
        self._overrides_dir = overrides_dir

    @staticmethod
    def parse_lines(lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            line = raw_line.split('#', 1)[0].strip()
            if '=' not in line:
                continue

            key, value = (part.strip() for part in line.split('=', 1))
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            config[key] = value

        return config

    def override_path(self, config_path: Path) -> Path:
        return self._overrides_dir / config_path.name

    def _read_file(self, path: Path) -> Dict[str, str]:
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as fh:
                return self.parse_lines(fh)
        except OSError as e:
            logger.error("Failed to read config %s: %s", path, e)
            return {}

    def read_config(self, config_path: Path = CONFIG_PATH) -> Dict[str, str]:
        """Read a config file and merge its user override (blocking)."""
        config = self._read_file(config_path)
        config.update(self._read_file(self.override_path(config_path)))
        return config

    def get_bool(self, config: Dict[str, str], key: str, default: bool = False) -> bool:
        if not config.get(key):
            return default
        return config[key].lower() in _TRUE_VALUES

    def get_int(self, config: Dict[str, str], key: str, default: int = 0) -> int:
        try:
            return int(config[key])
        except KeyError:
            return default
        except ValueError:
            logger.warning("Invalid int value for %s: %s, using default %d", key, config[key], default)
            return default

    def get_float(self, config: Dict[str, str], key: str, default: float = 0.0) -> float:
        try:
            return float(config[key])
        except KeyError:
            return default
        except ValueError:
            logger.warning("Invalid float value for %s: %s, using default %s", key, config[key], default)
            return default

    def get_str(self, config: Dict[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)

    def load_service_settings(self, config_path: Path = CONFIG_PATH) -> ServiceSettings:
        config = self.read_config(config_path)
        defaults = ServiceSettings()
        settings_dir = self.get_str(config, 'settings_dir')

        return ServiceSettings(
            scan_interval=self.get_float(config, 'scan_interval', defaults.scan_interval),
            max_devices=self.get_int(config, 'max_devices', defaults.max_devices),
            discovery_timeout=self.get_float(config, 'discovery_timeout', defaults.discovery_timeout),
            settings_dir=Path(settings_dir).expanduser() if settings_dir else defaults.settings_dir,
            api_enabled=self.get_bool(config, 'api_enabled', defaults.api_enabled),
            api_host=self.get_str(config, 'api_host', defaults.api_host),
            api_port=self.get_int(config, 'api_port', defaults.api_port),
            log_level=self.get_str(config, 'log_level', defaults.log_level).lower(),
            console_output=self.get_bool(config, 'console_output', defaults.console_output),
            log_file=self.get_bool(config, 'log_file', defaults.log_file),
        )


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
