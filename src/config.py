"""
Configuration module for the Coinflip stats engine
Game rules, storage, file locations and logging settings in one place
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class ConfigError(Exception):
    """Raised when configuration values are unusable"""
    pass


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Read an integer from the environment, clamped to [min_val, max_val].
    Unparsable values are logged and replaced by default.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if min_val is not None and value < min_val:
        value = min_val
    if max_val is not None and value > max_val:
        value = max_val
    return value


class Config:
    """
    Application settings

    Section dicts hold the defaults (some read from the environment at import),
    runtime overrides from set() or a JSON file take precedence in get().
    """

    # ========== Game Rules ==========
    GAME = {
        'history_limit': _safe_int_env('COINFLIP_HISTORY_LIMIT', 50, 1, 10000),
        'pattern_window': 10,
        'pattern_min_length': 2,
        'pattern_max_length': 4,
        'heads_probability': 0.5,
    }

    # ========== Storage ==========
    STORAGE = {
        'storage_key': os.getenv('COINFLIP_STORAGE_KEY', 'coinflip-game-data'),
        'schema_version': '1.0',
    }

    # ========== Logging ==========
    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO'),
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'max_bytes': 5 * 1024 * 1024,
        'backup_count': 3,
        'console_output': True,
    }

    LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

    # ========== Files ==========
    @classmethod
    def get_files_config(cls) -> dict:
        """Data and log locations; read on first use so tests can point them elsewhere"""
        home = Path.home() / '.coinflip'
        return {
            'data_dir': Path(os.getenv('COINFLIP_DATA_DIR', str(home))),
            'log_dir': Path(os.getenv('COINFLIP_LOG_DIR', str(home / 'logs'))),
            'max_file_size_mb': 5,
            'backup_count': 3,
        }

    def __init__(
        self,
        config_file: Optional[str] = None,
        validate: bool = True,
        ensure_directories: bool = True,
    ):
        """
        Args:
            config_file: JSON file with per-section overrides
            validate: Run validate() once overrides are loaded
            ensure_directories: Create data and log directories now
        """
        self._lock = threading.RLock()
        self._files_config: Optional[dict] = None
        self._overrides: Dict[str, Dict[str, Any]] = {}
        self._directory_status: Dict[str, bool] = {}
        self._logger: Optional[logging.Logger] = None
        self.config_file = config_file

        if ensure_directories:
            self.ensure_directories()
        if config_file:
            self.load_from_file(config_file)
        if validate:
            self.validate()

    @property
    def FILES(self) -> dict:
        with self._lock:
            if self._files_config is None:
                self._files_config = self.get_files_config()
            return self._files_config

    @property
    def log(self) -> logging.Logger:
        return self._logger or logging.getLogger(__name__)

    def ensure_directories(self) -> Dict[str, bool]:
        """Create data_dir and log_dir; returns success per directory"""
        status = {}
        for key in ('data_dir', 'log_dir'):
            path = self.FILES[key]
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.log.warning(f"Could not create {key} at {path}: {e}")
                status[key] = False
            else:
                status[key] = path.is_dir()
        self._directory_status = status
        return status

    # ========== Validation ==========

    def _game_errors(self) -> List[str]:
        errors = []
        if self.get('game', 'history_limit') < 1:
            errors.append("history_limit must be at least 1")
        if self.get('game', 'pattern_window') < 1:
            errors.append("pattern_window must be at least 1")
        shortest = self.get('game', 'pattern_min_length')
        longest = self.get('game', 'pattern_max_length')
        if shortest < 1:
            errors.append("pattern_min_length must be at least 1")
        if longest < shortest:
            errors.append("pattern_max_length is shorter than pattern_min_length")
        if not 0 < self.get('game', 'heads_probability') < 1:
            errors.append("heads_probability must lie strictly between 0 and 1")
        return errors

    def _storage_errors(self) -> List[str]:
        if not self.get('storage', 'storage_key'):
            return ["storage_key is empty"]
        return []

    def _logging_errors(self) -> List[str]:
        level = str(self.get('logging', 'level', 'INFO'))
        if level.upper() not in self.LOG_LEVELS:
            return [f"Unknown log level: {level}"]
        return []

    def validate(self):
        """
        Check every section and report all problems at once

        Raises:
            ConfigError: If any value is unusable
        """
        errors = self._game_errors() + self._storage_errors() + self._logging_errors()
        errors.extend(
            f"Directory {key} is not available"
            for key, ok in self._directory_status.items()
            if not ok
        )
        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(errors))

    # ========== Overrides ==========

    def load_from_file(self, filepath: Union[str, Path]):
        """
        Merge per-section overrides from a JSON object file

        A missing file is logged and ignored.

        Raises:
            ConfigError: If the file cannot be read or is not a JSON object
        """
        filepath = Path(filepath)
        if not filepath.exists():
            self.log.warning(f"Config file not found: {filepath}")
            return

        try:
            data = json.loads(filepath.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            self.log.error(f"Invalid JSON in config file {filepath}: {e}")
            raise ConfigError(f"Invalid JSON in config file {filepath}: {e}") from e
        except OSError as e:
            self.log.error(f"Could not read config file {filepath}: {e}")
            raise ConfigError(f"Could not read config file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a JSON object: {filepath}")

        with self._lock:
            for section, values in data.items():
                if isinstance(values, dict):
                    self._overrides.setdefault(section.lower(), {}).update(values)

        self.log.info(f"Loaded configuration from {filepath}")

    def save_to_file(self, filepath: Union[str, Path]):
        """Write effective settings (defaults with overrides applied) as JSON"""
        filepath = Path(filepath)
        settings = self.to_dict()
        for section, values in settings.pop('custom').items():
            settings.setdefault(section, {}).update(values)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(settings, indent=2, default=str), encoding='utf-8')
        self.log.info(f"Saved configuration to {filepath}")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Override if one is set, else the section default, else default"""
        with self._lock:
            overrides = self._overrides.get(section.lower(), {})
            if key in overrides:
                return overrides[key]
        defaults = getattr(self, section.upper(), None)
        if isinstance(defaults, dict):
            return defaults.get(key, default)
        return default

    def set(self, section: str, key: str, value: Any):
        with self._lock:
            self._overrides.setdefault(section.lower(), {})[key] = value

    def set_logger(self, logger: logging.Logger):
        """Use the application logger once logging is configured"""
        self._logger = logger

    def to_dict(self) -> dict:
        """Section defaults plus a 'custom' section holding the overrides"""
        with self._lock:
            overrides = {section: dict(values) for section, values in self._overrides.items()}
        return {
            'game': dict(self.GAME),
            'storage': dict(self.STORAGE),
            'files': {key: str(value) for key, value in self.FILES.items()},
            'logging': dict(self.LOGGING),
            'custom': overrides,
        }


# Global instance; directory creation and validation happen at startup (main.py)
config = Config(validate=False, ensure_directories=False)
