"""
CLI Configuration

Settings come from four layers, lowest first: built-in defaults, an optional
JSON file, environment variables (a .env file is loaded into the environment
first) and finally command line flags. The merged settings are turned into
RunOptions and the Tolerances the services are built with.
"""

import copy
import json
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..core.exceptions import ConfigurationError
from ..core.models import RunOptions, Tolerances


LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "app": {
        "log_level": "WARNING",
        "file_log_level": "DEBUG",
        "log_dir": None,
    },
    "processing": {
        "workers": Tolerances().workers,
        "queue_size": 0,
        "ffmpeg_path": "ffmpeg",
        "tool_timeout": 600,
        "extensions": [".mp3"],
    },
    "ui": {
        "color_output": True,
        "progress_bars": True,
    },
    "lastfm": {
        "api_key": None,
        "api_secret": None,
    },
}


def default_config_path() -> str:
    """Per-user config.json location for the current platform"""
    system = platform.system()
    if system == "Windows":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        return os.path.join(base, "ripcheck", "config.json")
    if system == "Darwin":
        return os.path.expanduser("~/Library/Application Support/ripcheck/config.json")
    return os.path.expanduser("~/.config/ripcheck/config.json")


def find_env_file(start: Optional[Path] = None, levels: int = 4) -> Optional[Path]:
    """Nearest .env in start or up to `levels` parents"""
    directory = start or Path.cwd()
    for candidate in [directory, *directory.parents][:levels]:
        env_file = candidate / '.env'
        if env_file.is_file():
            return env_file
    return None


def merge_settings(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


class CLIConfig:
    """
    Layered configuration of one CLI invocation

    Detection and repair tolerances are fixed; the worker count is the only
    one that can be configured.
    """

    # environment variable -> (section, key, type)
    ENV_OVERRIDES = {
        'RIPCHECK_WORKERS': ('processing', 'workers', int),
        'RIPCHECK_FFMPEG': ('processing', 'ffmpeg_path', str),
        'RIPCHECK_TOOL_TIMEOUT': ('processing', 'tool_timeout', int),
        'RIPCHECK_LOG_LEVEL': ('app', 'log_level', str),
        'RIPCHECK_LOG_DIR': ('app', 'log_dir', str),
        'LASTFM_API_KEY': ('lastfm', 'api_key', str),
        'LASTFM_API_SECRET': ('lastfm', 'api_secret', str),
    }

    def __init__(self, config_path: Optional[str] = None, load_env_file: bool = True):
        self.config_path = config_path or default_config_path()
        self._settings: Optional[Dict[str, Any]] = None

        if load_env_file:
            env_file = find_env_file()
            if env_file is not None:
                load_dotenv(env_file)

    def load_config(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Merged and validated settings; cached after the first call

        Raises:
            ConfigurationError: If the config file is unreadable or a value is invalid
        """
        if self._settings is None or force_reload:
            settings = copy.deepcopy(DEFAULT_SETTINGS)
            for layer in (self._read_file(), self._read_environment()):
                settings = merge_settings(settings, layer)
            self._validate(settings)
            self._settings = settings
        return self._settings

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_path):
            return {}
        try:
            with open(self.config_path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError("Failed to load config file", details=str(e), filepath=self.config_path)
        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a JSON object", filepath=self.config_path)
        return data

    def _read_environment(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for name, (section, key, cast) in self.ENV_OVERRIDES.items():
            raw = os.environ.get(name)
            if not raw:
                continue
            try:
                overrides.setdefault(section, {})[key] = cast(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {name}", details=raw)
        return overrides

    @staticmethod
    def _validate(settings: Dict[str, Any]):
        processing = settings["processing"]

        workers = processing.get("workers")
        if not isinstance(workers, int) or workers < 1:
            raise ConfigurationError("processing.workers must be a positive integer", details=str(workers))

        queue_size = processing.get("queue_size")
        if not isinstance(queue_size, int) or queue_size < 0:
            raise ConfigurationError("processing.queue_size must be 0 or more", details=str(queue_size))

        level = str(settings["app"].get("log_level", "")).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError("app.log_level is not a known level", details=level)
        settings["app"]["log_level"] = level

    def get_setting(self, section: str, key: str, default: Any = None) -> Any:
        return self.load_config().get(section, {}).get(key, default)

    def create_run_options(self, **overrides) -> RunOptions:
        """
        RunOptions from the merged settings

        Keyword arguments that are not None take precedence (command line flags).
        """
        settings = self.load_config()
        processing = settings["processing"]
        values = {
            'workers': processing["workers"],
            'queue_size': processing["queue_size"],
            'ffmpeg_path': processing["ffmpeg_path"],
            'tool_timeout': processing["tool_timeout"],
            'extensions': list(processing["extensions"]),
            'color': settings["ui"]["color_output"],
            'progress_bars': settings["ui"]["progress_bars"],
            'lastfm_api_key': settings["lastfm"]["api_key"],
            'lastfm_api_secret': settings["lastfm"]["api_secret"],
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        options = RunOptions.from_dict(values)
        if options.workers < 1:
            raise ConfigurationError("workers must be a positive integer", details=str(options.workers))
        return options


def create_tolerances(options: RunOptions) -> Tolerances:
    """The fixed tolerance set with the configured worker count"""
    return Tolerances(workers=options.workers)


__all__ = ['CLIConfig', 'create_tolerances', 'default_config_path', 'LOG_LEVELS']
