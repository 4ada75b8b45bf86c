"""
Configuration management for corrmath.

This module provides the configuration object passed into engine calls,
built from default values, environment variables, files and explicit
overrides, plus logging setup driven by that configuration.
"""

import os
import json
import logging
import threading
from copy import deepcopy
from typing import Any, Dict, Optional

import yaml

from corrmath.exceptions import ConfigurationError

# Set up logging
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


class Config:
    """
    Configuration for correlation engines.

    Values live in a nested dictionary addressed with dot-separated paths,
    e.g. ``config.get('correlation.method')``.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None, use_env: bool = True):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
            use_env: Whether to read environment variables
        """
        self._lock = threading.RLock()
        self._config = {}
        self._use_env = use_env

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()

            if self._use_env:
                config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            self._validate(config)
            self._config = config

            logger.debug("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            'correlation': {
                'method': 'pearson',
                'min-periods': 1,
                'numeric-only': False
            },

            'engine': {
                'max-workers': 1     # 1 means evaluate pairs sequentially
            },

            'windowed': {
                'incremental': False  # running sums for exponential windows
            },

            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def env_int(name, current):
            if name not in os.environ:
                return current
            value = to_int(os.environ[name])
            if value is None:
                raise ConfigurationError(f"{name} must be an integer, got {os.environ[name]!r}")
            return value

        def env_bool(name, current):
            if name not in os.environ:
                return current
            value = to_bool(os.environ[name])
            if value is None:
                raise ConfigurationError(f"{name} must be a boolean, got {os.environ[name]!r}")
            return value

        config['correlation']['method'] = os.environ.get('CORR_METHOD', config['correlation']['method'])
        config['correlation']['min-periods'] = env_int('CORR_MIN_PERIODS', config['correlation']['min-periods'])
        config['correlation']['numeric-only'] = env_bool('CORR_NUMERIC_ONLY', config['correlation']['numeric-only'])
        config['engine']['max-workers'] = env_int('CORR_MAX_WORKERS', config['engine']['max-workers'])
        config['windowed']['incremental'] = env_bool('CORR_INCREMENTAL', config['windowed']['incremental'])
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, overrides)

    def _validate(self, config: Dict[str, Any]) -> None:
        """
        Check that configured values are usable.

        Args:
            config: Configuration to check
        """
        # Deferred: the corrmath.math package imports this module
        from corrmath.math.methods import CorrelationMethod
        from corrmath.exceptions import UnknownMethod

        try:
            CorrelationMethod.parse(config['correlation']['method'])
        except UnknownMethod as e:
            raise ConfigurationError(str(e)) from e

        min_periods = config['correlation']['min-periods']
        if isinstance(min_periods, bool) or not isinstance(min_periods, int) or min_periods < 0:
            raise ConfigurationError(f"correlation.min-periods must be a non-negative integer, got {min_periods!r}")

        workers = config['engine']['max-workers']
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ConfigurationError(f"engine.max-workers must be a positive integer, got {workers!r}")

        if str(config['logging']['level']).lower() not in _LEVELS:
            raise ConfigurationError(f"Unknown logging level: {config['logging']['level']!r}")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        value = self._config

        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            components = path.split('.')
            config = deepcopy(self._config)
            node = config

            for component in components[:-1]:
                if component not in node:
                    node[component] = {}
                node = node[component]

            node[components[-1]] = value

            self._validate(config)
            self._config = config

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration (.json, .yaml or .yml)
        """
        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ConfigurationError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from (.json, .yaml or .yml)
        """
        if filepath.endswith('.json'):
            with open(filepath, 'r') as f:
                overrides = json.load(f)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'r') as f:
                overrides = yaml.safe_load(f)
        else:
            raise ConfigurationError(f"Unsupported file format: {filepath}")

        if not isinstance(overrides, dict):
            raise ConfigurationError(f"Configuration file {filepath} must contain a mapping")

        self.load_config(overrides)

    @classmethod
    def from_file(cls, filepath: str, use_env: bool = True) -> 'Config':
        config = cls(use_env=use_env)
        config.load_from_file(filepath)
        return config

    def __repr__(self) -> str:
        return f"Config({self._config!r})"


def resolve_config(config: Optional[Config]) -> Config:
    """
    Return the given configuration, or the built-in defaults.

    Environment variables only take effect through a Config the caller
    builds; an engine call without one always sees the defaults.

    Args:
        config: Configuration or None

    Returns:
        Config
    """
    if config is None:
        return Config(use_env=False)
    return config


def configure_logging(level: Optional[str] = None, config: Optional[Config] = None) -> None:
    """
    Set up logging.

    Args:
        level: Logging level name ('debug', 'info', 'warn', ...); defaults
            to the configured level
        config: Optional configuration supplying the level
    """
    if level is None:
        level = resolve_config(config).get('logging.level')
    key = str(level).lower()
    if key not in _LEVELS:
        raise ConfigurationError(f"Unknown logging level: {level!r}")

    logging.basicConfig(
        level=_LEVELS[key],
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )
    logging.getLogger('corrmath').setLevel(_LEVELS[key])
