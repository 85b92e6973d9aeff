"""
Centralized Configuration for the Adaptive Cache

This module provides a unified configuration system for the cache engine and
its eviction scheduler. It handles configuration from environment variables,
config files, and defaults, with proper type checking and validation.
"""

import os
import re
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, validator

from adaptive_cache.common.exceptions import ConfigurationError

# Configure logging
logger = logging.getLogger(__name__)

_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024 ** 2,
    "GB": 1024 ** 3,
}


def parse_size(value: Union[int, float, str]) -> int:
    """
    Parse a memory size into bytes.

    Accepts plain numbers (bytes) and strings such as "512MB" or "1.5 gb".

    Args:
        value: Size as a number or a string with an optional unit suffix

    Returns:
        Size in bytes
    """
    if isinstance(value, (int, float)):
        return int(value)

    match = re.fullmatch(r"\s*([0-9]+(?:\.[0-9]+)?)\s*([a-zA-Z]*)\s*", str(value))
    if not match:
        raise ValueError(f"Invalid size: {value!r}")

    number, unit = match.groups()
    unit = unit.upper()
    if unit in ("K", "M", "G"):
        unit += "B"
    if unit not in _SIZE_UNITS:
        raise ValueError(f"Unknown size unit in {value!r}")
    return int(float(number) * _SIZE_UNITS[unit])


class RedisConfig(BaseModel):
    """Redis configuration"""
    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    db: int = Field(default=0)
    password: Optional[str] = Field(default=None)
    use_ssl: bool = Field(default=False)
    connection_timeout: int = Field(default=10)

    @property
    def connection_string(self) -> str:
        """Get the Redis connection string"""
        protocol = "rediss" if self.use_ssl else "redis"
        auth = f":{self.password}@" if self.password else ""
        return f"{protocol}://{auth}{self.host}:{self.port}/{self.db}"


class CacheConfig(BaseModel):
    """Cache engine configuration"""
    backend: str = Field(default="redis")
    key_prefix: str = Field(default="")
    serialization: str = Field(default="json")
    index_name: str = Field(default="expirationTimes")
    initial_ttl_seconds: int = Field(default=3600)
    max_ttl_seconds: int = Field(default=10800)  # 3 hours
    lock_ttl_seconds: int = Field(default=10)
    max_lock_retries: int = Field(default=3)
    lock_backoff_seconds: float = Field(default=0.1)
    recent_frequency_weight: float = Field(default=0.5)
    overall_frequency_weight: float = Field(default=0.5)
    max_access_frequency: float = Field(default=1000.0)  # used for zero-second gaps

    @validator('backend')
    def validate_backend(cls, v):
        """Validate backend name"""
        valid_backends = ['redis', 'memory']
        if v.lower() not in valid_backends:
            raise ValueError(f"Invalid cache backend: {v}. Must be one of {valid_backends}")
        return v.lower()

    @validator('serialization')
    def validate_serialization(cls, v):
        """Validate serialization format"""
        valid_formats = ['json', 'pickle']
        if v.lower() not in valid_formats:
            raise ValueError(f"Invalid serialization: {v}. Must be one of {valid_formats}")
        return v.lower()

    @validator('initial_ttl_seconds', 'max_ttl_seconds', 'lock_ttl_seconds', 'max_lock_retries')
    def validate_positive(cls, v):
        """Validate counts and durations are positive"""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @validator('max_access_frequency')
    def validate_frequency_cap(cls, v):
        """Validate the frequency ceiling"""
        if v <= 0:
            raise ValueError(f"Frequency ceiling must be positive, got {v}")
        return v


class EvictionConfig(BaseModel):
    """Eviction scheduler configuration"""
    max_memory_bytes: int = Field(default=512 * 1024 * 1024)
    eviction_threshold_pct: float = Field(default=85)
    safe_threshold_pct: float = Field(default=60)
    grace_window_seconds: int = Field(default=600)  # 10 minutes
    scheduler_interval_seconds: int = Field(default=600)
    batch_step_pct: int = Field(default=10)

    @validator('max_memory_bytes', pre=True)
    def validate_max_memory(cls, v):
        """Accept sizes such as "512MB" as well as raw byte counts"""
        size = parse_size(v)
        if size <= 0:
            raise ValueError(f"max_memory_bytes must be positive, got {v}")
        return size

    @validator('eviction_threshold_pct')
    def validate_eviction_threshold(cls, v):
        """Validate eviction threshold is a percentage"""
        if not 0 < v <= 100:
            raise ValueError(f"Eviction threshold must be in (0, 100], got {v}")
        return v

    @validator('safe_threshold_pct')
    def validate_safe_threshold(cls, v, values):
        """Validate safe threshold sits below the eviction threshold"""
        eviction = values.get('eviction_threshold_pct')
        if v <= 0 or (eviction is not None and v >= eviction):
            raise ValueError(
                f"Safe threshold must be positive and below the eviction threshold, got {v}"
            )
        return v

    @validator('batch_step_pct')
    def validate_batch_step(cls, v):
        """Validate batch step is a percentage"""
        if not 0 < v <= 100:
            raise ValueError(f"Batch step must be in (0, 100], got {v}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO")
    use_json: bool = Field(default=False)
    file_path: Optional[str] = Field(default=None)

    @validator('level')
    def validate_level(cls, v):
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Main application configuration"""
    app_name: str = Field(default="adaptive-cache")
    redis: RedisConfig = Field(default_factory=RedisConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    eviction: EvictionConfig = Field(default_factory=EvictionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Environment variable -> (section, field)
ENV_MAPPING = {
    "REDIS_HOST": ("redis", "host"),
    "REDIS_PORT": ("redis", "port"),
    "REDIS_DB": ("redis", "db"),
    "REDIS_PASSWORD": ("redis", "password"),
    "REDIS_USE_SSL": ("redis", "use_ssl"),
    "REDIS_CONNECTION_TIMEOUT": ("redis", "connection_timeout"),
    "CACHE_BACKEND": ("cache", "backend"),
    "CACHE_KEY_PREFIX": ("cache", "key_prefix"),
    "CACHE_SERIALIZATION": ("cache", "serialization"),
    "CACHE_INDEX_NAME": ("cache", "index_name"),
    "CACHE_INITIAL_TTL": ("cache", "initial_ttl_seconds"),
    "CACHE_MAX_TTL": ("cache", "max_ttl_seconds"),
    "CACHE_LOCK_TTL": ("cache", "lock_ttl_seconds"),
    "CACHE_MAX_LOCK_RETRIES": ("cache", "max_lock_retries"),
    "CACHE_LOCK_BACKOFF": ("cache", "lock_backoff_seconds"),
    "CACHE_MAX_ACCESS_FREQUENCY": ("cache", "max_access_frequency"),
    "CACHE_MAX_MEMORY": ("eviction", "max_memory_bytes"),
    "EVICTION_THRESHOLD_PCT": ("eviction", "eviction_threshold_pct"),
    "EVICTION_SAFE_THRESHOLD_PCT": ("eviction", "safe_threshold_pct"),
    "EVICTION_GRACE_WINDOW": ("eviction", "grace_window_seconds"),
    "EVICTION_INTERVAL": ("eviction", "scheduler_interval_seconds"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_JSON": ("logging", "use_json"),
    "LOG_FILE": ("logging", "file_path"),
}


class ConfigLoader:
    """
    Configuration loader for the application.

    Loads configuration from:
    1. Default values
    2. Config file
    3. Environment variables (highest priority)
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_path: Path to config file (YAML or JSON)
        """
        self.config_path = config_path or os.environ.get("CONFIG_PATH")
        self._config = None

    def load(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If a setting fails validation
        """
        if self._config is not None:
            return self._config

        load_dotenv()

        # Load from file if specified
        file_config = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        # Environment overrides the file
        merged = self._merge_env(file_config, os.environ)
        try:
            self._config = AppConfig(**merged)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded configuration dictionary
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        try:
            if path.suffix.lower() in ['.yaml', '.yml']:
                with open(path, 'r') as f:
                    return yaml.safe_load(f) or {}
            elif path.suffix.lower() == '.json':
                with open(path, 'r') as f:
                    return json.load(f)
            else:
                logger.warning(f"Unsupported config file format: {path.suffix}")
                return {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file: {e}")
            return {}

    @staticmethod
    def _merge_env(base: Dict[str, Any], environ) -> Dict[str, Any]:
        """
        Overlay environment variables on a configuration dictionary.

        Args:
            base: Configuration loaded from file
            environ: Mapping of environment variables

        Returns:
            New configuration dictionary with environment overrides applied
        """
        merged = {section: dict(values or {}) for section, values in base.items()
                  if isinstance(values, dict)}
        merged.update({k: v for k, v in base.items() if not isinstance(v, dict)})

        for env_var, (section, field_name) in ENV_MAPPING.items():
            if env_var in environ:
                value = environ[env_var]
                if field_name in ("use_ssl", "use_json"):
                    value = value.lower() in ("true", "1", "yes")
                merged.setdefault(section, {})[field_name] = value

        return merged


# Global configuration instance
config_loader = ConfigLoader()
config = config_loader.load()


def get_config() -> AppConfig:
    """
    Get the loaded configuration.

    Returns:
        Loaded configuration
    """
    return config


def reload_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Reload the configuration.

    Args:
        config_path: Path to config file

    Returns:
        Reloaded configuration
    """
    global config_loader, config
    config_loader = ConfigLoader(config_path)
    config = config_loader.load()
    return config
