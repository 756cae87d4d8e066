"""
Configuration management for movetype.

This module provides pydantic-settings models for type-safe configuration with
validation and environment variable integration. Every setting can be passed as
a keyword argument, read from the environment, or read from a ``.env`` file.
"""

from enum import Enum
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfig(BaseSettings):
    """
    Base configuration class with common settings for all components.

    All other configuration classes should inherit from this class.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MOVETYPE_",
        extra="ignore",
    )

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO


class EngineConfig(BaseConfig):
    """
    Configuration for the movement classification engine.

    The first group of fields are the tunable detection options; the second
    group are the pipeline constants, exposed so tests and unusual devices can
    adjust them.
    """
    model_config = SettingsConfigDict(env_prefix="MOVETYPE_ENGINE_")

    sample_size: int = 30
    update_interval_ms: int = 1000
    vehicle_threshold: float = 1.7
    walking_threshold: float = 0.55
    min_confidence: float = 0.5
    temporal_smoothing: bool = True
    adaptive_thresholds: bool = True
    safe_mode: bool = True
    max_sample_buffer_size: int = 60
    use_simple_mode: bool = False
    error_threshold: int = 3

    min_sample_interval_ms: float = 25.0
    calibration_sample_count: int = 100
    history_size: int = 7
    error_log_interval_ms: float = 10000.0

    @field_validator("sample_size", "update_interval_ms", "max_sample_buffer_size",
                     "calibration_sample_count", "history_size")
    @classmethod
    def validate_positive(cls, v):
        """Validate sizes and intervals are positive."""
        if v <= 0:
            raise ValueError("Value must be greater than zero")
        return v

    @field_validator("vehicle_threshold", "walking_threshold", "min_sample_interval_ms",
                     "error_log_interval_ms", "error_threshold")
    @classmethod
    def validate_non_negative(cls, v):
        """Validate thresholds are not negative."""
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @field_validator("min_confidence")
    @classmethod
    def validate_min_confidence(cls, v):
        """Validate minimum confidence is within range."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("Minimum confidence must be between 0.0 and 1.0")
        return v

    @property
    def buffer_capacity(self) -> int:
        """Number of samples the buffer holds before evicting the oldest."""
        return min(self.max_sample_buffer_size, self.sample_size * 2)

    @property
    def min_analysis_samples(self) -> float:
        """Samples required in the buffer before a tick analyses anything."""
        return self.sample_size / 2


class ServiceConfig(BaseConfig):
    """Configuration for the movement service."""
    model_config = SettingsConfigDict(env_prefix="MOVETYPE_SERVICE_")

    channel_capacity: int = 256
    service_shutdown_timeout: float = 5.0  # seconds

    @field_validator("channel_capacity")
    @classmethod
    def validate_channel_capacity(cls, v):
        """Validate the reading channel is bounded and non-empty."""
        if v <= 0:
            raise ValueError("Channel capacity must be greater than zero")
        return v


class ApplicationConfig(BaseConfig):
    """
    Main application configuration that combines all component configurations.

    This is the top-level configuration class that should be used by the application.
    """
    model_config = SettingsConfigDict(env_nested_delimiter="__")

    engine: EngineConfig = Field(default_factory=EngineConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)


def get_config() -> ApplicationConfig:
    """
    Get the application configuration.

    Returns:
        The validated ApplicationConfig instance
    """
    return ApplicationConfig()
