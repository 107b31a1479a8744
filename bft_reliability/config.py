# bft_reliability/config.py
"""
Configuration Module - Environment-based defaults for simulation runs and logging
"""

import logging.config
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


def _env_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass
class Settings:
    """Settings loaded from environment variables when instantiated"""

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "default"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE") or None)
    log_max_size_mb: int = field(default_factory=lambda: _env_int("LOG_MAX_SIZE_MB", "100"))

    # ==========================================================================
    # Simulation Defaults
    # ==========================================================================
    trials: int = field(default_factory=lambda: _env_int("BFT_TRIALS", "100"))
    tasks_per_trial: int = field(default_factory=lambda: _env_int("BFT_TASKS_PER_TRIAL", "100"))
    failure_rate: float = field(default_factory=lambda: float(os.getenv("BFT_FAILURE_RATE", "0.23")))
    fault_tolerance: Optional[int] = field(default_factory=lambda: _env_optional_int("BFT_FAULT_TOLERANCE"))
    base_seed: int = field(default_factory=lambda: _env_int("BFT_BASE_SEED", "0"))
    workers: int = field(default_factory=lambda: _env_int("BFT_WORKERS", "1"))
    complexity_penalty: float = field(default_factory=lambda: float(os.getenv("BFT_COMPLEXITY_PENALTY", "0.0")))

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_testing(self) -> bool:
        return self.environment.lower() == "testing"

    def simulation_config(self):
        """SimulationConfig populated from these settings"""
        from .simulation import SimulationConfig
        return SimulationConfig.from_settings(self)

    def get_log_config(self) -> Dict[str, Any]:
        """Get logging configuration for logging.config.dictConfig"""
        formatter = "structured" if self.log_format == "structured" else "default"
        handlers: Dict[str, Any] = {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "filters": ["run_id"],
                "stream": "ext://sys.stdout"
            }
        }
        if self.log_file:
            handlers["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": formatter,
                "filters": ["run_id"],
                "filename": self.log_file,
                "maxBytes": self.log_max_size_mb * 1024 * 1024,
                "backupCount": 5
            }

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "run_id": {"()": "bft_reliability.run_context.RunIdFilter"}
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S"
                },
                "structured": {
                    "format": "[%(asctime)s] [run-id:%(run_id)s] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S"
                }
            },
            "handlers": handlers,
            "loggers": {
                "bft": {
                    "level": self.log_level,
                    "handlers": list(handlers),
                    "propagate": False
                }
            }
        }


def configure_logging(settings: Optional[Settings] = None):
    """Apply the logging configuration for the bft.* loggers"""
    logging.config.dictConfig((settings or get_settings()).get_log_config())


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
