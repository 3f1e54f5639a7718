"""
Configuration management for the craps table server.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

# Project root directory (parent of the 'crapstable' folder)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_int(key: str, default: Optional[int] = 0) -> Optional[int]:
    """Get integer environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = True
    name: str = "Craps Table"


class EconomyConfig(BaseModel):
    starting_money: int = 1000
    loan_amount: int = 500  # Paid out to the player
    loan_debt: int = 525  # Added to the player's debt (5% interest)
    loan_threshold: int = 100  # Balance must be below this to borrow


class CrapsConfig(BaseModel):
    min_bet: int = 1
    max_bet: int = 1000
    bet_presets: List[int] = Field(
        default_factory=lambda: [10, 25, 50, 100, 250, 500, 1000]
    )
    # A winning place bet is paid and stays up for the next hit.
    repeat_winning_place_bets: bool = True


class RateLimitConfig(BaseModel):
    enabled: bool = True
    table_requests: str = "60/minute"  # Bets, rolls, resets
    api_requests: str = "120/minute"  # Account CRUD


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"  # color, plain or json


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT."""
    database: str = "data/accounts.db"
    log_file: str = "data/app.log"

    def get_db_path(self) -> Path:
        path = Path(self.database)
        if path.is_absolute():
            return path
        return PROJECT_ROOT / path

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    economy: EconomyConfig = Field(default_factory=EconomyConfig)
    craps: CrapsConfig = Field(default_factory=CrapsConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

# Environment variable -> (section, field, reader)
ENV_OVERRIDES = {
    "SERVER_HOST": ("server", "host", get_env),
    "SERVER_PORT": ("server", "port", get_env_int),
    "DEBUG": ("server", "debug", get_env_bool),
    "DB_PATH": ("paths", "database", get_env),
    "STARTING_MONEY": ("economy", "starting_money", get_env_int),
    "MIN_BET": ("craps", "min_bet", get_env_int),
    "MAX_BET": ("craps", "max_bet", get_env_int),
    "REPEAT_WINNING_PLACE_BETS": ("craps", "repeat_winning_place_bets", get_env_bool),
    "LOG_LEVEL": ("logging", "level", get_env),
    "LOG_TO_FILE": ("logging", "log_to_file", get_env_bool),
    "LOG_FORMATTER": ("logging", "formatter", get_env),
    "RATE_LIMIT_ENABLED": ("rate_limit", "enabled", get_env_bool),
    "RATE_LIMIT_TABLE_REQUESTS": ("rate_limit", "table_requests", get_env),
    "RATE_LIMIT_API_REQUESTS": ("rate_limit", "api_requests", get_env),
}


def load_config() -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    config_path = PROJECT_ROOT / "config.json"

    data = {}
    if config_path.exists():
        with open(config_path, "r") as f:
            data = json.load(f)

    for env_key, (section, field, parse) in ENV_OVERRIDES.items():
        if not get_env(env_key):
            continue
        value = parse(env_key, None)
        if value is not None:
            data.setdefault(section, {})[field] = value

    return AppConfig(**data)


# Global config instance
settings = load_config()
