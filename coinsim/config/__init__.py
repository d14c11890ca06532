"""
Configuration management for coinsim
"""

from .config import (
    Config,
    Environment,
    FeedConfig,
    ChatConfig,
    ServerConfig,
    LedgerConfig,
    OperationalConfig,
    load_config
)

__all__ = [
    "Config",
    "Environment",
    "FeedConfig",
    "ChatConfig",
    "ServerConfig",
    "LedgerConfig",
    "OperationalConfig",
    "load_config"
]
