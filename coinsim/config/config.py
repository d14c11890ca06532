"""
Core configuration management for coinsim.

This module provides configuration management with support for:
- Environment-based configurations (dev, staging, prod)
- .env files and environment variable overrides
- JSON and YAML configuration files
- Configuration validation
- Redaction of the chat API key when configuration is exported
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from dataclasses import dataclass, asdict, field, fields
from enum import Enum
import logging

import yaml
from dotenv import load_dotenv

from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MISSING_PRICE_POLICIES = ("zero", "error")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(Enum):
    """Supported environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class FeedConfig:
    """CoinGecko market-data configuration"""
    base_url: str = "https://api.coingecko.com/api/v3"
    vs_currency: str = "usd"
    timeout: float = 10.0
    default_ids: List[str] = field(default_factory=lambda: ["bitcoin", "ethereum", "solana"])


@dataclass
class ChatConfig:
    """Generative-text API configuration (chat endpoint only)"""
    api_key: Optional[str] = None
    model: str = "models/gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1"
    timeout: float = 20.0


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: str = "*"
    debug: bool = False


@dataclass
class LedgerConfig:
    """Account store and trading configuration"""
    default_user_id: str = "FM10293"
    serialize_mutations: bool = True
    missing_price_policy: str = "zero"  # zero | error


@dataclass
class OperationalConfig:
    """Operational settings configuration"""
    log_level: str = "INFO"
    log_dir: str = "logs"
    enable_console: bool = True
    enable_structlog: bool = True


SECTIONS = {
    'feed': FeedConfig,
    'chat': ChatConfig,
    'server': ServerConfig,
    'ledger': LedgerConfig,
    'operations': OperationalConfig,
}


@dataclass
class Config:
    """Main configuration class"""
    environment: Environment = Environment.DEVELOPMENT
    feed: FeedConfig = field(default_factory=FeedConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    operations: OperationalConfig = field(default_factory=OperationalConfig)

    def validate(self):
        """Validate configuration values"""
        errors = []

        if not self.feed.base_url:
            errors.append("Feed base_url must be set")

        if self.feed.timeout <= 0:
            errors.append("Feed timeout must be positive")

        if not self.feed.default_ids:
            errors.append("Feed default_ids must not be empty")

        if self.chat.timeout <= 0:
            errors.append("Chat timeout must be positive")

        if not (0 < self.server.port < 65536):
            errors.append("Server port must be between 1 and 65535")

        if not self.ledger.default_user_id:
            errors.append("Ledger default_user_id must be set")

        if self.ledger.missing_price_policy not in MISSING_PRICE_POLICIES:
            errors.append(
                f"Ledger missing_price_policy must be one of {', '.join(MISSING_PRICE_POLICIES)}"
            )

        if self.operations.log_level not in LOG_LEVELS:
            errors.append("Invalid log level")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    def load_environment_overrides(self):
        """Load configuration overrides from environment variables"""
        if env := os.getenv("COINSIM_ENV"):
            try:
                self.environment = Environment(env.lower())
            except ValueError:
                logger.warning(f"Invalid COINSIM_ENV: {env}")

        if base_url := os.getenv("COINGECKO_BASE_URL"):
            self.feed.base_url = base_url

        if timeout := os.getenv("FEED_TIMEOUT"):
            try:
                self.feed.timeout = float(timeout)
            except ValueError:
                logger.warning(f"Invalid FEED_TIMEOUT: {timeout}")

        if api_key := os.getenv("GEMINI_API_KEY"):
            self.chat.api_key = api_key

        if model := os.getenv("GEMINI_MODEL"):
            self.chat.model = model

        if host := os.getenv("HOST"):
            self.server.host = host

        if port := os.getenv("PORT"):
            try:
                self.server.port = int(port)
            except ValueError:
                logger.warning(f"Invalid PORT: {port}")

        if policy := os.getenv("MISSING_PRICE_POLICY"):
            self.ledger.missing_price_policy = policy.lower()

        if log_level := os.getenv("LOG_LEVEL"):
            self.operations.log_level = log_level.upper()

        if log_dir := os.getenv("LOG_DIR"):
            self.operations.log_dir = log_dir

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Config":
        """Build a configuration from nested section dictionaries"""
        config = cls()

        for section, section_cls in SECTIONS.items():
            if section in config_data:
                known = {f.name for f in fields(section_cls)}
                unknown = set(config_data[section]) - known
                if unknown:
                    raise ConfigurationError(
                        f"Unknown keys in section '{section}': {', '.join(sorted(unknown))}",
                        config_key=section
                    )
                setattr(config, section, section_cls(**config_data[section]))

        if 'environment' in config_data:
            try:
                config.environment = Environment(config_data['environment'])
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid environment: {config_data['environment']}",
                    config_key='environment',
                    config_value=config_data['environment']
                ) from e

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "Config":
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if suffix == '.json':
                    config_data = json.load(f)
                elif suffix in ('.yaml', '.yml'):
                    config_data = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported config file format: {config_path.suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse configuration file {config_path}: {e}") from e

        config = cls.from_dict(config_data)
        logger.info(f"Configuration loaded from {config_path}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, chat API key redacted"""
        config_dict = {'environment': self.environment.value}
        for section in SECTIONS:
            config_dict[section] = asdict(getattr(self, section))

        if config_dict['chat']['api_key']:
            config_dict['chat']['api_key'] = "[REDACTED]"

        return config_dict

    def to_file(self, config_path: Union[str, Path]):
        """Save configuration to a JSON or YAML file"""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.to_dict()
        # Never write the key to disk, not even redacted
        config_dict['chat']['api_key'] = None

        with open(config_path, 'w', encoding='utf-8') as f:
            if config_path.suffix.lower() in ('.yaml', '.yml'):
                yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def has_chat_credentials(self) -> bool:
        """Check if the generative-text API key is available"""
        return bool(self.chat.api_key)


def load_config(config_path: Optional[Union[str, Path]] = None,
                env_file: Optional[Union[str, Path]] = None) -> Config:
    """
    Build the service configuration.

    Order of precedence, lowest first: dataclass defaults, the optional
    JSON/YAML file, then environment variables (including those loaded
    from the .env file).

    Args:
        config_path: Optional path to a JSON or YAML configuration file
        env_file: Optional path to a .env file; defaults to ./.env if present

    Returns:
        Validated configuration instance

    Raises:
        ConfigurationError: If the file cannot be read or validation fails
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    config = Config.from_file(config_path) if config_path else Config()
    config.load_environment_overrides()
    config.validate()

    logger.info(f"Configuration ready for environment: {config.environment.value}")
    return config
