"""Configuration loading from TOML file for mjbot."""

import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ServerConfig:
    """Reverse WebSocket server configuration (NapCatQQ connects here)."""

    # Bind address; use "0.0.0.0" to listen on all interfaces
    host: str = "0.0.0.0"
    # WebSocket port that NapCatQQ connects to
    port: int = 8080
    # Optional access token NapCat sends as "Authorization: Bearer <token>"
    access_token: str = ""


@dataclass
class WebhookConfig:
    """HTTP endpoint receiving task notifications from the MJ proxy."""

    host: str = "0.0.0.0"
    port: int = 80


@dataclass
class MjConfig:
    """Remote Midjourney proxy API configuration."""

    # Base URL of the proxy, e.g. "http://127.0.0.1:8080/mj"
    endpoint: str = "http://127.0.0.1:8080/mj"
    # Callback URL pointing back at our /notify endpoint (empty = not sent)
    notify_hook: str = ""
    # Timeout in seconds for task submission
    timeout: float = 60.0


@dataclass
class ImageConfig:
    """Result image delivery configuration."""

    # Outbound HTTP proxy for image downloads (empty = chat client fetches the URL)
    http_proxy: str = ""
    # Directory where proxied images are also saved (empty = don't save)
    images_path: str = ""
    # Timeout (seconds) for proxied image downloads
    download_timeout: float = 10.0
    # Timeout (seconds) for downloading images users send for /describe
    inbound_timeout: float = 15.0


@dataclass
class SensitiveConfig:
    """Sensitive word filter configuration."""

    # Text file with one word per line (empty = filter disabled)
    words_file: str = ""


@dataclass
class LoggingConfig:
    """Logging configuration."""

    # Console log level (file handler always captures DEBUG)
    level: str = "INFO"
    # Directory for log files
    dir: str = "data/logs"
    # Number of days to keep rotated log files
    keep_days: int = 30
    # Total log size cap in MB; oldest files are deleted when exceeded
    max_total_mb: int = 100


@dataclass
class MjBotConfig:
    """Top-level mjbot configuration, aggregating all sub-configs."""

    server: ServerConfig = field(default_factory=ServerConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    mj: MjConfig = field(default_factory=MjConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    sensitive: SensitiveConfig = field(default_factory=SensitiveConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path = "config.toml") -> MjBotConfig:
    """
    Load configuration from a TOML file.

    Falls back to defaults for any missing fields.
    Raises FileNotFoundError if the file does not exist.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    # Build config from raw dict, using defaults for missing fields
    return MjBotConfig(
        server=ServerConfig(**raw.get("server", {})),
        webhook=WebhookConfig(**raw.get("webhook", {})),
        mj=MjConfig(**raw.get("mj", {})),
        image=ImageConfig(**raw.get("image", {})),
        sensitive=SensitiveConfig(**raw.get("sensitive", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )


def get_config_path() -> str:
    """Get config file path from command-line args or default."""
    # Simple arg parsing: main.py [config_path]
    if len(sys.argv) > 1:
        return sys.argv[1]
    return "config.toml"
