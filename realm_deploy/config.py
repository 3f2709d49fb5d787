import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


def _int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    level = raw.strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(f"{name} must be one of {', '.join(LOG_LEVELS)}, got {raw!r}")
    return level


@dataclass
class DeployConfig:
    """Deployment settings"""
    rpc_url: str = "http://localhost:8545"
    private_key: Optional[str] = None
    chain_id: Optional[int] = None
    network: str = "development"
    build_dir: str = os.path.join("build", "contracts")
    deployment_file: str = "deployment.json"
    gas: Optional[int] = None
    tx_timeout: int = 300
    poa_middleware: bool = True

    # Notifications
    slack_webhook: Optional[str] = None
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    notification_email: Optional[str] = None

    # Logging
    log_file: str = "deploy.log"
    log_level: str = "INFO"


def load_config() -> DeployConfig:
    """Builds a DeployConfig from the environment, reading .env first."""
    load_dotenv()

    return DeployConfig(
        rpc_url=os.getenv("RPC_URL", "http://localhost:8545"),
        private_key=os.getenv("PRIVATE_KEY") or None,
        chain_id=_int_env("CHAIN_ID"),
        network=os.getenv("NETWORK", "development"),
        build_dir=os.getenv("BUILD_DIR", os.path.join("build", "contracts")),
        deployment_file=os.getenv("DEPLOYMENT_FILE", "deployment.json"),
        gas=_int_env("DEPLOY_GAS"),
        tx_timeout=_int_env("TX_TIMEOUT", 300),
        poa_middleware=_bool_env("POA_MIDDLEWARE", True),
        slack_webhook=os.getenv("SLACK_WEBHOOK") or None,
        smtp_server=os.getenv("SMTP_SERVER", "smtp.gmail.com"),
        smtp_port=_int_env("SMTP_PORT", 587),
        smtp_username=os.getenv("SMTP_USERNAME") or None,
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        notification_email=os.getenv("NOTIFICATION_EMAIL") or None,
        log_file=os.getenv("LOG_FILE", "deploy.log"),
        log_level=_log_level_env("LOG_LEVEL", "INFO"),
    )
