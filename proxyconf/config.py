"""Global configuration: loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class ProxyConfSettings(BaseSettings):
    config_path: Path = Path("velocity.yml")
    log_level: str = "INFO"

    model_config = {"env_prefix": "PROXYCONF_"}


settings = ProxyConfSettings()
