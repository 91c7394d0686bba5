"""
Configuration management for SBTMint

Loads settings from:
1. config/config.yaml
2. Environment variables (.env, ``SBTMINT_`` prefix)
3. Default values
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """SBTMint configuration settings"""

    model_config = SettingsConfigDict(
        env_prefix="SBTMINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Bibliographic lookup (OpenAlex) ---
    openalex_base_url: str = Field(default="https://api.openalex.org/works/")
    doi_resolver_base: str = Field(default="https://doi.org/")
    lookup_timeout_seconds: float = Field(default=10.0, gt=0)
    contact_email: str = Field(default="", description="Sent as mailto for the OpenAlex polite pool")

    # --- Chain / contract ---
    eth_rpc_url: str = Field(default="http://127.0.0.1:8545")
    contract_address: str = Field(default="0xc3c76fD097FBEa31B213660543f8E6166538Bb42")
    wallet_mode: Literal["node", "local_key", "none"] = "node"
    wallet_private_key: str = Field(default="")

    # --- Identifier registry ---
    registry_backend: Literal["memory", "sqlite"] = "memory"
    registry_db: str = Field(default="submitted_dois.db")

    # --- API Settings ---
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_key: str = Field(default="")
    demo_mode: bool = False
    cors_origins: str = "http://localhost:3000"  # Comma-separated string

    # --- Rate limits (requests per window) ---
    submit_rate_limit: int = Field(default=10, ge=1)
    read_rate_limit: int = Field(default=60, ge=1)
    doi_submit_limit: int = Field(default=5, ge=1, description="Submissions of one DOI, all callers")
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)

    # --- Logging ---
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file"""
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            return cls()

        with open(yaml_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global configuration instance"""
    global _config
    if _config is None:
        _config = Config.from_yaml()
    return _config


def reload_config(yaml_path: Optional[str | Path] = None) -> Config:
    """Reload configuration from file"""
    global _config
    _config = Config.from_yaml(yaml_path) if yaml_path else Config.from_yaml()
    return _config
