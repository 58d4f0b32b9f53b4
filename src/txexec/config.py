"""
Configuration management for the transaction executor.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Confirmation wait is carried as an unsigned 32-bit count of seconds
MAX_CONFIRMATION_WAIT_SECONDS = 2**32 - 1


class NetworkType(str, Enum):
    """Cardano network types."""
    MAINNET = "mainnet"
    PREPROD = "preprod"
    PREVIEW = "preview"
    LOCAL = "local"


class SigningImpl(str, Enum):
    """Signing strategies available to the controller."""
    SOFTWARE = "software"         # Key material held in a local key store
    HARDWARE = "hardware"         # Key material held on an external device


class ExecutorConfig(BaseSettings):
    """
    Configuration settings for the transaction executor.

    All settings can be configured via environment variables with the TXEXEC_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="TXEXEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.PREPROD,
        description="Cardano network to submit transactions to"
    )

    # Blockfrost settings
    blockfrost_project_id: Optional[str] = Field(
        default=None,
        description="Blockfrost project ID for API access"
    )
    blockfrost_base_url: Optional[str] = Field(
        default=None,
        description="Custom Blockfrost base URL (optional)"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single HTTP request to the network"
    )

    # Hardware signer settings
    hardware_signer_host: str = Field(
        default="127.0.0.1",
        description="Host of the local hardware signer bridge"
    )
    hardware_signer_port: int = Field(
        default=9181,
        ge=1,
        le=65535,
        description="Port of the local hardware signer bridge"
    )
    hardware_signer_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Time allowed for the device to return a signature"
    )

    # Software signing key settings
    signing_key_path: Optional[str] = Field(
        default=None,
        description="Path to a payment signing key file"
    )
    signing_key_cbor: Optional[str] = Field(
        default=None,
        description="CBOR-encoded signing key (alternative to file path)"
    )

    # Execution defaults
    signing_impl: SigningImpl = Field(
        default=SigningImpl.SOFTWARE,
        description="Signing strategy used when none is requested explicitly"
    )
    dry_run: bool = Field(
        default=False,
        description="Sign only, skip broadcast and confirmation"
    )
    confirmation_wait_seconds: int = Field(
        default=0,
        ge=0,
        le=MAX_CONFIRMATION_WAIT_SECONDS,
        description="Seconds to poll for a receipt after broadcast (0 disables)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def blockfrost_url(self) -> str:
        """Get the appropriate Blockfrost URL based on network."""
        if self.blockfrost_base_url:
            return self.blockfrost_base_url

        network_urls = {
            NetworkType.MAINNET: "https://cardano-mainnet.blockfrost.io/api/v0",
            NetworkType.PREPROD: "https://cardano-preprod.blockfrost.io/api/v0",
            NetworkType.PREVIEW: "https://cardano-preview.blockfrost.io/api/v0",
        }
        return network_urls.get(self.network, "https://cardano-preprod.blockfrost.io/api/v0")

    @property
    def hardware_signer_url(self) -> str:
        """Get the WebSocket URL of the hardware signer bridge."""
        return f"ws://{self.hardware_signer_host}:{self.hardware_signer_port}"


# Global config instance
_config: Optional[ExecutorConfig] = None


def get_config() -> ExecutorConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ExecutorConfig()
    return _config


def set_config(config: ExecutorConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
