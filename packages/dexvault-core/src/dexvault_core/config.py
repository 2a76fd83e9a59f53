"""Canonical configuration surface for DexVault services."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class DexVaultSettings(BaseSettings):
    """Main DexVault gateway configuration."""

    # Environment
    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    host: str = "0.0.0.0"
    port: int = 8000

    # Token verification
    jwt_secret: str = ""
    jwt_algorithms: str = "HS256"
    user_claim: str = "user"
    payload_claim: str = "payload"

    # Vault storage
    vault_key: str = ""
    datastore_path: str = ""

    # Broadcast transport
    broadcast_scheme: Literal["http", "https"] = "https"
    broadcast_timeout_seconds: float = 30.0

    # Error bodies carry the underlying error text unless disabled
    expose_error_details: Optional[bool] = None

    # Metrics
    public_metrics: bool = False

    class Config:
        env_prefix = "DEXVAULT_"
        env_file = ".env"
        extra = "ignore"

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str, info) -> str:
        env = info.data.get("environment", "dev")
        if env == "prod" and len(v) < 32:
            raise ValueError(
                "DEXVAULT_JWT_SECRET must be at least 32 characters in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )
        return v or "dev-only-jwt-secret-not-for-production"

    @field_validator("api_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        v = v.strip()
        if not v:
            return ""
        return "/" + v.strip("/")

    @property
    def jwt_algorithm_list(self) -> List[str]:
        """Accepted signing algorithms, parsed from the comma-separated setting."""
        return [a.strip() for a in self.jwt_algorithms.split(",") if a.strip()]

    @property
    def show_error_details(self) -> bool:
        if self.expose_error_details is not None:
            return self.expose_error_details
        return self.environment != "prod"

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"


@lru_cache
def load_settings(env_file: str | None = None) -> DexVaultSettings:
    """Load DexVaultSettings once per process to keep services consistent."""
    env_path = Path(env_file) if env_file else None
    return DexVaultSettings(_env_file=env_path)
