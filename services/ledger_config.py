"""
============================================================================
Ledger Staking Gateway - Configuration
============================================================================

Reliability Level: CORE
Traceability: Configuration logged on load (secrets redacted)

This module provides configuration management for the ledger gateway:
- Environment variable parsing with type safety
- Default values for optional configuration
- Validation of required configuration
- Fail-closed behavior on missing required config (CFG-001)

ENVIRONMENT VARIABLES:
    - LEDGER_URL: Ledger JSON API base URL (REQUIRED)
    - AUTH_URL: Client-credentials token endpoint (REQUIRED)
    - CLIENT_ID / CLIENT_SECRET: Client credentials (REQUIRED)
    - AUDIENCE: Token audience (optional)
    - VALIDATOR_PARTY: Default acting party and pool operator (REQUIRED)
    - DSO_PARTY: Default staking pool issuer (optional)
    - STAKING_PACKAGE_ID (or PACKAGE): Staking templates package (REQUIRED)
    - TOKEN_PACKAGE_ID (or PACKAGE_ID): Holding template package (REQUIRED)
    - TOKEN_SAFETY_MARGIN_SECONDS: Lease safety margin (default: 60)
    - LEDGER_TIMEOUT_SECONDS: Transport timeout (default: 30)
    - TOKEN_DECIMALS: Display to base unit scale exponent (default: 18)
    - TOKEN_SYMBOL: Fallback token symbol (default: PLDM)
    - API_PORT: HTTP port (default: 3001)
    - CORS_ORIGINS: Comma-separated allowed origins (default: *)

ERROR CODES:
    - CFG-001: Required configuration missing or invalid

============================================================================
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass
import logging
import os

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class LedgerConfigErrorCode:
    """Configuration-specific error codes for audit logging."""
    CONFIG_MISSING = "CFG-001"


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_TOKEN_SAFETY_MARGIN_SECONDS = 60
DEFAULT_LEDGER_TIMEOUT_SECONDS = 30.0
DEFAULT_TOKEN_DECIMALS = 18
DEFAULT_TOKEN_SYMBOL = "PLDM"
DEFAULT_API_PORT = 3001

# Template identifiers relative to their package id
STAKING_POOL_TEMPLATE = "Staking:StakingPool"
STAKE_TEMPLATE = "Staking:Stake"
HOLDING_TEMPLATE = "CIP56.Token:CIP56Holding"


# =============================================================================
# Configuration Validation Exception
# =============================================================================

class LedgerConfigurationError(Exception):
    """
    Exception raised when gateway configuration is invalid or missing.

    Raised during startup if required configuration is missing,
    enforcing fail-closed behavior per CFG-001.
    """

    def __init__(self, message: str, error_code: str = LedgerConfigErrorCode.CONFIG_MISSING):
        self.error_code = error_code
        self.message = message
        super().__init__(f"[{error_code}] {message}")


# =============================================================================
# LedgerConfig Class
# =============================================================================

@dataclass
class LedgerConfig:
    """
    Ledger gateway configuration.

    Reliability Level: CORE
    Input Constraints: Ledger/auth endpoints, credentials, operator party
        and both package ids must be set
    Side Effects: Logs configuration on load
    """

    ledger_url: str = ""
    auth_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    audience: str = ""

    # Default acting party; also operates every staking pool
    validator_party: str = ""

    # Default issuer for newly created pools
    dso_party: str = ""

    staking_package_id: str = ""
    token_package_id: str = ""

    token_safety_margin_seconds: int = DEFAULT_TOKEN_SAFETY_MARGIN_SECONDS
    ledger_timeout_seconds: float = DEFAULT_LEDGER_TIMEOUT_SECONDS
    token_decimals: int = DEFAULT_TOKEN_DECIMALS
    token_symbol: str = DEFAULT_TOKEN_SYMBOL
    api_port: int = DEFAULT_API_PORT
    cors_origins: str = "*"

    # -------------------------------------------------------------------------
    # Template identifiers
    # -------------------------------------------------------------------------

    @property
    def staking_pool_template(self) -> str:
        return f"{self.staking_package_id}:{STAKING_POOL_TEMPLATE}"

    @property
    def stake_template(self) -> str:
        return f"{self.staking_package_id}:{STAKE_TEMPLATE}"

    @property
    def holding_template(self) -> str:
        return f"{self.token_package_id}:{HOLDING_TEMPLATE}"

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            LedgerConfigurationError: If required configuration is missing
        """
        errors: List[str] = []

        required = {
            "LEDGER_URL": self.ledger_url,
            "AUTH_URL": self.auth_url,
            "CLIENT_ID": self.client_id,
            "CLIENT_SECRET": self.client_secret,
            "VALIDATOR_PARTY": self.validator_party,
            "STAKING_PACKAGE_ID": self.staking_package_id,
            "TOKEN_PACKAGE_ID": self.token_package_id,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            errors.append(f"missing required variables: {', '.join(missing)}")

        if self.token_safety_margin_seconds < 0:
            errors.append(
                f"TOKEN_SAFETY_MARGIN_SECONDS must be non-negative, got: "
                f"{self.token_safety_margin_seconds}"
            )

        if self.ledger_timeout_seconds <= 0:
            errors.append(
                f"LEDGER_TIMEOUT_SECONDS must be positive, got: "
                f"{self.ledger_timeout_seconds}"
            )

        if self.token_decimals < 0:
            errors.append(
                f"TOKEN_DECIMALS must be non-negative, got: {self.token_decimals}"
            )

        if errors:
            error_msg = "Ledger configuration validation failed: " + "; ".join(errors)
            logger.error(f"[{LedgerConfigErrorCode.CONFIG_MISSING}] {error_msg}")
            raise LedgerConfigurationError(error_msg)

        logger.info(
            f"[LEDGER-CONFIG] Configuration validated | "
            f"ledger_url={self.ledger_url} | "
            f"validator_party={self.validator_party} | "
            f"safety_margin={self.token_safety_margin_seconds}s"
        )

    @classmethod
    def from_environment(cls, validate: bool = True) -> "LedgerConfig":
        """
        Load configuration from environment variables.

        Args:
            validate: Whether to validate configuration after loading

        Returns:
            LedgerConfig instance with values from environment

        Raises:
            LedgerConfigurationError: If required configuration is missing (CFG-001)
        """
        config = cls(
            ledger_url=_env("LEDGER_URL"),
            auth_url=_env("AUTH_URL"),
            client_id=_env("CLIENT_ID"),
            client_secret=_env("CLIENT_SECRET"),
            audience=_env("AUDIENCE"),
            validator_party=_env("VALIDATOR_PARTY"),
            dso_party=_env("DSO_PARTY"),
            staking_package_id=_env("STAKING_PACKAGE_ID") or _env("PACKAGE"),
            token_package_id=_env("TOKEN_PACKAGE_ID") or _env("PACKAGE_ID"),
            token_safety_margin_seconds=_env_number(
                "TOKEN_SAFETY_MARGIN_SECONDS", DEFAULT_TOKEN_SAFETY_MARGIN_SECONDS, int
            ),
            ledger_timeout_seconds=_env_number(
                "LEDGER_TIMEOUT_SECONDS", DEFAULT_LEDGER_TIMEOUT_SECONDS, float
            ),
            token_decimals=_env_number("TOKEN_DECIMALS", DEFAULT_TOKEN_DECIMALS, int),
            token_symbol=_env("TOKEN_SYMBOL") or DEFAULT_TOKEN_SYMBOL,
            api_port=_env_number("API_PORT", DEFAULT_API_PORT, int),
            cors_origins=_env("CORS_ORIGINS") or "*",
        )

        logger.info(
            f"[LEDGER-CONFIG] Loading configuration from environment | "
            f"LEDGER_URL={config.ledger_url or 'unset'} | "
            f"AUTH_URL={config.auth_url or 'unset'} | "
            f"CLIENT_SECRET=[REDACTED] | "
            f"VALIDATOR_PARTY={config.validator_party or 'unset'}"
        )

        if validate:
            config.validate()

        return config

    def to_public_dict(self) -> Dict[str, Any]:
        """
        Configuration view safe to return over HTTP (no credentials).
        """
        return {
            "ledgerUrl": self.ledger_url,
            "operator": self.validator_party,
            "defaultIssuer": self.dso_party,
            "stakingPoolTemplate": self.staking_pool_template,
            "stakeTemplate": self.stake_template,
            "holdingTemplate": self.holding_template,
            "tokenDecimals": self.token_decimals,
            "tokenSymbol": self.token_symbol,
        }


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def _env_number(name: str, default: Any, cast: Any) -> Any:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning(
            f"[LEDGER-CONFIG] Invalid {name} value: {raw}, using default: {default}"
        )
        return default


# =============================================================================
# Module-Level Configuration Instance
# =============================================================================

# Global configuration instance (lazy-loaded)
_config_instance: Optional[LedgerConfig] = None


def get_ledger_config(validate: bool = True) -> LedgerConfig:
    """
    Get the global gateway configuration instance.

    Loads from environment variables on first access.

    Raises:
        LedgerConfigurationError: If required configuration is missing (CFG-001)
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = LedgerConfig.from_environment(validate=validate)

    return _config_instance


def reset_ledger_config() -> None:
    """
    Reset the global configuration instance.

    Primarily for tests that change the environment between cases.
    """
    global _config_instance
    _config_instance = None
    logger.debug("[LEDGER-CONFIG] Configuration instance reset")


__all__ = [
    "LedgerConfig",
    "LedgerConfigurationError",
    "LedgerConfigErrorCode",
    "DEFAULT_TOKEN_SAFETY_MARGIN_SECONDS",
    "DEFAULT_LEDGER_TIMEOUT_SECONDS",
    "DEFAULT_TOKEN_DECIMALS",
    "DEFAULT_TOKEN_SYMBOL",
    "DEFAULT_API_PORT",
    "get_ledger_config",
    "reset_ledger_config",
]
