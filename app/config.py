from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import AliasChoices, Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


BASE_DIR = Path(__file__).resolve().parents[1]

# Environment suffix → chain key, used by the per-chain override variables
# (NEXT_PUBLIC_RPC_BASE_SEPOLIA, NEXT_PUBLIC_USDC_ADDRESS_POLYGON_AMOY, ...).
# The NEXT_PUBLIC_ prefix is optional.
CHAIN_ENV_SUFFIXES: Dict[str, str] = {
    "ETH_SEPOLIA": "ethereum",
    "BASE_SEPOLIA": "base",
    "POLYGON_AMOY": "polygon-amoy",
    "BNB_TESTNET": "bnb",
    "SOLANA_DEVNET": "solana-devnet",
}

_LEGACY_PREFIX = "next_public_"

_OVERRIDE_PREFIXES = {
    "rpc_": "rpc_url",
    "ws_rpc_": "ws_url",
    "explorer_": "explorer_url",
}

_TOKEN_OVERRIDE_PREFIXES = {
    "usdc_address_": "USDC",
    "usdt_address_": "USDT",
}


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _legacy_value(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(f"{_LEGACY_PREFIX}{name}") or env.get(name)
    return value.strip() if value and value.strip() else None


def fold_chain_env(env: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    """Build ``chain_overrides`` from per-chain variables (lowercased keys)."""

    overrides: Dict[str, Dict[str, Any]] = {}
    for suffix, chain_key in CHAIN_ENV_SUFFIXES.items():
        suffix = suffix.lower()
        entry: Dict[str, Any] = {}
        for prefix, field_name in _OVERRIDE_PREFIXES.items():
            value = _legacy_value(env, f"{prefix}{suffix}")
            if value:
                entry[field_name] = value
        tokens: Dict[str, str] = {}
        for prefix, symbol in _TOKEN_OVERRIDE_PREFIXES.items():
            value = _legacy_value(env, f"{prefix}{suffix}")
            if value:
                tokens[symbol] = value
        if tokens:
            entry["tokens"] = tokens
        if entry:
            overrides[chain_key] = entry
    return overrides


class ChainEnvSettingsSource(PydanticBaseSettingsSource):
    """Per-chain environment variables folded into ``chain_overrides``.

    Reads the variables already loaded by the wrapped sources, so values in
    ``.env`` count the same as process environment variables; later sources
    win.
    """

    def __init__(self, settings_cls: Type[BaseSettings], *sources: PydanticBaseSettingsSource):
        super().__init__(settings_cls)
        self._sources = sources

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> Dict[str, Any]:
        env: Dict[str, str] = {}
        for source in self._sources:
            for key, value in (getattr(source, "env_vars", None) or {}).items():
                if value is not None:
                    env[key.lower()] = value
        overrides = fold_chain_env(env)
        return {"chain_overrides": overrides} if overrides else {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Nested dicts from all sources are merged; explicit CHAIN_OVERRIDES
        # and init kwargs win per field over the per-chain variables.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            ChainEnvSettingsSource(settings_cls, dotenv_settings, env_settings),
            file_secret_settings,
        )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # External API Keys
    alchemy_api_key: str = Field(default="", description="Alchemy API key used to build per-chain RPC endpoints")
    coingecko_api_key: str = Field(default="", description="Coingecko API key")
    enable_coingecko: bool = Field(default=True, description="Enable Coingecko price lookups")

    # Timeouts
    request_timeout_seconds: int = Field(default=15, description="Timeout for price/identity API calls")
    rpc_timeout_seconds: int = Field(default=20, description="Timeout for JSON-RPC calls")

    # Identity provider (Privy)
    privy_app_id: str = Field(
        default="",
        description="Privy application id",
        validation_alias=AliasChoices("privy_app_id", "privy_id"),
    )
    privy_app_secret: str = Field(
        default="",
        description="Privy application secret",
        validation_alias=AliasChoices("privy_app_secret", "privy_secret"),
    )
    privy_base_url: str = Field(
        default="https://auth.privy.io/api/v1",
        description="Base URL for the Privy server API",
    )

    # Deposit address resolution
    supported_chains: str = Field(
        default="eip155:11155111,eip155:84532,eip155:80002,eip155:97,solana:101",
        description="Comma separated CAIP-2 chain ids that receive deposit addresses",
    )
    supported_assets: str = Field(
        default="usdc,usdt",
        description="Comma separated token symbols that receive deposit addresses",
    )
    deposit_address_strategy: str = Field(
        default="first_signin_unique",
        description="Label reported to clients describing how deposit addresses are assigned",
    )

    # Chain registry
    default_chain: str = Field(default="base", description="Chain used by resolve-or-default lookups")
    lenient_chain_lookups: bool = Field(
        default=False,
        description="Resolve unknown chain ids to the default chain instead of failing",
    )
    chain_overrides: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-chain overrides: {chain: {rpc_url, ws_url, explorer_url, tokens}}",
    )

    # Price fallbacks (USD), used whenever the price feed is unavailable
    eth_price_fallback_usd: Decimal = Field(default=Decimal("3000"))
    pol_price_fallback_usd: Decimal = Field(default=Decimal("0.5"))
    bnb_price_fallback_usd: Decimal = Field(default=Decimal("600"))
    sol_price_fallback_usd: Decimal = Field(default=Decimal("150"))

    @property
    def has_alchemy_key(self) -> bool:
        return bool(self.alchemy_api_key)

    @property
    def has_coingecko_key(self) -> bool:
        return bool(self.coingecko_api_key)

    @property
    def has_privy_credentials(self) -> bool:
        return bool(self.privy_app_id and self.privy_app_secret)

    @property
    def supported_chains_list(self) -> List[str]:
        return _split_csv(self.supported_chains)

    @property
    def supported_assets_list(self) -> List[str]:
        return [asset.lower() for asset in _split_csv(self.supported_assets)]

    def price_fallback(self, family: str) -> Decimal:
        """Return the configured fallback USD price for a native-coin family."""
        value = getattr(self, f"{family.lower()}_price_fallback_usd", None)
        if value is None:
            raise KeyError(f"No price fallback configured for {family!r}")
        return Decimal(value)


# Global settings instance
settings = Settings()
