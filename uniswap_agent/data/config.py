import os
import re
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

# Celo mainnet
CHAIN_ID = 42220
CHAIN_NAME = "celo"
DEFAULT_PUBLIC_RPC_URL = "https://forno.celo.org"
EXPLORER_TX_URL = "https://celoscan.io/tx/{}"

# Uniswap V3 deployment on Celo
# https://docs.uniswap.org/contracts/v3/reference/deployments/celo-deployments
POOL_FACTORY_CONTRACT_ADDRESS = "0xAfE208a311B21f13EF87E33A90049fC17A7acDEc"
QUOTER_CONTRACT_ADDRESS = "0x82825d0554fA07f7FC52Ab63c961F330fdEFa8E8"  # QuoterV2
SWAP_ROUTER_ADDRESS = "0x5615CDAb10dc425a742d643d949a7F474C01abc4"  # SwapRouter02
POOL_INIT_CODE_HASH = "0xe34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_SLIPPAGE_TOLERANCE = 1.0  # percent
DEFAULT_DEADLINE_MINUTES = 20
DEFAULT_MAX_STEPS = 10

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def _env_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1", "yes")


class Settings(BaseModel):
    """
    Process configuration, read once at startup.

    Values come from the environment (a .env file is loaded first, real
    environment variables win). Everything is validated up front so a
    missing key or a bad URL fails before the prompt loop starts.
    """

    wallet_private_key: str = Field(repr=False)
    rpc_provider_url: str
    public_rpc_url: str = DEFAULT_PUBLIC_RPC_URL
    chain_id: int = CHAIN_ID

    openai_api_key: Optional[str] = Field(default=None, repr=False)
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, ge=1)

    receipt_timeout: float = Field(default=300.0, ge=0)
    gas_price_multiplier: float = Field(default=1.1, ge=1.0)

    log_level: str = "INFO"
    log_dir: str = "logs"

    @field_validator("wallet_private_key")
    @classmethod
    def _check_private_key(cls, value: str) -> str:
        value = value.strip()
        if not _PRIVATE_KEY_RE.match(value):
            raise ValueError("must be a 32-byte hex string")
        return value if value.startswith("0x") else "0x" + value

    @field_validator("rpc_provider_url", "public_rpc_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables."""
        if environ is None:
            if dotenv:
                load_dotenv(override=False)
            environ = os.environ

        missing = [name for name in ("WALLET_PRIVATE_KEY", "RPC_PROVIDER_URL") if not environ.get(name)]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        values: Dict[str, Any] = {
            "wallet_private_key": environ["WALLET_PRIVATE_KEY"],
            "rpc_provider_url": environ["RPC_PROVIDER_URL"],
            "public_rpc_url": environ.get("CELO_PUBLIC_RPC_URL") or DEFAULT_PUBLIC_RPC_URL,
            "openai_api_key": (environ.get("OPENAI_API_KEY") or "").strip() or None,
            "openai_model": environ.get("OPENAI_MODEL") or "gpt-4o-mini",
            "openai_base_url": environ.get("OPENAI_BASE_URL") or None,
            "log_level": environ.get("LOG_LEVEL") or "INFO",
            "log_dir": environ.get("LOG_DIR") or "logs",
        }
        if _env_bool(environ.get("DEBUG")):
            values["log_level"] = "DEBUG"

        numeric = {
            "max_steps": ("AGENT_MAX_STEPS", int),
            "receipt_timeout": ("RECEIPT_TIMEOUT_SECONDS", float),
            "gas_price_multiplier": ("GAS_PRICE_MULTIPLIER", float),
        }
        for field_name, (env_name, cast) in numeric.items():
            raw = environ.get(env_name)
            if raw in (None, ""):
                continue
            try:
                values[field_name] = cast(raw)
            except ValueError:
                raise ConfigurationError(f"{env_name} must be a number, got {raw!r}")

        try:
            settings = cls(**values)
        except ValidationError as e:
            # input values are left out, one of them is the private key
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from None

        logger.debug(f"Loaded settings: {settings!r}")
        return settings

    def require_llm(self) -> None:
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required to run the agent")
