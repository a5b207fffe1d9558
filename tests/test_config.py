"""
Settings loading and validation
"""

import pytest

from uniswap_agent.data.config import DEFAULT_PUBLIC_RPC_URL, Settings
from uniswap_agent.data.registry import registry
from uniswap_agent.exceptions import ConfigurationError, UnsupportedTokenError

PRIVATE_KEY = "4f3edf983ac636a65a842ce7c78d9aa706d3b113bce9c46f30d7d21715b23b1d"


def env(**overrides):
    values = {"WALLET_PRIVATE_KEY": PRIVATE_KEY, "RPC_PROVIDER_URL": "https://rpc.example.org"}
    values.update(overrides)
    return values


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env(env())
        assert settings.public_rpc_url == DEFAULT_PUBLIC_RPC_URL
        assert settings.chain_id == 42220
        assert settings.max_steps == 10
        assert settings.receipt_timeout == 300
        assert settings.gas_price_multiplier == 1.1
        assert settings.openai_model == "gpt-4o-mini"
        assert settings.log_level == "INFO"

    def test_private_key_gets_prefix(self):
        assert Settings.from_env(env()).wallet_private_key == "0x" + PRIVATE_KEY

    def test_private_key_not_in_repr(self):
        assert PRIVATE_KEY not in repr(Settings.from_env(env()))

    @pytest.mark.parametrize("missing", ["WALLET_PRIVATE_KEY", "RPC_PROVIDER_URL"])
    def test_missing_required(self, missing):
        values = env()
        del values[missing]
        with pytest.raises(ConfigurationError, match=missing):
            Settings.from_env(values)

    def test_bad_private_key_is_not_echoed(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env(env(WALLET_PRIVATE_KEY="0xnotakey-secret"))
        assert "notakey-secret" not in str(exc_info.value)
        assert "wallet_private_key" in str(exc_info.value)

    def test_bad_rpc_url(self):
        with pytest.raises(ConfigurationError, match="rpc_provider_url"):
            Settings.from_env(env(RPC_PROVIDER_URL="forno.celo.org"))

    def test_debug_forces_debug_level(self):
        assert Settings.from_env(env(DEBUG="true", LOG_LEVEL="warning")).log_level == "DEBUG"
        assert Settings.from_env(env(LOG_LEVEL="warning")).log_level == "WARNING"

    def test_numeric_overrides(self):
        settings = Settings.from_env(env(AGENT_MAX_STEPS="4", RECEIPT_TIMEOUT_SECONDS="0", GAS_PRICE_MULTIPLIER="1.5"))
        assert settings.max_steps == 4
        assert settings.receipt_timeout == 0
        assert settings.gas_price_multiplier == 1.5

    def test_non_numeric_rejected(self):
        with pytest.raises(ConfigurationError, match="AGENT_MAX_STEPS"):
            Settings.from_env(env(AGENT_MAX_STEPS="many"))

    def test_zero_steps_rejected(self):
        with pytest.raises(ConfigurationError):
            Settings.from_env(env(AGENT_MAX_STEPS="0"))

    def test_require_llm(self):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            Settings.from_env(env()).require_llm()
        Settings.from_env(env(OPENAI_API_KEY="sk-test")).require_llm()


class TestTokenRegistry:

    def test_supported_symbols(self):
        assert registry.symbols() == ["CELO", "cUSD", "cEUR"]

    def test_lookup_is_case_insensitive(self):
        assert registry.resolve("cusd").symbol == "cUSD"
        assert registry.resolve(" CEUR ").symbol == "cEUR"

    def test_unknown_symbol(self):
        assert registry.get("WETH") is None
        with pytest.raises(UnsupportedTokenError, match="WETH"):
            registry.resolve("WETH")

    def test_all_tokens_on_celo(self):
        assert {t.chain_id for t in registry.tokens.values()} == {42220}
        assert {t.decimals for t in registry.tokens.values()} == {18}
