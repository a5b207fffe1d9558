from typing import Dict, List, Optional

from .config import CHAIN_ID
from .models import TokenInfo
from ..exceptions import UnsupportedTokenError

CELO_NATIVE = TokenInfo(
    chain_id=CHAIN_ID,
    symbol="CELO",
    name="Celo Native Asset",
    address="0x471EcE3750Da237f93B8E339c536989b8978a438",
    decimals=18,
)

CUSD = TokenInfo(
    chain_id=CHAIN_ID,
    symbol="cUSD",
    name="Celo Dollar",
    address="0x765DE816845861e75A25fCA122bb6898B8B1282a",
    decimals=18,
)

CEUR = TokenInfo(
    chain_id=CHAIN_ID,
    symbol="cEUR",
    name="Celo Euro",
    address="0xD8763CBa276a3738E6DE85b4b3bF5FDed6D6cA73",
    decimals=18,
)


class TokenRegistry:
    """Fixed table of tradable tokens, keyed by upper-cased symbol"""

    def __init__(self, tokens: List[TokenInfo]):
        self.tokens: Dict[str, TokenInfo] = {t.symbol.upper(): t for t in tokens}

    def get(self, symbol: Optional[str]) -> Optional[TokenInfo]:
        if not symbol:
            return None
        return self.tokens.get(symbol.strip().upper())

    def resolve(self, symbol: Optional[str]) -> TokenInfo:
        token = self.get(symbol)
        if token is None:
            raise UnsupportedTokenError(str(symbol))
        return token

    def symbols(self) -> List[str]:
        return [t.symbol for t in self.tokens.values()]


registry = TokenRegistry([CELO_NATIVE, CUSD, CEUR])
SUPPORTED_TOKENS = registry.tokens
