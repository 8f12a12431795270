"""Static description of a target network and its payment token."""

from __future__ import annotations

from dataclasses import dataclass

from pagosettle.errors import InvalidConfiguration

MAX_TOKEN_DECIMALS = 36

# Well-known stablecoin contracts used by the presets
BSC_USD_CONTRACT = "0x55d398326f99059fF775485246999027B3197955"  # 18 decimals
ETHEREUM_USDT_CONTRACT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"  # 6 decimals


@dataclass(frozen=True)
class ChainParameters:
    """Chain identifier, token contract and explorer for one network.

    Constructed once at startup and shared by reference between sessions.
    """

    chain_id: int
    token_contract_id: str
    token_decimals: int
    explorer_base_url: str
    name: str = ""

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise InvalidConfiguration(f"chain_id must be > 0, got {self.chain_id}")
        if not 0 <= self.token_decimals <= MAX_TOKEN_DECIMALS:
            raise InvalidConfiguration(
                f"token_decimals must be in [0, {MAX_TOKEN_DECIMALS}], "
                f"got {self.token_decimals}"
            )
        if not self.token_contract_id.strip():
            raise InvalidConfiguration("token_contract_id must not be empty")
        if not self.explorer_base_url.strip():
            raise InvalidConfiguration("explorer_base_url must not be empty")

    @classmethod
    def bsc(
        cls,
        token_contract_id: str = BSC_USD_CONTRACT,
        token_decimals: int = 18,
    ) -> ChainParameters:
        """BNB Smart Chain mainnet (chain 56)."""
        return cls(
            chain_id=56,
            token_contract_id=token_contract_id,
            token_decimals=token_decimals,
            explorer_base_url="https://bscscan.com",
            name="BSC",
        )

    @classmethod
    def ethereum(
        cls,
        token_contract_id: str = ETHEREUM_USDT_CONTRACT,
        token_decimals: int = 6,
    ) -> ChainParameters:
        """Ethereum mainnet (chain 1)."""
        return cls(
            chain_id=1,
            token_contract_id=token_contract_id,
            token_decimals=token_decimals,
            explorer_base_url="https://etherscan.io",
            name="Ethereum",
        )

    @property
    def display_name(self) -> str:
        return self.name or f"chain {self.chain_id}"

    def token_url(self, address: str) -> str:
        """Explorer page listing this token's transfers for ``address``."""
        base = self.explorer_base_url.rstrip("/")
        return f"{base}/token/{self.token_contract_id}?a={address}"

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_base_url.rstrip('/')}/tx/{tx_hash}"


PRESETS = {
    "bsc": ChainParameters.bsc,
    "ethereum": ChainParameters.ethereum,
}
