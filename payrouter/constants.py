"""Static chain, token and provider tables.

These are the defaults loaded into RouterConfig. Addresses are the mainnet
contract (or Stacks contract principal) of each token; native assets carry
no address.
"""

from dataclasses import dataclass

from payrouter.models.types import Chain, TxType


@dataclass(frozen=True)
class TokenInfo:
    """Configured token on one chain."""

    symbol: str
    address: str | None
    decimals: int


@dataclass(frozen=True)
class ChainInfo:
    """Per-chain execution parameters.

    Attributes:
        native_token: Symbol used to pay fees on this chain
        evm: True if fee data can be read from an EVM JSON-RPC endpoint
        gas_multiplier: Scale on base gas units (rollups execute cheaper)
        fallback_gas_price_wei: Static gas price used when RPC data is unavailable
        block_time_seconds: Typical time for one operation to be included
    """

    native_token: str
    evm: bool
    gas_multiplier: float
    fallback_gas_price_wei: int
    block_time_seconds: float


@dataclass(frozen=True)
class BridgeProvider:
    """A bridge and the chains it connects."""

    name: str
    chains: tuple[Chain, ...]


SETTLEMENT_CHAIN = Chain.STACKS
SETTLEMENT_TOKEN = "USDh"

CHAINS: dict[Chain, ChainInfo] = {
    Chain.ETHEREUM: ChainInfo("ETH", True, 1.0, 30 * 10**9, 15),
    Chain.ARBITRUM: ChainInfo("ETH", True, 0.8, 10**8, 2),
    Chain.BASE: ChainInfo("ETH", True, 0.8, 10**7, 2),
    Chain.OPTIMISM: ChainInfo("ETH", True, 0.8, 10**7, 2),
    Chain.POLYGON: ChainInfo("MATIC", True, 1.0, 50 * 10**9, 2),
    # No programmable fee market: fees are flat and negligible for routing
    Chain.STACKS: ChainInfo("STX", False, 1.0, 0, 600),
    Chain.SOLANA: ChainInfo("SOL", False, 1.0, 0, 0.5),
    Chain.BITCOIN: ChainInfo("BTC", False, 1.0, 0, 600),
}

TOKENS: dict[Chain, dict[str, TokenInfo]] = {
    Chain.ETHEREUM: {
        "USDC": TokenInfo("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
        "USDT": TokenInfo("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
        "WETH": TokenInfo("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
        "DAI": TokenInfo("DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F", 18),
        "ETH": TokenInfo("ETH", None, 18),
    },
    Chain.ARBITRUM: {
        "USDC": TokenInfo("USDC", "0xFF970A61A04b1cA14834A43f5dE4533eBDDB5CC8", 6),
        "USDT": TokenInfo("USDT", "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", 6),
        "WETH": TokenInfo("WETH", "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", 18),
        "ETH": TokenInfo("ETH", None, 18),
    },
    Chain.BASE: {
        "USDC": TokenInfo("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
        "WETH": TokenInfo("WETH", "0x4200000000000000000000000000000000000006", 18),
        "ETH": TokenInfo("ETH", None, 18),
    },
    Chain.POLYGON: {
        "USDC": TokenInfo("USDC", "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", 6),
        "USDT": TokenInfo("USDT", "0xc2132D05D31c914a87C6611C10748AEb04B58e8F", 6),
        "WETH": TokenInfo("WETH", "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619", 18),
        "MATIC": TokenInfo("MATIC", None, 18),
    },
    Chain.OPTIMISM: {
        "USDC": TokenInfo("USDC", "0x7F5c764cBc14f9669B88837ca1490cCa17c31607", 6),
        "USDT": TokenInfo("USDT", "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58", 6),
        "WETH": TokenInfo("WETH", "0x4200000000000000000000000000000000000006", 18),
        "ETH": TokenInfo("ETH", None, 18),
    },
    Chain.STACKS: {
        "STX": TokenInfo("STX", None, 6),
        "USDC": TokenInfo("USDC", "SP3Y2ZSH8P7D50B0VBTSX11S7XSG24M1VB9YFQA4K.token-aeusdc", 6),
        "USDh": TokenInfo("USDh", "SP3K8BC0PPEVCV7NZ6QSRWPQ2JE9E5B6N3PA0KBR9.token-usdh", 6),
    },
}

# Only stablecoins and wrapped/native ether move across bridges
BRIDGE_TOKENS: tuple[str, ...] = ("USDC", "USDT", "ETH", "WETH")

BRIDGE_PROVIDERS: tuple[BridgeProvider, ...] = (
    BridgeProvider(
        "stargate",
        (Chain.ETHEREUM, Chain.ARBITRUM, Chain.OPTIMISM, Chain.POLYGON, Chain.BASE),
    ),
    BridgeProvider(
        "layerzero",
        (Chain.ETHEREUM, Chain.ARBITRUM, Chain.OPTIMISM, Chain.POLYGON, Chain.BASE),
    ),
    BridgeProvider("wormhole", (Chain.ETHEREUM, Chain.ARBITRUM, Chain.SOLANA, Chain.POLYGON)),
    BridgeProvider(
        "allbridge",
        (Chain.ETHEREUM, Chain.ARBITRUM, Chain.BASE, Chain.POLYGON, Chain.OPTIMISM, Chain.STACKS),
    ),
)

DEX_PROVIDERS: dict[Chain, tuple[str, ...]] = {
    Chain.ETHEREUM: ("uniswap", "1inch", "sushiswap"),
    Chain.ARBITRUM: ("uniswap", "1inch", "sushiswap", "camelot"),
    Chain.BASE: ("uniswap", "aerodrome", "1inch"),
    Chain.POLYGON: ("uniswap", "quickswap", "1inch"),
    Chain.OPTIMISM: ("uniswap", "velodrome", "1inch"),
    Chain.STACKS: ("velar", "alex"),
}

# Gas units per operation before the chain multiplier
BASE_GAS_UNITS: dict[TxType, int] = {
    TxType.TRANSFER: 21_000,
    TxType.SWAP: 150_000,
    TxType.BRIDGE: 250_000,
}

# Extra confirmation time for bridge finality
BRIDGE_FINALITY_SECONDS = 120

# Typical pool depth when a provider reports nothing better
DEFAULT_POOL_TVL_USD: dict[Chain, float] = {
    Chain.ETHEREUM: 10_000_000,
    Chain.ARBITRUM: 5_000_000,
    Chain.BASE: 2_000_000,
    Chain.POLYGON: 3_000_000,
    Chain.OPTIMISM: 2_000_000,
    Chain.STACKS: 500_000,
}
FALLBACK_POOL_TVL_USD = 1_000_000

DEX_FEES: dict[str, float] = {
    "uniswap": 0.003,
    "sushiswap": 0.003,
    "1inch": 0.001,
    "quickswap": 0.003,
    "aerodrome": 0.002,
    "velodrome": 0.002,
    "camelot": 0.003,
    "velar": 0.003,
    "alex": 0.003,
}
DEFAULT_DEX_FEE = 0.003

BRIDGE_FEES: dict[str, float] = {
    "stargate": 0.001,
    "layerzero": 0.001,
    "wormhole": 0.0005,
    "allbridge": 0.001,
}
DEFAULT_BRIDGE_FEE = 0.001
DEFAULT_BRIDGE_LIQUIDITY_USD = 5_000_000
DEFAULT_BRIDGE_ETA_SECONDS = 300

# Bridges quote a near-fixed output; slippage is small and not depth-driven
BRIDGE_SLIPPAGE = 0.001

# Last-resort USD prices; always confidence=low
FALLBACK_PRICES_USD: dict[str, float] = {
    "USDC": 1.0,
    "USDT": 1.0,
    "DAI": 1.0,
    "USDH": 1.0,
    "ETH": 2000.0,
    "WETH": 2000.0,
    "BTC": 40000.0,
    "STX": 1.5,
    "SOL": 100.0,
    "MATIC": 0.8,
}

COINGECKO_IDS: dict[str, str] = {
    "ETH": "ethereum",
    "WETH": "ethereum",
    "BTC": "bitcoin",
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "STX": "blockstack",
    "SOL": "solana",
    "MATIC": "matic-network",
    # Pegged 1:1 to USDC
    "USDH": "usd-coin",
    "OP": "optimism",
    "ARB": "arbitrum",
}
