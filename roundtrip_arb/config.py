"""
Configuration loading for the round-trip arbitrage bot.

Settings come from the process environment, optionally seeded from a `.env`
file in the repository root. Everything is parsed and validated once, before
the trading loop starts: any problem raises ConfigurationError.
"""
import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Mapping, Optional, TypeVar

import base58
import dotenv
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .errors import ConfigurationError
from .utils import sol_to_lamports

logger = logging.getLogger(__name__)

T = TypeVar('T')

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

DEFAULT_QUOTE_API_URL = "https://quote-api.jup.ag/v6"
DEFAULT_SWAP_API_URL = "https://quote-api.jup.ag/v6/swap"

_NONE_VALUES = ('', 'none', 'null', 'off')


@dataclass
class BotConfig:
    """Validated bot settings.

    Amounts are stored in smallest units (lamports) so every downstream
    calculation stays in integers.
    """
    rpc_url: str
    jito_api_url: str
    wallet: Keypair = field(repr=False)
    tip_accounts: List[str]
    quote_api_url: str = DEFAULT_QUOTE_API_URL
    swap_api_url: str = DEFAULT_SWAP_API_URL
    slippage_bps: int = 50
    tip_lamports: int = 100_000
    swap_amount_lamports: int = 10_000_000
    prioritization_fee_lamports: int = 0
    compute_unit_limit: int = 200_000
    signature_fee_lamports: int = 5000
    input_mint: str = SOL_MINT
    output_mint: str = USDC_MINT
    only_direct_routes: bool = False
    loop_delay_seconds: float = 5.0
    backoff_factor: float = 1.0
    max_backoff_seconds: float = 60.0
    blockhash_max_age_seconds: Optional[float] = 30.0
    http_timeout_seconds: Optional[float] = 10.0


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_optional_float(value: str) -> Optional[float]:
    if value.strip().lower() in _NONE_VALUES:
        return None
    return float(value)


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def _get(
    env: Mapping[str, str],
    name: str,
    parser: Callable[[str], T],
    default: Optional[T] = None,
    required: bool = False
) -> T:
    """Read and parse one setting, raising ConfigurationError on problems."""
    raw = env.get(name)
    if raw is None or (required and not raw.strip()):
        if required:
            raise ConfigurationError(f"Environment variable {name} is required but not set")
        return default
    try:
        return parser(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {name}: {e}") from e


def load_wallet(private_key_str: str) -> Keypair:
    """Load wallet from a base58-encoded secret key."""
    try:
        key_bytes = base58.b58decode(private_key_str.strip())
        return Keypair.from_bytes(key_bytes)
    except Exception as e:
        # Never include the key material in the message
        raise ConfigurationError(f"WALLET_PRIVATE_KEY is not a valid base58 keypair ({type(e).__name__})") from e


def load_dotenv_file(env_path: Optional[Path] = None) -> bool:
    """
    Load .env from the repository root if present (existing env wins).

    Returns False when there is no file. Nothing is logged here: this runs
    before logging is configured.
    """
    env_path = env_path or Path(__file__).parent.parent / '.env'
    if not env_path.exists():
        return False
    dotenv.load_dotenv(env_path)
    return True


def load_config(env: Optional[Mapping[str, str]] = None) -> BotConfig:
    """
    Build a BotConfig from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Validated BotConfig

    Raises:
        ConfigurationError: If a required variable is missing or a value is invalid
    """
    if env is None:
        env = os.environ

    rpc_url = _get(env, 'RPC_URL', str, required=True)
    jito_api_url = _get(env, 'JITO_API_URL', str, required=True)
    wallet = load_wallet(_get(env, 'WALLET_PRIVATE_KEY', str, required=True))
    tip_accounts = _get(env, 'TIP_ACCOUNTS', _parse_list, required=True)
    if not tip_accounts:
        raise ConfigurationError("TIP_ACCOUNTS must list at least one account")
    for account in tip_accounts:
        try:
            Pubkey.from_string(account)
        except Exception as e:
            raise ConfigurationError(f"TIP_ACCOUNTS contains an invalid address: {account}") from e

    slippage_bps = _get(env, 'SLIPPAGE_BPS', int, default=50)
    if not 0 <= slippage_bps <= 10_000:
        raise ConfigurationError(f"SLIPPAGE_BPS must be within [0, 10000], got {slippage_bps}")

    tip_sol = _get(env, 'JITO_TIP_AMOUNT_SOL', float, default=0.0001)
    swap_sol = _get(env, 'SWAP_AMOUNT_SOL', float, default=0.01)
    if not math.isfinite(tip_sol) or tip_sol < 0:
        raise ConfigurationError(f"JITO_TIP_AMOUNT_SOL must be a finite, non-negative amount, got {tip_sol}")
    if not math.isfinite(swap_sol) or swap_sol <= 0:
        raise ConfigurationError(f"SWAP_AMOUNT_SOL must be a finite, positive amount, got {swap_sol}")

    loop_delay = _get(env, 'LOOP_DELAY_SECONDS', float, default=5.0)
    backoff_factor = _get(env, 'BACKOFF_FACTOR', float, default=1.0)
    if loop_delay < 0 or backoff_factor < 1.0:
        raise ConfigurationError("LOOP_DELAY_SECONDS must be >= 0 and BACKOFF_FACTOR >= 1.0")

    config = BotConfig(
        rpc_url=rpc_url,
        jito_api_url=jito_api_url,
        wallet=wallet,
        tip_accounts=tip_accounts,
        quote_api_url=_get(env, 'QUOTE_API_URL', str, default=DEFAULT_QUOTE_API_URL).rstrip('/'),
        swap_api_url=_get(env, 'SWAP_API_URL', str, default=DEFAULT_SWAP_API_URL),
        slippage_bps=slippage_bps,
        tip_lamports=sol_to_lamports(tip_sol),
        swap_amount_lamports=sol_to_lamports(swap_sol),
        prioritization_fee_lamports=_get(env, 'PRIORITIZATION_FEE_LAMPORTS', int, default=0),
        compute_unit_limit=_get(env, 'COMPUTE_UNIT_LIMIT', int, default=200_000),
        signature_fee_lamports=_get(env, 'JITO_SIGNATURE_FEE', int, default=5000),
        input_mint=_get(env, 'SOL_MINT_ADDRESS', str, default=SOL_MINT),
        output_mint=_get(env, 'USDC_MINT_ADDRESS', str, default=USDC_MINT),
        only_direct_routes=_get(env, 'ONLY_DIRECT_ROUTES', _parse_bool, default=False),
        loop_delay_seconds=loop_delay,
        backoff_factor=backoff_factor,
        max_backoff_seconds=_get(env, 'MAX_BACKOFF_SECONDS', float, default=60.0),
        blockhash_max_age_seconds=_get(env, 'BLOCKHASH_MAX_AGE_SECONDS', _parse_optional_float, default=30.0),
        http_timeout_seconds=_get(env, 'HTTP_TIMEOUT_SECONDS', _parse_optional_float, default=10.0)
    )

    logger.info(
        f"Configuration loaded: wallet={config.wallet.pubkey()}, "
        f"slippage={config.slippage_bps} bps, swap={config.swap_amount_lamports} lamports, "
        f"tip={config.tip_lamports} lamports, tip_accounts={len(config.tip_accounts)}"
    )
    return config
