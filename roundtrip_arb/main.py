"""
Main entry point for the round-trip arbitrage bot.
"""
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .config import BotConfig, load_config, load_dotenv_file
from .errors import ConfigurationError
from .jito_client import JitoClient
from .jupiter_client import JupiterClient
from .profit import ProfitEvaluator
from .signer import TipTransactionBuilder, TransactionSigner
from .solana_client import BlockhashCache, SolanaClient
from .trader import STATUS_FATAL, IterationResult, RoundTripTrader
from .utils import get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """
    Delay between iterations.

    With backoff_factor=1.0 (default) the delay is fixed. Above 1.0 the delay
    grows with consecutive failed iterations, capped at max_delay_seconds, and
    drops back to the base delay after the next successful pass.
    """
    delay_seconds: float = 5.0
    backoff_factor: float = 1.0
    max_delay_seconds: float = 60.0

    def delay(self, consecutive_failures: int) -> float:
        if consecutive_failures <= 0 or self.backoff_factor <= 1.0:
            return self.delay_seconds
        return min(self.delay_seconds * self.backoff_factor ** consecutive_failures, self.max_delay_seconds)


async def run_forever(
    trader: RoundTripTrader,
    retry_policy: Optional[RetryPolicy] = None,
    on_iteration: Optional[Callable[[IterationResult], None]] = None,
    max_iterations: Optional[int] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> int:
    """
    Drive trader iterations one after another.

    Iterations never overlap. A fatal result stops the loop by re-raising its
    error; any other result is followed by the policy delay.

    Args:
        trader: Pipeline to run
        retry_policy: Pacing/backoff policy (fixed 5s by default)
        on_iteration: Hook called with every IterationResult
        max_iterations: Stop after this many passes (None = run until killed)
        sleep: Pacing coroutine (injectable for tests)

    Returns:
        Number of iterations run (only reached when max_iterations is set)
    """
    retry_policy = retry_policy or RetryPolicy()
    consecutive_failures = 0
    iteration = 0

    while max_iterations is None or iteration < max_iterations:
        iteration += 1
        result = await trader.run_iteration()

        if on_iteration is not None:
            try:
                on_iteration(result)
            except Exception as e:
                logger.warning(f"Iteration hook failed: {e}")

        if result.status == STATUS_FATAL:
            logger.error(f"{colors['RED']}Fatal error, stopping loop: {result.error}{colors['RESET']}")
            if result.error is not None:
                raise result.error
            raise ConfigurationError("Fatal iteration result")

        consecutive_failures = consecutive_failures + 1 if result.failed else 0
        delay = retry_policy.delay(consecutive_failures)
        logger.debug(
            f"{colors['DIM']}Iteration {iteration} {result.status}, "
            f"next in {delay:.1f}s (consecutive failures: {consecutive_failures}){colors['RESET']}"
        )
        await sleep(delay)

    return iteration


def setup_logging(log_file: Optional[str] = 'arbitrage_bot.log') -> None:
    """Log to stdout and, unless log_file is empty or "none", to a file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file and log_file.strip().lower() != 'none':
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_trader(config: BotConfig, solana: SolanaClient) -> RoundTripTrader:
    """
    Wire every component from a validated config.

    The wallet-backed components are built first so a bad tip pool fails
    before any HTTP client is opened.
    """
    signer = TransactionSigner(config.wallet)
    tip_builder = TipTransactionBuilder(config.wallet, config.tip_accounts, config.tip_lamports)
    jupiter = JupiterClient(
        config.quote_api_url,
        config.swap_api_url,
        slippage_bps=config.slippage_bps,
        only_direct_routes=config.only_direct_routes,
        prioritization_fee_lamports=config.prioritization_fee_lamports,
        timeout=config.http_timeout_seconds
    )
    return RoundTripTrader(
        jupiter_client=jupiter,
        blockhash_cache=BlockhashCache(solana.get_recent_blockhash, max_age_seconds=config.blockhash_max_age_seconds),
        signer=signer,
        tip_builder=tip_builder,
        evaluator=ProfitEvaluator(config.signature_fee_lamports, config.tip_lamports),
        jito_client=JitoClient(config.jito_api_url, timeout=config.http_timeout_seconds),
        input_mint=config.input_mint,
        output_mint=config.output_mint,
        swap_amount=config.swap_amount_lamports,
        slippage_bps=config.slippage_bps,
        compute_unit_limit=config.compute_unit_limit
    )


async def main():
    """Main function."""
    env_found = load_dotenv_file()
    setup_logging(os.getenv('LOG_FILE', 'arbitrage_bot.log'))
    if not env_found:
        logger.warning(".env file not found, using process environment only")
    config = load_config()
    logger.info("Starting round-trip arbitrage bot")

    solana = SolanaClient(config.rpc_url, timeout=config.http_timeout_seconds)
    trader = None
    try:
        trader = build_trader(config, solana)
        await run_forever(
            trader,
            RetryPolicy(
                delay_seconds=config.loop_delay_seconds,
                backoff_factor=config.backoff_factor,
                max_delay_seconds=config.max_backoff_seconds
            )
        )
    finally:
        if trader is not None:
            await trader.jupiter.close()
            await trader.jito.close()
        await solana.close()
        logger.info("Bot stopped")


if __name__ == '__main__':
    asyncio.run(main())
