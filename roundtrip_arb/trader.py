"""
Round-trip trading pipeline: one pass from quote to submit-or-skip.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, List, Optional

from .errors import ConfigurationError, InvalidPayloadError, VenueError
from .jito_client import Bundle, JitoClient, assemble_bundle
from .jupiter_client import JupiterClient
from .profit import IterationOutcome, ProfitEvaluator, calculate_other_amount_threshold
from .signer import TipTransactionBuilder, TransactionSigner
from .solana_client import BlockhashCache
from .utils import USDC_DECIMALS, format_units, get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)

STATUS_SUBMITTED = 'submitted'
STATUS_SKIPPED = 'skipped'
STATUS_ABORTED = 'aborted'
STATUS_FATAL = 'fatal'


@dataclass
class IterationResult:
    """Structured result of one pipeline pass."""
    status: str
    outcome: Optional[IterationOutcome] = None
    bundle_id: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.status in (STATUS_ABORTED, STATUS_FATAL)


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure cancels the remaining ones and is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class RoundTripTrader:
    """Evaluates and, when profitable, submits the A -> B -> A round trip."""

    def __init__(
        self,
        jupiter_client: JupiterClient,
        blockhash_cache: BlockhashCache,
        signer: TransactionSigner,
        tip_builder: TipTransactionBuilder,
        evaluator: ProfitEvaluator,
        jito_client: JitoClient,
        input_mint: str,
        output_mint: str,
        swap_amount: int,
        slippage_bps: int = 50,
        compute_unit_limit: int = 200_000,
        output_decimals: int = USDC_DECIMALS
    ):
        self.jupiter = jupiter_client
        self.blockhash_cache = blockhash_cache
        self.signer = signer
        self.tip_builder = tip_builder
        self.evaluator = evaluator
        self.jito = jito_client
        self.input_mint = input_mint
        self.output_mint = output_mint
        self.swap_amount = swap_amount
        self.slippage_bps = slippage_bps
        self.compute_unit_limit = compute_unit_limit
        self.output_decimals = output_decimals

    async def run_iteration(self) -> IterationResult:
        """
        Run one pass and report what happened.

        Never raises: errors are logged here and turned into an aborted
        (or, for configuration problems, fatal) result.
        """
        try:
            return await self._run_pipeline()
        except ConfigurationError as e:
            logger.error(f"{colors['RED']}Configuration error during iteration: {e}{colors['RESET']}")
            return IterationResult(status=STATUS_FATAL, error=e)
        except (VenueError, InvalidPayloadError) as e:
            logger.error(f"{colors['RED']}Iteration aborted: {e}{colors['RESET']}")
            return IterationResult(status=STATUS_ABORTED, error=e)
        except Exception as e:
            logger.error(f"{colors['RED']}Error in iteration: {e}{colors['RESET']}", exc_info=True)
            return IterationResult(status=STATUS_ABORTED, error=e)

    async def _run_pipeline(self) -> IterationResult:
        user_pubkey = str(self.signer.pubkey)

        initial_quote, blockhash = await gather_or_cancel(
            self.jupiter.get_quote(self.input_mint, self.output_mint, self.swap_amount),
            self.blockhash_cache.get()
        )
        tip_transaction = self.tip_builder.build(blockhash)

        worst_case_initial_out = calculate_other_amount_threshold(initial_quote.out_amount, self.slippage_bps)
        initial_swap = await self.jupiter.get_swap_transaction(
            initial_quote, user_pubkey, self.compute_unit_limit, worst_case_initial_out
        )

        return_quote = await self.jupiter.get_quote(self.output_mint, self.input_mint, worst_case_initial_out)
        worst_case_return_out = calculate_other_amount_threshold(return_quote.out_amount, self.slippage_bps)
        return_swap = await self.jupiter.get_swap_transaction(
            return_quote, user_pubkey, self.compute_unit_limit, worst_case_return_out
        )

        bundle = assemble_bundle(
            self.signer.sign(initial_swap.swap_transaction),
            self.signer.sign(return_swap.swap_transaction),
            tip_transaction
        )

        outcome = self.evaluator.evaluate(
            initial_amount=self.swap_amount,
            initial_quote=initial_quote,
            worst_case_initial_out=worst_case_initial_out,
            return_quote=return_quote,
            worst_case_return_out=worst_case_return_out,
            signature_count=bundle.signature_count
        )
        self._log_outcome(outcome)

        if not outcome.is_profitable:
            logger.info("No profit detected. Trade will not be sent.")
            return IterationResult(status=STATUS_SKIPPED, outcome=outcome)

        bundle_id = await self._submit(bundle)
        logger.info(
            f"{colors['GREEN']}Trade sent successfully.{colors['RESET']} "
            f"Bundles submitted: {self.jito.bundles_submitted}"
        )
        return IterationResult(status=STATUS_SUBMITTED, outcome=outcome, bundle_id=bundle_id)

    async def _submit(self, bundle: Bundle) -> Optional[str]:
        try:
            return await self.jito.send_bundle(bundle)
        except VenueError as e:
            # The relay rejected the tip anchor; fetch a new one next pass
            if 'blockhash' in str(e).lower():
                self.blockhash_cache.invalidate()
                logger.warning(f"{colors['YELLOW']}Relay reported a stale blockhash, cache invalidated{colors['RESET']}")
            raise

    def _log_outcome(self, outcome: IterationOutcome) -> None:
        decimals = outcome.decimals
        profit_color = colors['YELLOW'] if outcome.is_profitable else colors['RED']
        logger.info(f"Initial SOL Amount: {colors['GREEN']}{format_units(outcome.initial_amount, decimals)}{colors['RESET']} SOL")
        logger.info(
            f"Worst-case USDC from Quote: "
            f"{colors['GREEN']}{format_units(outcome.worst_case_initial_out, self.output_decimals)}{colors['RESET']} USDC"
        )
        logger.info(
            f"Worst-case SOL from Return Quote: "
            f"{colors['GREEN']}{format_units(outcome.worst_case_return_out, decimals)}{colors['RESET']} SOL"
        )
        logger.info(f"Total Fees: {colors['GREEN']}{format_units(outcome.total_fees, decimals)}{colors['RESET']} SOL")
        logger.info(f"Final SOL Amount: {colors['GREEN']}{outcome.final_amount:.{decimals}f}{colors['RESET']} SOL")
        logger.info(f"Profit: {profit_color}{outcome.profit:.{decimals}f}{colors['RESET']} SOL -> {outcome.decision}")
