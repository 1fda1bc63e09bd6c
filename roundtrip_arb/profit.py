"""
Worst-case threshold and profit calculations for the round trip.

All amounts are integers in smallest units; conversion to SOL happens only
for reporting. The submit decision is taken on the exact integer result.
"""
import logging
from dataclasses import dataclass

from .jupiter_client import JupiterQuote
from .utils import get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000

DECISION_SUBMIT = 'submit'
DECISION_SKIP = 'skip'


def calculate_other_amount_threshold(expected_out_amount: int, slippage_bps: int) -> int:
    """
    Worst-case acceptable output after slippage, rounded down.

    Args:
        expected_out_amount: Quoted output in smallest units (>= 0)
        slippage_bps: Slippage tolerance in basis points, within [0, 10000]

    Returns:
        floor(expected_out_amount * (1 - slippage_bps / 10000))

    Raises:
        ValueError: If either argument is out of range
    """
    if expected_out_amount < 0:
        raise ValueError(f"expected_out_amount must be >= 0, got {expected_out_amount}")
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValueError(f"slippage_bps must be within [0, {BPS_DENOMINATOR}], got {slippage_bps}")
    return int(expected_out_amount) * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


@dataclass(frozen=True)
class IterationOutcome:
    """Result of evaluating one round trip. Amounts in smallest units unless noted."""
    initial_amount: int
    worst_case_initial_out: int
    worst_case_return_out: int
    transaction_fees: int
    venue_fees: int
    decimals: int = 9

    @property
    def scale(self) -> int:
        return 10 ** self.decimals

    @property
    def total_fees(self) -> int:
        return self.transaction_fees + self.venue_fees

    @property
    def final_amount_units(self) -> int:
        return self.worst_case_return_out - self.total_fees

    @property
    def profit_units(self) -> int:
        return self.final_amount_units - self.initial_amount

    @property
    def final_amount(self) -> float:
        """Final amount in whole tokens (SOL)."""
        return self.final_amount_units / self.scale

    @property
    def profit(self) -> float:
        """Profit in whole tokens (SOL)."""
        return self.profit_units / self.scale

    @property
    def decision(self) -> str:
        return DECISION_SUBMIT if self.profit_units > 0 else DECISION_SKIP

    @property
    def is_profitable(self) -> bool:
        return self.decision == DECISION_SUBMIT


class ProfitEvaluator:
    """Nets worst-case round-trip output against transaction and venue fees."""

    def __init__(self, signature_fee_lamports: int, tip_lamports: int, decimals: int = 9):
        self.signature_fee_lamports = signature_fee_lamports
        self.tip_lamports = tip_lamports
        self.decimals = decimals

    def transaction_fees(self, signature_count: int) -> int:
        return signature_count * self.signature_fee_lamports + self.tip_lamports

    def evaluate(
        self,
        initial_amount: int,
        initial_quote: JupiterQuote,
        worst_case_initial_out: int,
        return_quote: JupiterQuote,
        worst_case_return_out: int,
        signature_count: int
    ) -> IterationOutcome:
        outcome = IterationOutcome(
            initial_amount=initial_amount,
            worst_case_initial_out=worst_case_initial_out,
            worst_case_return_out=worst_case_return_out,
            transaction_fees=self.transaction_fees(signature_count),
            venue_fees=initial_quote.fee_amount + return_quote.fee_amount,
            decimals=self.decimals
        )
        profit_color = colors['YELLOW'] if outcome.is_profitable else colors['RED']
        logger.debug(
            f"Evaluated round trip: fees={outcome.total_fees} "
            f"profit={profit_color}{outcome.profit_units}{colors['RESET']} -> {outcome.decision}"
        )
        return outcome
