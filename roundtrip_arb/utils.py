"""
Utility functions for the round-trip arbitrage bot.
"""
import sys
from typing import Dict

LAMPORTS_PER_SOL = 1_000_000_000
USDC_DECIMALS = 6


def get_terminal_colors() -> Dict[str, str]:
    """
    Get ANSI color codes for terminal output.
    
    Returns empty strings if output is not a TTY (e.g., redirected to file),
    so the log file stays free of escape codes.
    """
    use_color = sys.stdout.isatty()
    return {
        'GREEN': '\033[92m' if use_color else '',   # Amounts and fees
        'CYAN': '\033[96m' if use_color else '',    # Mints, accounts, bundle ids
        'YELLOW': '\033[93m' if use_color else '',  # Profit and thresholds
        'RED': '\033[91m' if use_color else '',     # Errors, aborted iterations, negative profit
        'DIM': '\033[90m' if use_color else '',     # Cache refreshes, pacing
        'RESET': '\033[0m' if use_color else ''
    }


def sol_to_lamports(amount_sol: float) -> int:
    """Convert SOL to lamports (rounded to the nearest lamport)."""
    return int(round(amount_sol * LAMPORTS_PER_SOL))


def format_units(amount: int, decimals: int) -> str:
    """Format an integer amount in smallest units as a fixed-point string."""
    return f"{amount / 10 ** decimals:.{decimals}f}"
