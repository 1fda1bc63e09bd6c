"""
Jupiter API client for quotes and swap transactions.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .errors import VenueError

logger = logging.getLogger(__name__)


@dataclass
class JupiterQuote:
    """Quote response from Jupiter API."""
    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    price_impact_pct: float
    route_plan: List[Dict[str, Any]]
    context_slot: Optional[int] = None
    time_taken: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)  # Sent back verbatim as quoteResponse

    @property
    def fee_amount(self) -> int:
        """
        Sum of route-level fees (swapInfo.feeAmount) over every hop.

        Missing or unparsable fields count as zero.
        """
        total = 0
        for hop in self.route_plan or []:
            if not isinstance(hop, dict):
                continue
            swap_info = hop.get('swapInfo') or {}
            fee = swap_info.get('feeAmount')
            if fee in (None, ''):
                continue
            try:
                total += int(fee)
            except (TypeError, ValueError):
                try:
                    total += int(float(fee))
                except (TypeError, ValueError):
                    logger.debug(f"Ignoring unparsable feeAmount: {fee!r}")
        return total


@dataclass
class JupiterSwapResponse:
    """Swap transaction response from Jupiter API."""
    swap_transaction: str  # base64, unsigned
    last_valid_block_height: int
    priority_fee_lamports: Optional[int] = None


class JupiterClient:
    """Client for the Jupiter quote and swap endpoints."""

    def __init__(
        self,
        quote_api_url: str,
        swap_api_url: str,
        slippage_bps: int = 50,
        only_direct_routes: bool = False,
        prioritization_fee_lamports: int = 0,
        timeout: Optional[float] = 10.0
    ):
        """
        Initialize Jupiter API client.

        Args:
            quote_api_url: Base URL; quotes are requested from {quote_api_url}/quote
            swap_api_url: Full URL of the swap-build endpoint
            slippage_bps: Slippage sent with every quote request
            only_direct_routes: Restrict Jupiter to single-hop routes
            prioritization_fee_lamports: Priority fee hint for built swaps
            timeout: Request timeout in seconds (None disables the timeout)
        """
        self.quote_api_url = quote_api_url.rstrip('/')
        self.swap_api_url = swap_api_url
        self.slippage_bps = slippage_bps
        self.only_direct_routes = only_direct_routes
        self.prioritization_fee_lamports = prioritization_fee_lamports
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout)

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int
    ) -> JupiterQuote:
        """
        Get a quote for swapping tokens.

        Args:
            input_mint: Input token mint address
            output_mint: Output token mint address
            amount: Amount in smallest unit (lamports for SOL)

        Returns:
            JupiterQuote

        Raises:
            VenueError: On non-success status or transport failure
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": self.slippage_bps,
            "onlyDirectRoutes": str(self.only_direct_routes).lower()
        }
        url = f"{self.quote_api_url}/quote"
        start_time = time.time()

        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise VenueError(
                f"Jupiter quote failed for {input_mint[:8]}... -> {output_mint[:8]}...",
                status_code=e.response.status_code,
                body=e.response.text
            ) from e
        except httpx.RequestError as e:
            raise VenueError(f"Jupiter quote request failed: {e}") from e

        if "outAmount" not in data:
            raise VenueError("Jupiter quote response has no outAmount", body=str(data))

        quote = JupiterQuote(
            input_mint=data.get("inputMint", input_mint),
            output_mint=data.get("outputMint", output_mint),
            in_amount=int(data.get("inAmount", amount)),
            out_amount=int(data["outAmount"]),
            price_impact_pct=float(data.get("priceImpactPct", 0) or 0),
            route_plan=data.get("routePlan", []),
            context_slot=data.get("contextSlot"),
            time_taken=time.time() - start_time,
            raw=data
        )
        logger.debug(
            f"Quote: {input_mint[:8]}... -> {output_mint[:8]}... "
            f"in={quote.in_amount} out={quote.out_amount} "
            f"impact={quote.price_impact_pct:.4f}% fee={quote.fee_amount}"
        )
        return quote

    def _build_quote_response(self, quote: JupiterQuote) -> Dict[str, Any]:
        """Quote object for the swap request (verbatim when available)."""
        if quote.raw:
            return quote.raw
        return {
            "inputMint": quote.input_mint,
            "inAmount": str(quote.in_amount),
            "outputMint": quote.output_mint,
            "outAmount": str(quote.out_amount),
            "otherAmountThreshold": str(quote.out_amount),
            "swapMode": "ExactIn",
            "slippageBps": self.slippage_bps,
            "priceImpactPct": quote.price_impact_pct,
            "routePlan": quote.route_plan
        }

    async def get_swap_transaction(
        self,
        quote: JupiterQuote,
        user_public_key: str,
        compute_unit_limit: int,
        other_amount_threshold: int
    ) -> JupiterSwapResponse:
        """
        Get an unsigned swap transaction from Jupiter API.

        Args:
            quote: JupiterQuote for this leg
            user_public_key: User's public key (base58)
            compute_unit_limit: Compute budget for the transaction
            other_amount_threshold: Worst-case minimum output, enforced on-chain

        Returns:
            JupiterSwapResponse with a base64 transaction payload

        Raises:
            VenueError: If Jupiter rejects the request or returns no payload
        """
        payload = {
            "quoteResponse": self._build_quote_response(quote),
            "userPublicKey": user_public_key,
            "computeUnitLimit": compute_unit_limit,
            "prioritizationFeeLamports": self.prioritization_fee_lamports,
            "otherAmountThreshold": other_amount_threshold,
            "wrapAndUnwrapSol": False
        }

        try:
            response = await self.client.post(self.swap_api_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise VenueError(
                "Jupiter swap transaction failed",
                status_code=e.response.status_code,
                body=e.response.text
            ) from e
        except httpx.RequestError as e:
            raise VenueError(f"Jupiter swap request failed: {e}") from e

        swap_transaction = data.get("swapTransaction")
        if not swap_transaction:
            raise VenueError("Jupiter returned no swap transaction", body=str(data))

        swap_response = JupiterSwapResponse(
            swap_transaction=swap_transaction,
            last_valid_block_height=data.get("lastValidBlockHeight", 0),
            priority_fee_lamports=data.get("prioritizationFeeLamports", self.prioritization_fee_lamports)
        )
        logger.debug(
            f"Swap transaction built: {len(swap_response.swap_transaction)} chars, "
            f"last_valid_block_height: {swap_response.last_valid_block_height}"
        )
        return swap_response

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
