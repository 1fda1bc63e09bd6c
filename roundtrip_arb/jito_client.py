"""
Jito block-engine bundle assembly and submission.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from .errors import VenueError
from .utils import get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bundle:
    """
    Ordered, atomic set of signed transactions (base58).

    The relay lands all of them or none. Order matters: the return swap spends
    what the initial swap produced, and the tip goes last so it is only paid
    when both swaps land.
    """
    initial_swap: str
    return_swap: str
    tip: str

    def __post_init__(self):
        for name in ('initial_swap', 'return_swap', 'tip'):
            if not getattr(self, name):
                raise ValueError(f"Bundle {name} transaction is empty")

    @property
    def transactions(self) -> List[str]:
        return [self.initial_swap, self.return_swap, self.tip]

    @property
    def signature_count(self) -> int:
        # One signer (the wallet) per transaction
        return len(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)


def assemble_bundle(initial_swap: str, return_swap: str, tip: str) -> Bundle:
    """Assemble the three signed transactions in execution order."""
    return Bundle(initial_swap=initial_swap, return_swap=return_swap, tip=tip)


class JitoClient:
    """JSON-RPC client for the Jito bundle endpoint."""

    def __init__(self, api_url: str, timeout: Optional[float] = 10.0):
        self.api_url = api_url
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, headers={"Content-Type": "application/json"})
        self._bundles_submitted = 0

    @staticmethod
    def build_payload(bundle: Bundle) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "sendBundle",
            "params": [bundle.transactions]
        }

    async def send_bundle(self, bundle: Bundle) -> Optional[str]:
        """
        Submit a bundle to the relay.

        Args:
            bundle: Assembled bundle

        Returns:
            Bundle id reported by the relay

        Raises:
            VenueError: On HTTP failure or a JSON-RPC error response
        """
        try:
            response = await self.client.post(self.api_url, json=self.build_payload(bundle))
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise VenueError(
                "Jito sendBundle failed",
                status_code=e.response.status_code,
                body=e.response.text
            ) from e
        except httpx.RequestError as e:
            raise VenueError(f"Jito sendBundle request failed: {e}") from e

        if data.get("error"):
            raise VenueError("Jito sendBundle returned an error", body=str(data["error"]))

        self._bundles_submitted += 1
        bundle_id = data.get("result")
        logger.info(f"Bundle submitted: {colors['CYAN']}{bundle_id}{colors['RESET']}")
        return bundle_id

    @property
    def bundles_submitted(self) -> int:
        return self._bundles_submitted

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
