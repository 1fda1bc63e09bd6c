"""
Solana RPC client and the cached recent blockhash used by tip transactions.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.hash import Hash

from .errors import VenueError
from .utils import get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)


class SolanaClient:
    """Client for the Solana RPC calls the bot needs."""

    def __init__(self, rpc_url: str, timeout: Optional[float] = 10.0):
        self.rpc_url = rpc_url
        # None disables the timeout on the underlying httpx session
        self.client = AsyncClient(rpc_url, timeout=timeout)

    async def get_recent_blockhash(self) -> Hash:
        """
        Get recent blockhash for transaction building.

        Returns:
            Recent blockhash as Hash object

        Raises:
            VenueError: If the RPC call fails or returns no blockhash
        """
        try:
            result = await self.client.get_latest_blockhash(commitment=Confirmed)
        except Exception as e:
            raise VenueError(f"Error getting recent blockhash: {e}") from e
        if not result.value:
            raise VenueError("getLatestBlockhash returned no value")
        return result.value.blockhash

    async def close(self):
        """Close RPC client."""
        await self.client.close()


@dataclass(frozen=True)
class CachedBlockhash:
    """A blockhash and the monotonic time it was fetched at."""
    blockhash: Hash
    fetched_at: float


class BlockhashCache:
    """
    Lazily fetched, reused recent blockhash.

    The first call fetches; later calls reuse the value until it is older than
    `max_age_seconds`, then refetch. With `max_age_seconds=None` the value is
    fetched once and kept for the lifetime of the process.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Hash]],
        max_age_seconds: Optional[float] = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self._fetch = fetch
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._cached: Optional[CachedBlockhash] = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Optional[CachedBlockhash]:
        return self._cached

    def is_fresh(self) -> bool:
        if self._cached is None:
            return False
        if self.max_age_seconds is None:
            return True
        return self._clock() - self._cached.fetched_at < self.max_age_seconds

    async def get(self) -> Hash:
        """Return the cached blockhash, fetching it when absent or expired."""
        async with self._lock:
            if self.is_fresh():
                return self._cached.blockhash

            blockhash = await self._fetch()
            previous = self._cached
            self._cached = CachedBlockhash(blockhash=blockhash, fetched_at=self._clock())
            if previous is None:
                logger.info(f"{colors['DIM']}Blockhash cached: {blockhash}{colors['RESET']}")
            else:
                age = self._cached.fetched_at - previous.fetched_at
                logger.info(f"{colors['DIM']}Blockhash refreshed after {age:.1f}s: {blockhash}{colors['RESET']}")
            return blockhash

    def invalidate(self) -> None:
        """Drop the cached value so the next get() refetches."""
        self._cached = None
