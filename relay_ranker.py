"""
Relay Ranker

Probes every admitted relay concurrently and ranks them by mean latency.
"""

import asyncio
import logging
from typing import List, Optional

from ping_tester import MIN_INTERVAL
from relay import ProbeResult, Relay
from relay_filter import RelayFilter

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Collects probe results as they complete."""

    def __init__(self):
        self._results: List[ProbeResult] = []

    def __len__(self) -> int:
        return len(self._results)

    def add(self, result: ProbeResult):
        self._results.append(result)

    def ranked(self, top_n: int = 0) -> List[ProbeResult]:
        """
        Rank collected results by mean RTT, fastest first.

        Ties keep completion order. A top_n of 0 keeps every result.
        """
        results = sorted(self._results, key=lambda r: r.mean_rtt_ms)
        if top_n > 0:
            results = results[:top_n]
        return results


class RelayRanker:
    """Finds the lowest-latency relays in a catalog."""

    def __init__(
        self,
        pinger,
        relay_filter: Optional[RelayFilter] = None,
        pings: int = 3,
        interval: float = MIN_INTERVAL,
        max_concurrency: int = 0
    ):
        """
        Args:
            pinger: Object with an async ping(ip, count, interval) method
                returning the mean RTT in ms or None
            relay_filter: Relays it rejects are never probed
            pings: Echo requests per relay
            interval: Seconds between echo requests
            max_concurrency: Cap on in-flight probes, 0 for no cap
        """
        self.pinger = pinger
        self.relay_filter = relay_filter or RelayFilter()
        self.pings = pings
        self.interval = interval
        self.max_concurrency = max_concurrency

    async def _probe(
        self,
        relay: Relay,
        aggregator: ResultAggregator,
        semaphore: Optional[asyncio.Semaphore]
    ):
        if semaphore is not None:
            async with semaphore:
                avg = await self.pinger.ping(relay.ipv4_addr_in, self.pings, self.interval)
        else:
            avg = await self.pinger.ping(relay.ipv4_addr_in, self.pings, self.interval)

        if avg is not None:
            aggregator.add(ProbeResult.from_relay(relay, avg))

    async def rank(self, relays: List[Relay], top_n: int = 0) -> List[ProbeResult]:
        """
        Probe admitted relays and rank them.

        Args:
            relays: Catalog relays
            top_n: Number of results to keep, 0 for all

        Returns:
            Probe results sorted by mean RTT ascending
        """
        admitted = [r for r in relays if self.relay_filter.admits(r)]
        logger.info("Probing %d of %d relays", len(admitted), len(relays))

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency > 0 else None
        aggregator = ResultAggregator()
        tasks = [self._probe(relay, aggregator, semaphore) for relay in admitted]

        # Run all probes concurrently
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for relay, result in zip(admitted, results):
            if isinstance(result, Exception):
                logger.warning("Probe of %s failed: %s", relay.hostname, result)

        logger.info("%d of %d relays responded", len(aggregator), len(admitted))
        return aggregator.ranked(top_n)


async def rank_relays(
    relays: List[Relay],
    pinger,
    relay_filter: Optional[RelayFilter] = None,
    top_n: int = 0,
    pings: int = 3,
    interval: float = MIN_INTERVAL,
    max_concurrency: int = 0
) -> List[ProbeResult]:
    """Rank relays with a one-off RelayRanker."""
    ranker = RelayRanker(
        pinger,
        relay_filter=relay_filter,
        pings=pings,
        interval=interval,
        max_concurrency=max_concurrency
    )
    return await ranker.rank(relays, top_n)
