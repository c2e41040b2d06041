"""Fan a query out to every configured collector and merge the outcomes."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import List, Optional, Protocol, Sequence, Tuple

from .models import CollectorOutcome, PriceListing

logger = logging.getLogger("price_search.dispatcher")


class Collector(Protocol):
    """Anything that can produce an outcome for a query."""

    @property
    def store(self) -> str: ...

    def collect(
        self, query: str, cancel_event: Optional[threading.Event] = None
    ) -> CollectorOutcome: ...


class CollectionDispatcher:
    """Run collectors in parallel with a per-collector time bound.

    Collectors that fail or overrun contribute nothing. Listings are merged in
    collector order, then in extraction order, so ranking ties stay stable.
    """

    DEFAULT_COLLECTOR_TIMEOUT = 30.0
    WAIT_SLICE = 0.25

    def __init__(
        self,
        collectors: Sequence[Collector],
        collector_timeout: float | None = None,
    ) -> None:
        self.collectors: Sequence[Collector] = tuple(collectors)
        self.collector_timeout = collector_timeout or self.DEFAULT_COLLECTOR_TIMEOUT

    def collect(
        self,
        query: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[PriceListing]:
        """Return the merged, unranked listings of every healthy collector."""
        if not self.collectors:
            logger.info("No collectors configured; nothing to search for '%s'.", query)
            return []

        started = time.perf_counter()
        executor = ThreadPoolExecutor(
            max_workers=len(self.collectors), thread_name_prefix="collector"
        )
        try:
            submitted: List[Tuple[Collector, Future]] = [
                (collector, executor.submit(collector.collect, query, cancel_event))
                for collector in self.collectors
            ]
            self._wait(
                [future for _, future in submitted], started, cancel_event
            )
        finally:
            # Overrunning sessions are bounded by their own timeouts.
            executor.shutdown(wait=False, cancel_futures=True)

        merged: List[PriceListing] = []
        contributed = 0
        for collector, future in submitted:
            outcome = self._outcome(collector, future, query, cancel_event)
            if outcome is None or not outcome.ok:
                continue
            contributed += 1
            merged.extend(outcome.listings)

        logger.info(
            "Collected %d listings from %d/%d collectors for '%s' in %.2fs.",
            len(merged),
            contributed,
            len(self.collectors),
            query,
            time.perf_counter() - started,
        )
        return merged

    def _wait(
        self,
        futures: List[Future],
        started: float,
        cancel_event: Optional[threading.Event],
    ) -> None:
        deadline = started + self.collector_timeout
        pending = set(futures)
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Search cancelled with %d collectors running.", len(pending))
                return
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return
            _, pending = wait(
                pending,
                timeout=min(remaining, self.WAIT_SLICE),
                return_when=FIRST_COMPLETED,
            )

    def _outcome(
        self,
        collector: Collector,
        future: Future,
        query: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[CollectorOutcome]:
        if not future.done():
            future.cancel()
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    "Collector %s still running when '%s' was cancelled; skipping.",
                    collector.store,
                    query,
                )
                return None
            logger.warning(
                "Collector %s gave no result within %.1fs for '%s'; skipping.",
                collector.store,
                self.collector_timeout,
                query,
            )
            return None
        if future.cancelled():
            return None

        try:
            outcome = future.result()
        except Exception:
            logger.exception(
                "Collector %s raised while searching '%s'", collector.store, query
            )
            return None

        if not outcome.ok:
            logger.info(
                "Collector %s contributed nothing for '%s': %s",
                outcome.store,
                query,
                outcome.error,
            )
        return outcome
