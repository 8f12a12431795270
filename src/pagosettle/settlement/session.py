"""Settlement session - block-cursor reconciliation of one payment request."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import Counter
from decimal import Decimal

from pagosettle.errors import UpstreamThrottled
from pagosettle.interfaces.indexer import IndexerClient, RawTransfer
from pagosettle.models.config import MonitorConfig
from pagosettle.models.payment import PaymentDescriptor, TransferEvent, parse_transfer
from pagosettle.models.settlement import (
    PaymentCompleted,
    SessionEvent,
    SettlementSnapshot,
    SettlementStatus,
    classify,
)

log = logging.getLogger(__name__)


class SettlementSession:
    """Polls the indexer for transfers to one recipient until paid in full.

    The session owns a moving block cursor that starts at the descriptor's
    anchor block and only ever moves forward, so each block range is
    consumed once. Each poll cycle:

    1. Skips if another cycle is in flight
    2. Fetches transfers from the cursor onward
    3. Parses records, skipping malformed ones
    4. Keeps only inbound, not-yet-seen transfers and adds their value
    5. Advances the cursor past the highest block observed
    6. Reclassifies status and publishes a snapshot

    Throttling is absorbed silently. Any other failure puts the session in
    ERROR until the next successful cycle.
    """

    def __init__(
        self,
        descriptor: PaymentDescriptor,
        indexer: IndexerClient,
        poll_interval: float = 4.0,
        jitter: tuple[float, float] = (0.25, 0.75),
        page_size: int = 1000,
        max_pages: int = 10,
        events: asyncio.Queue[SessionEvent] | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._indexer = indexer
        self._poll_interval = poll_interval
        self._jitter = jitter
        self._page_size = page_size
        self._max_pages = max_pages
        self._event_queue = events

        # Settlement state, mutated only inside poll_once()
        self._status = SettlementStatus.MONITORING
        self._next_from_block = descriptor.anchor_block
        self._received_total = Decimal("0.00")
        self._events: list[TransferEvent] = []
        # dedup key -> how many identical transfers have been counted
        self._seen: Counter[tuple] = Counter()
        self._last_error: str | None = None
        self._cycles = 0

        self._in_flight = False
        self._running = False
        self._stopped = False
        self._task: asyncio.Task | None = None
        self._subscribers: list[asyncio.Queue[SettlementSnapshot]] = []
        self._snapshot = self._build_snapshot()

    @classmethod
    def from_config(
        cls,
        descriptor: PaymentDescriptor,
        indexer: IndexerClient,
        cfg: MonitorConfig,
        events: asyncio.Queue[SessionEvent] | None = None,
    ) -> SettlementSession:
        return cls(
            descriptor,
            indexer,
            poll_interval=cfg.poll_interval,
            jitter=(cfg.poll_jitter_min, cfg.poll_jitter_max),
            page_size=cfg.indexer.page_size,
            max_pages=cfg.indexer.max_pages,
            events=events,
        )

    # ── Read side ─────────────────────────────────────────

    @property
    def descriptor(self) -> PaymentDescriptor:
        return self._descriptor

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> SettlementSnapshot:
        return self._snapshot

    def subscribe(self) -> asyncio.Queue[SettlementSnapshot]:
        queue: asyncio.Queue[SettlementSnapshot] = asyncio.Queue()
        queue.put_nowait(self._snapshot)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SettlementSnapshot]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    # ── Lifecycle ─────────────────────────────────────────

    def start(self) -> None:
        """Schedule poll cycles. The first one also waits a full interval."""
        if self.is_running or self._stopped:
            return
        if self._status is SettlementStatus.COMPLETED:
            return
        self._running = True
        self._task = asyncio.create_task(
            self._run(), name=f"settlement-{self._descriptor.recipient[:10]}",
        )
        log.info(
            "Monitoring %s for %s from block %d",
            self._descriptor.recipient,
            self._descriptor.requested_amount,
            self._next_from_block,
        )

    async def stop(self) -> None:
        """Cancel pending cycles. A cycle already in flight finishes unapplied."""
        self._running = False
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if self._in_flight:
            await task
        else:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        log.info("Stopped monitoring %s", self._descriptor.recipient)

    def _next_delay(self) -> float:
        low, high = self._jitter
        return self._poll_interval + (random.uniform(low, high) if high > 0 else 0.0)

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._next_delay())
            except asyncio.CancelledError:
                break
            if not self._running:
                break
            await self.poll_once()
            if self._status is SettlementStatus.COMPLETED:
                break

    # ── Poll cycle ────────────────────────────────────────

    async def poll_once(self) -> bool:
        """Run one poll cycle. Returns False if skipped."""
        if self._in_flight or self._stopped:
            return False
        if self._status is SettlementStatus.COMPLETED:
            return False

        self._in_flight = True
        try:
            try:
                records = await self._indexer.token_transfers_from(
                    self._descriptor.recipient,
                    self._descriptor.chain.token_contract_id,
                    self._next_from_block,
                    self._page_size,
                    self._max_pages,
                )
            except UpstreamThrottled as exc:
                log.warning("Poll throttled, retrying next cycle: %s", exc)
                return True
            except Exception as exc:
                if self._stopped:
                    return True
                self._status = SettlementStatus.ERROR
                self._last_error = str(exc) or type(exc).__name__
                self._cycles += 1
                log.error("Poll cycle failed: %s", self._last_error)
                self._publish()
                return True

            if self._stopped:
                log.debug("Session stopped mid-cycle, discarding %d records", len(records))
                return True
            self._apply(records)
            return True
        finally:
            self._in_flight = False

    def _parse(self, records: list[RawTransfer]) -> list[TransferEvent]:
        decimals = self._descriptor.chain.token_decimals
        parsed: list[TransferEvent] = []
        for record in records:
            try:
                parsed.append(parse_transfer(record, decimals))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                tx = record.get("hash", "?") if isinstance(record, dict) else "?"
                log.warning("Skipping malformed transfer record %s: %s", tx, exc)
        return parsed

    def _apply(self, records: list[RawTransfer]) -> None:
        parsed = self._parse(records)
        from_block = self._next_from_block
        recipient = self._descriptor.recipient.lower()

        inbound: list[TransferEvent] = []
        in_cycle: Counter[tuple] = Counter()
        for event in parsed:
            if event.to_address.lower() != recipient:
                continue
            if event.block_number < from_block:
                log.debug("Ignoring transfer %s below cursor %d", event.tx_hash, from_block)
                continue
            key = event.dedup_key
            in_cycle[key] += 1
            # Identical rows within one response are separate transfers;
            # only copies already counted by an earlier cycle are dropped.
            if in_cycle[key] <= self._seen[key]:
                log.debug("Ignoring already counted transfer %s", event.tx_hash)
                continue
            self._seen[key] = in_cycle[key]
            inbound.append(event)

        if inbound:
            self._events.extend(inbound)
            self._received_total += sum((e.value for e in inbound), Decimal(0))
            log.info(
                "Received %d transfer(s), total %s / %s",
                len(inbound), self._received_total, self._descriptor.requested_amount,
            )

        if parsed:
            max_block = max(e.block_number for e in parsed)
            # A full fetch may have stopped mid-block; re-read that block next time.
            truncated = len(records) >= self._page_size * self._max_pages
            candidate = max_block if truncated else max_block + 1
            if truncated and max_block <= self._next_from_block:
                log.warning(
                    "Fetch window filled by block %d alone; later transfers in it are skipped",
                    max_block,
                )
                candidate = max_block + 1
            if candidate > self._next_from_block:
                self._next_from_block = candidate

        self._last_error = None
        self._status = classify(self._received_total, self._descriptor.requested_amount)
        self._cycles += 1
        self._publish()

        if self._status is SettlementStatus.COMPLETED:
            self._running = False
            log.info(
                "Payment completed: received %s for %s",
                self._received_total, self._descriptor.requested_amount,
            )
            if self._event_queue is not None:
                self._event_queue.put_nowait(
                    PaymentCompleted(descriptor=self._descriptor, snapshot=self._snapshot)
                )

    def _build_snapshot(self) -> SettlementSnapshot:
        return SettlementSnapshot(
            status=self._status,
            requested_amount=self._descriptor.requested_amount,
            received_total=self._received_total,
            next_from_block=self._next_from_block,
            events=tuple(self._events),
            last_error=self._last_error,
            cycles=self._cycles,
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
        for queue in self._subscribers:
            queue.put_nowait(self._snapshot)
