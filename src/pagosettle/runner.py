"""Watch loop - wires config, indexer and controller together for one payment."""

from __future__ import annotations

import asyncio
import logging
import signal
from decimal import Decimal
from typing import Callable

from pagosettle.api.controller import PaymentController
from pagosettle.indexer.etherscan import EtherscanIndexerClient
from pagosettle.interfaces.indexer import IndexerClient
from pagosettle.models.config import MonitorConfig
from pagosettle.models.settlement import PaymentBuilt, SettlementSnapshot

log = logging.getLogger(__name__)


class PaymentWatcher:
    """Builds one payment request and follows its session to the end.

    Every snapshot is passed to ``on_snapshot``. The watch ends when the
    payment completes, on ``stop()``, or after ``timeout`` seconds.
    """

    def __init__(
        self,
        cfg: MonitorConfig,
        indexer: IndexerClient,
        on_built: Callable[[PaymentBuilt], None] | None = None,
        on_snapshot: Callable[[SettlementSnapshot], None] | None = None,
    ) -> None:
        self._cfg = cfg
        self.controller = PaymentController(cfg, indexer)
        self._on_built = on_built
        self._on_snapshot = on_snapshot
        self._stop_requested = asyncio.Event()

    async def stop(self) -> None:
        """Signal the watch to stop gracefully."""
        log.info("Stop requested")
        self._stop_requested.set()

    async def watch(
        self, input_amount: Decimal | str, timeout: float | None = None,
    ) -> SettlementSnapshot:
        session = await self.controller.build_and_start(input_amount)
        built = await self.controller.next_event()
        if isinstance(built, PaymentBuilt) and self._on_built:
            self._on_built(built)

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        updates = session.subscribe()
        stopper = asyncio.create_task(self._stop_requested.wait())
        try:
            while True:
                remaining = None if deadline is None else max(0.0, deadline - loop.time())
                getter = asyncio.create_task(updates.get())
                done, _ = await asyncio.wait(
                    {getter, stopper},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if getter not in done:
                    getter.cancel()
                    if stopper not in done:
                        log.warning("Watch timed out after %ss", timeout)
                    break
                snapshot = getter.result()
                if self._on_snapshot:
                    self._on_snapshot(snapshot)
                if snapshot.is_terminal:
                    break
        finally:
            stopper.cancel()
            session.unsubscribe(updates)
            await self.controller.stop()

        return session.snapshot()


async def run_watch(
    cfg: MonitorConfig,
    input_amount: Decimal | str,
    timeout: float | None = None,
    on_built: Callable[[PaymentBuilt], None] | None = None,
    on_snapshot: Callable[[SettlementSnapshot], None] | None = None,
) -> SettlementSnapshot:
    """Entry point for watching one payment against the configured indexer."""
    chain = cfg.chain.to_parameters()
    async with EtherscanIndexerClient.from_config(
        chain, cfg.indexer, api_key=cfg.api_key,
    ) as indexer:
        watcher = PaymentWatcher(cfg, indexer, on_built=on_built, on_snapshot=on_snapshot)

        loop = asyncio.get_running_loop()

        def _signal_handler():
            asyncio.ensure_future(watcher.stop())

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                pass

        return await watcher.watch(input_amount, timeout)
