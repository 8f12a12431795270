"""Payment controller - the command surface for a presentation layer."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from pagosettle.errors import InvalidConfiguration
from pagosettle.interfaces.indexer import IndexerClient
from pagosettle.interfaces.monitor import PaymentMonitor
from pagosettle.models.chain import ChainParameters
from pagosettle.models.config import MonitorConfig
from pagosettle.models.payment import PaymentDescriptor
from pagosettle.models.settlement import PaymentBuilt, SessionEvent, SettlementSnapshot
from pagosettle.settlement.builder import build_payment_request
from pagosettle.settlement.session import SettlementSession
from pagosettle.settlement.uri import explorer_url, payment_uri

log = logging.getLogger(__name__)


class PaymentController:
    """Builds payment requests and owns at most one active settlement session.

    One-shot outcomes (PaymentBuilt, PaymentCompleted) are delivered through
    ``events``, each consumed exactly once by whoever reads the queue.
    """

    def __init__(
        self,
        cfg: MonitorConfig,
        indexer: IndexerClient,
        chain: ChainParameters | None = None,
    ) -> None:
        self._cfg = cfg
        self._indexer = indexer
        self._chain = chain or cfg.chain.to_parameters()
        self._descriptor: PaymentDescriptor | None = None
        self._session: SettlementSession | None = None
        self.events: asyncio.Queue[SessionEvent] = asyncio.Queue()

    @property
    def chain(self) -> ChainParameters:
        return self._chain

    @property
    def descriptor(self) -> PaymentDescriptor | None:
        return self._descriptor

    @property
    def session(self) -> PaymentMonitor | None:
        return self._session

    def snapshot(self) -> SettlementSnapshot | None:
        return self._session.snapshot() if self._session else None

    async def next_event(self) -> SessionEvent:
        return await self.events.get()

    async def build(self, input_amount: Decimal | int | str) -> PaymentDescriptor:
        """Build a descriptor from the configured recipient and multiplier."""
        descriptor = await build_payment_request(
            input_amount,
            self._cfg.multiplier,
            self._chain,
            self._cfg.recipient_address,
            self._indexer,
        )
        self._descriptor = descriptor
        self.events.put_nowait(
            PaymentBuilt(
                descriptor=descriptor,
                payment_uri=payment_uri(descriptor),
                explorer_url=explorer_url(descriptor),
            )
        )
        return descriptor

    async def start(self, descriptor: PaymentDescriptor | None = None) -> SettlementSession:
        """Start monitoring ``descriptor`` (default: the last one built).

        Any session already running is stopped first so its cursor and
        total never leak into the new one.
        """
        descriptor = descriptor or self._descriptor
        if descriptor is None:
            raise InvalidConfiguration("no payment request has been built")

        await self.stop()
        self._descriptor = descriptor
        self._session = SettlementSession.from_config(
            descriptor, self._indexer, self._cfg, events=self.events,
        )
        self._session.start()
        return self._session

    async def build_and_start(self, input_amount: Decimal | int | str) -> SettlementSession:
        await self.stop()
        descriptor = await self.build(input_amount)
        return await self.start(descriptor)

    async def stop(self) -> None:
        """Stop the active session, if any. Its last snapshot stays readable."""
        if self._session is not None:
            await self._session.stop()
