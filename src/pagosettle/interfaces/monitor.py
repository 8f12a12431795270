"""PaymentMonitor protocol - what the presentation layer sees of a session."""

from __future__ import annotations

import asyncio
from typing import Protocol

from pagosettle.models.payment import PaymentDescriptor
from pagosettle.models.settlement import SettlementSnapshot


class PaymentMonitor(Protocol):
    """A running settlement session, owned and stopped by its caller."""

    @property
    def descriptor(self) -> PaymentDescriptor:
        ...

    @property
    def is_running(self) -> bool:
        ...

    def snapshot(self) -> SettlementSnapshot:
        """Latest state from a completed poll cycle."""
        ...

    def subscribe(self) -> asyncio.Queue[SettlementSnapshot]:
        """Queue receiving the current snapshot, then one per completed cycle."""
        ...

    def unsubscribe(self, queue: asyncio.Queue[SettlementSnapshot]) -> None:
        ...

    async def poll_once(self) -> bool:
        """Run one poll cycle now. False if a cycle was already in flight."""
        ...

    def start(self) -> None:
        """Schedule recurring poll cycles."""
        ...

    async def stop(self) -> None:
        """Cancel scheduled cycles; an in-flight cycle's result is discarded."""
        ...
