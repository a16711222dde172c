"""
Cooperative Cancellation
=======================

A caller-owned token passed explicitly down the sync call chain. The batch
coordinator checks it between feeds and the document fetcher races it
against the in-flight request; nothing is ever preempted mid-write.
"""

import asyncio
from typing import Optional


class CancellationToken:
    """Signallable handle requesting an early stop."""

    def __init__(self):
        self._cancelled = False
        # Created on first wait() so it belongs to the loop that awaits it
        self._event: Optional[asyncio.Event] = None
        self.reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation. Repeated calls keep the first reason."""
        if self._cancelled:
            return
        self._cancelled = True
        self.reason = reason
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Block until the token is signalled."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken({state})"
