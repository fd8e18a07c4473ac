"""Protocol interfaces for the gateway's external collaborators.

Every downstream microservice is reached through a single request/reply
capability, so the core never depends on a concrete broker.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Message Bus
# ---------------------------------------------------------------------------

@runtime_checkable
class IMessageBus(Protocol):
    """Request/reply messaging over a broker (in-memory or Redis)."""

    async def request(self, topic: str, payload: Any) -> Any: ...
