"""Fire-and-forget delivery of outbound actions.

The webhook handler acknowledges a batch without waiting for any Send
API call. Each event's actions are delivered by one background task
that sends them in issuance order; tasks for different events run
independently and finish in any order. A failed send is logged by the
gateway and never reaches the handler.

Tasks are tracked only so the application can let them finish during
graceful shutdown.
"""

import asyncio
from typing import Any, Coroutine, Sequence

import logfire

from selfcare_bot.models.outbound import OutboundAction
from selfcare_bot.services.send_gateway import MessageGateway

# Track pending delivery tasks for graceful shutdown
_pending_tasks: set[asyncio.Task] = set()


def track_background_task(task: asyncio.Task) -> None:
    """
    Track a background task for graceful shutdown.

    Example:
        task = asyncio.create_task(deliver(gateway, actions))
        track_background_task(task)
    """
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)


def pending_task_count() -> int:
    return len(_pending_tasks)


async def deliver(gateway: MessageGateway, actions: Sequence[OutboundAction]) -> int:
    """Send actions one after another; return how many the platform accepted."""
    delivered = 0
    for action in actions:
        if await gateway.send(action):
            delivered += 1
    if delivered < len(actions):
        logfire.warning(
            "Some outbound actions were not delivered",
            delivered=delivered,
            total=len(actions),
        )
    return delivered


def run_in_background(coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
    """Schedule ``coro`` as a tracked task without awaiting it."""
    task = asyncio.create_task(coro)
    track_background_task(task)
    return task


def schedule_delivery(
    gateway: MessageGateway, actions: Sequence[OutboundAction]
) -> asyncio.Task | None:
    """Start delivering ``actions`` in the background and return immediately.

    Must be called from a running event loop. Returns None when there is
    nothing to send.
    """
    if not actions:
        return None
    return run_in_background(deliver(gateway, list(actions)))


async def drain_pending_tasks(timeout_seconds: float) -> None:
    """Wait for pending deliveries, cancelling whatever is left after the timeout."""
    if not _pending_tasks:
        logfire.info("No pending deliveries during shutdown")
        return

    logfire.info(
        "Waiting for pending deliveries to complete",
        task_count=len(_pending_tasks),
        timeout_seconds=timeout_seconds,
    )

    done, pending = await asyncio.wait(
        set(_pending_tasks),
        timeout=timeout_seconds,
        return_when=asyncio.ALL_COMPLETED,
    )

    if pending:
        logfire.warning(
            "Cancelling remaining deliveries after timeout",
            completed_count=len(done),
            cancelled_count=len(pending),
        )
        for task in pending:
            task.cancel()

        # Wait briefly for cancellation to complete
        await asyncio.gather(*pending, return_exceptions=True)
    else:
        logfire.info(
            "All deliveries completed successfully",
            completed_count=len(done),
        )
