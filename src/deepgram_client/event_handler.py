import asyncio
import inspect
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, Union

from src.deepgram_client.errors import RequestTimeoutError
from src.deepgram_client.events import LiveEvent
from utils.ml_logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[LiveEvent], Union[Any, Awaitable[Any]]]
EventSink = Callable[[LiveEvent], Union[Any, Awaitable[Any]]]

ALL_EVENTS = "*"


async def deliver(sink: EventSink, event: LiveEvent) -> None:
    """
    Hand one event to a sink, awaiting it when it is a coroutine.
    """
    result = sink(event)
    if inspect.isawaitable(result):
        await result


class SessionEventHandler:
    """
    Manages registration and ordered dispatching of event handlers.

    An instance is itself a valid event sink: pass it as ``sink`` when opening
    a session. Handlers run one after another in registration order, and the
    session awaits them before delivering the next event.
    """

    def __init__(self) -> None:
        self.event_handlers = defaultdict(list)

    def on(self, event_type: str, handler: Handler) -> Handler:
        """
        Register an event handler for a specific event type.

        Args:
            event_type (str): Event ``type`` (e.g. "Results"), or "*" for every event.
            handler (Callable): Function or coroutine function taking the event.

        Returns:
            Callable: The handler, so this can be used as a decorator factory target.
        """
        if not callable(handler):
            raise TypeError("Event handler must be callable.")
        self.event_handlers[event_type].append(handler)
        logger.debug(f"Handler registered for event: {event_type}")
        return handler

    def off(self, event_type: str, handler: Handler) -> bool:
        handlers = self.event_handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def clear_event_handlers(self) -> None:
        """
        Clear all registered event handlers.
        """
        self.event_handlers.clear()
        logger.info("All event handlers cleared.")

    async def dispatch(self, event: LiveEvent) -> None:
        """
        Dispatch an event to all registered handlers.

        Args:
            event (LiveEvent): Event to deliver.
        """
        handlers = list(self.event_handlers.get(event.type, [])) + list(
            self.event_handlers.get(ALL_EVENTS, [])
        )
        logger.debug(f"Dispatching event: {event.type} to {len(handlers)} handler(s)")
        for handler in handlers:
            try:
                await deliver(handler, event)
            except Exception as e:
                logger.error(f"Error dispatching event {event.type}: {e}", exc_info=True)

    async def __call__(self, event: LiveEvent) -> None:
        await self.dispatch(event)

    async def wait_for_next(self, event_type: str, timeout: Optional[float] = None) -> LiveEvent:
        """
        Wait for the next occurrence of a specific event.

        Args:
            event_type (str): Event type to wait for.
            timeout (float, optional): Seconds to wait before giving up.

        Returns:
            LiveEvent: The matching event.

        Raises:
            RequestTimeoutError: If no matching event arrives in time.
        """
        future = asyncio.get_running_loop().create_future()

        def handler(event):
            if not future.done():
                future.set_result(event)

        self.on(event_type, handler)
        logger.debug(f"Waiting for next event: {event_type}")
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(f"No {event_type} event received", timeout=timeout) from e
        finally:
            self.off(event_type, handler)
