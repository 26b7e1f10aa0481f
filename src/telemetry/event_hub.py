import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

TOPIC_READING_INGESTED = "reading_ingested"
TOPIC_ALERT_RAISED = "alert_raised"


class EventHub:
    """
    Topic-based fan-out of engine output to external collaborators.
    Handlers are called as handler(topic, message); a failing handler is
    logged and never reaches the publisher.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._logger = logger or logging.getLogger(__name__)

    def init(self, loop: Optional[asyncio.AbstractEventLoop]):
        """Bind to an event loop so coroutine handlers can be scheduled on it."""
        self._loop = loop

    def subscribe(self, topic: str, handler: Callable):
        if topic not in self._subscribers:
            self._subscribers[topic] = []
        if handler not in self._subscribers[topic]:
            self._subscribers[topic].append(handler)
        self._logger.debug(f"Subscribed to {topic}")

    def unsubscribe(self, topic: str, handler: Callable):
        if topic in self._subscribers and handler in self._subscribers[topic]:
            self._subscribers[topic].remove(handler)
            self._logger.debug(f"Unsubscribed from {topic}")

    def unsubscribe_all(self):
        self._subscribers.clear()

    def send_all_on_topic(self, topic: str, message: Any):
        # Copy so handlers may unsubscribe while being called
        handlers = self._subscribers.get(topic, [])[:]
        for handler in handlers:
            try:
                self._dispatch(handler, topic, message)
            except Exception as e:
                self._logger.error(f"Error handling message on topic {topic}: {e}")

    def _dispatch(self, handler: Callable, topic: str, message: Any):
        is_async = inspect.iscoroutinefunction(handler)
        if self._loop is None or self._loop.is_closed():
            if is_async:
                self._logger.warning(f"EventHub loop not initialized. Cannot dispatch async handler for {topic}")
            else:
                handler(topic, message)
            return

        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if current_loop is self._loop:
            if is_async:
                self._loop.create_task(handler(topic, message))
            else:
                handler(topic, message)
        elif is_async:
            asyncio.run_coroutine_threadsafe(handler(topic, message), self._loop)
        else:
            # Plain handlers run inline on the publishing thread
            handler(topic, message)
