"""
Board event bus.

The synchronizer publishes what happened to a dropped task;
the UI layer (or tests) subscribe to react, e.g. to flag a card as
unsynced after a failed write.

Event types:
    task_moved      task_id, project_id, from_status, to_status
    sync_confirmed  task_id, project_id, status
    sync_failed     task_id, project_id, status, error
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class BoardEventBus:
    """Routes board events to subscribed callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> list of callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        callbacks = self.subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers. A failing subscriber does not stop the others."""
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")
