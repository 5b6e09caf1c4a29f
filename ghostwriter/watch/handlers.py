# ghostwriter/watch/handlers.py

"""
Watchdog event handler feeding the watch session
"""
import os
import logging
from datetime import datetime
from typing import Callable, Dict, Any, Optional

from watchdog.events import FileSystemEventHandler, FileSystemEvent

from .events import WatchEvent, EventType

logger = logging.getLogger(__name__)


class WatchEventHandler(FileSystemEventHandler):
    """
    Converts raw watchdog events and hands them to a sink

    Runs on the observer thread. Conversion is all it does; filtering and
    state changes happen on the consumer side so the observer is never held
    up by handler work.
    """

    def __init__(self, sink: Callable[[WatchEvent], None]):
        """
        Initialize event handler

        Args:
            sink: Called with each converted event, must not block
        """
        super().__init__()
        self.sink = sink

        self.stats = {
            'events_received': 0,
            'events_forwarded': 0,
            'events_skipped': 0,
            'last_event': None,
        }

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event"""
        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        watch_event = self._convert_event(event)
        if watch_event is None:
            self.stats['events_skipped'] += 1
            return

        self.sink(watch_event)
        self.stats['events_forwarded'] += 1

    def _convert_event(self, event: FileSystemEvent) -> Optional[WatchEvent]:
        """Convert watchdog event to our internal format"""
        try:
            event_type = EventType(event.event_type)
        except ValueError:
            # opened, closed_no_write and anything newer carry no change
            return None

        dest_path = getattr(event, 'dest_path', None) or None
        return WatchEvent(
            event_type=event_type,
            src_path=os.fsdecode(event.src_path),
            dest_path=os.fsdecode(dest_path) if dest_path else None,
            is_directory=event.is_directory,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
