# ghostwriter/watch/events.py

"""
File states and translated file system events
"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional


class FileState(Enum):
    """Pending disposition of a tracked path"""
    CLEAN = "clean"
    CHANGED = "changed"
    DELETED = "deleted"


class EventType(Enum):
    # Values mirror watchdog's event_type strings
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"
    CLOSED = "closed"


@dataclass(frozen=True)
class WatchEvent:
    event_type: EventType
    src_path: str
    dest_path: Optional[str] = None
    is_directory: bool = False

    def __str__(self):
        if self.dest_path:
            return f"{self.event_type.value}: {self.src_path} -> {self.dest_path}"
        return f"{self.event_type.value}: {self.src_path}"
