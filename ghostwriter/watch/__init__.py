"""
ghostwriter watch module
Pattern-based dispatch of file system changes
"""
from .events import FileState, EventType, WatchEvent
from .patterns import PatternRegistry, MatchRule, IgnoreRule
from .tracker import DirtyStateTracker, print_transition
from .dispatcher import Dispatcher
from .handlers import WatchEventHandler
from .watcher import RecursiveWatcher
from .monitor import WatchSession

__all__ = [
    'FileState',
    'EventType',
    'WatchEvent',
    'PatternRegistry',
    'MatchRule',
    'IgnoreRule',
    'DirtyStateTracker',
    'print_transition',
    'Dispatcher',
    'WatchEventHandler',
    'RecursiveWatcher',
    'WatchSession',
]
