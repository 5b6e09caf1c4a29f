# ghostwriter/watch/dispatcher.py

"""
Dispatch of pending paths to registered handlers
"""
import logging
from typing import Dict, Any

from .events import FileState
from .patterns import PatternRegistry
from .tracker import DirtyStateTracker
from ..errors import HandlerError

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Drains the dirty-state tracker and runs matching handlers

    Handlers run one at a time on the caller's thread. A handler may mark
    further paths dirty; they are dispatched by the same dispatch() call.
    """

    def __init__(self, registry: PatternRegistry, tracker: DirtyStateTracker):
        self.registry = registry
        self.tracker = tracker
        self.is_dispatching = False

        self.stats = {
            'dispatches': 0,
            'paths_dispatched': 0,
            'handler_calls': 0,
            'handler_errors': 0,
        }

    def dispatch(self) -> int:
        """
        Run handlers for every pending path until nothing is pending

        Each path is reset to CLEAN before its handlers run. The first
        handler that raises stops the dispatch; paths not yet reached stay
        pending for the next call.

        Returns:
            Number of paths dispatched

        Raises:
            HandlerError: If a handler raised
        """
        if self.is_dispatching:
            logger.debug("dispatch() called from a handler, outer dispatch will drain")
            return 0

        self.is_dispatching = True
        self.stats['dispatches'] += 1
        count = 0

        try:
            while True:
                path, state, found = self.tracker.next_dirty()
                if not found:
                    break

                self.tracker.set_state(path, FileState.CLEAN)
                count += 1
                self.stats['paths_dispatched'] += 1

                for handler in self.registry.handlers_for(path):
                    self.stats['handler_calls'] += 1
                    try:
                        handler(path, state)
                    except Exception as e:
                        self.stats['handler_errors'] += 1
                        logger.error(f"Handler failed for {path} ({state.value}): {e}")
                        raise HandlerError(path, state, e) from e
        finally:
            self.is_dispatching = False

        if count:
            logger.debug(f"Dispatched {count} paths")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get dispatcher statistics"""
        return {
            **self.stats,
            'pending': len(self.tracker),
        }
