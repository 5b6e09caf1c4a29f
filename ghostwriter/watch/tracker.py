# ghostwriter/watch/tracker.py

"""
Dirty-state tracking for watched paths
"""
import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union, Any

from .events import FileState
from .patterns import PatternRegistry, compile_pattern
from ..utils.file_utils import walk_tree

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[str, FileState], None]


def print_transition(path: str, state: FileState):
    """Default transition reporter, one line per state change on stdout"""
    print(f"{state.value}: {path}")


class DirtyStateTracker:
    """
    Pending state for every path that still needs dispatching

    Clean paths are never stored. Entries drain in FIFO order of first
    insertion; overwriting a pending path keeps its place in the queue.
    """

    def __init__(self, root: Union[str, Path],
                 registry: PatternRegistry,
                 on_transition: Optional[TransitionCallback] = print_transition,
                 track_unmatched: bool = False):
        """
        Initialize tracker

        Args:
            root: Absolute directory that relative paths are resolved against
            registry: Registry consulted for ignore and handler rules
            on_transition: Called with (path, state) on every set_state call
            track_unmatched: Record paths that no handler matches
        """
        self.root = root
        self.registry = registry
        self.on_transition = on_transition
        self.track_unmatched = track_unmatched

        self.dirty: Dict[str, FileState] = {}

        self.stats = {
            'transitions': 0,
            'ignored': 0,
            'unmatched': 0,
        }

    def set_state(self, path: str, state: FileState):
        """
        Record the pending state of a path

        Ignored paths are dropped. Setting CLEAN removes the path and is a
        no-op when it is not pending. Unless track_unmatched is set, paths
        that match no handler are dropped as well.

        Args:
            path: Root-relative path
            state: New pending state
        """
        if self.registry.is_ignored(path):
            self.stats['ignored'] += 1
            return

        if state is FileState.CLEAN:
            self.dirty.pop(path, None)
        elif self.track_unmatched or self.registry.matches_any_rule(path):
            self.dirty[path] = state
        else:
            self.stats['unmatched'] += 1
            logger.debug(f"No handler matches {path}, not tracking")
            return

        self.stats['transitions'] += 1
        logger.debug(f"{path} -> {state.value}")
        if self.on_transition:
            self.on_transition(path, state)

    def set_states_matching(self, pattern: str, state: FileState) -> int:
        """
        Set the state of every path under the root that matches pattern

        Updates applied before a traversal error are kept.

        Args:
            pattern: Regular expression matched against relative paths
            state: State to apply

        Returns:
            Number of matching, non-ignored paths

        Raises:
            PatternCompileError: If pattern does not compile
            TraversalError: If the tree cannot be walked
        """
        regex = compile_pattern(pattern)
        count = 0

        for path, _ in walk_tree(self.root):
            if regex.search(path) is None or self.registry.is_ignored(path):
                continue
            self.set_state(path, state)
            count += 1

        logger.debug(f"Pattern {pattern} matched {count} paths")
        return count

    def trigger(self, pattern: str, deleted: bool = False) -> int:
        """Mark every path matching pattern as changed, or deleted"""
        return self.set_states_matching(
            pattern, FileState.DELETED if deleted else FileState.CHANGED
        )

    def next_dirty(self) -> Tuple[Optional[str], Optional[FileState], bool]:
        """
        Remove and return the oldest pending entry

        Returns:
            (path, state, found); found is False when nothing is pending
        """
        if not self.dirty:
            return None, None, False

        path = next(iter(self.dirty))
        return path, self.dirty.pop(path), True

    def state_of(self, path: str) -> FileState:
        return self.dirty.get(path, FileState.CLEAN)

    def pending(self) -> Dict[str, FileState]:
        return dict(self.dirty)

    def __len__(self):
        return len(self.dirty)

    def __contains__(self, path):
        return path in self.dirty

    def get_stats(self) -> Dict[str, Any]:
        """Get tracker statistics"""
        return {
            **self.stats,
            'pending': len(self.dirty),
        }
