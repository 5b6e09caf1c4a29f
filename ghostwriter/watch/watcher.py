# ghostwriter/watch/watcher.py

"""
Recursive directory watcher built from per-directory watchdog watches
"""
import os
import logging
from pathlib import Path
from typing import Callable, Dict, Any, Optional, Set, Union

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from .events import WatchEvent, EventType, FileState
from .handlers import WatchEventHandler
from .patterns import PatternRegistry
from .tracker import DirtyStateTracker
from ..errors import SubscriptionError, TraversalError
from ..utils.file_utils import absolute_path, is_within, relative_path, walk_tree

logger = logging.getLogger(__name__)


class RecursiveWatcher:
    """
    Watches every non-ignored directory under a root

    Each directory gets its own non-recursive watch so that directories
    created later can be picked up as they appear. The set of watched
    directories only grows; watches on deleted directories stay registered
    and simply stop reporting.

    The watcher also remembers every non-ignored file it has seen, so that
    files inside a removed directory, or files that disappeared while
    events were lost, can still be reported as deleted.
    """

    def __init__(self, root: Union[str, Path],
                 registry: PatternRegistry,
                 tracker: DirtyStateTracker,
                 sink: Callable[[WatchEvent], None],
                 observer: Optional[BaseObserver] = None,
                 use_polling: bool = False,
                 poll_interval: float = 1.0):
        """
        Initialize recursive watcher

        Args:
            root: Absolute root directory
            registry: Registry providing ignore rules
            tracker: Tracker receiving translated state changes
            sink: Receives converted events on the observer thread
            observer: Observer to use instead of creating one
            use_polling: Use polling instead of OS events
            poll_interval: Polling interval in seconds
        """
        self.root = os.fspath(root)
        self.registry = registry
        self.tracker = tracker
        self.handler = WatchEventHandler(sink)

        if observer is not None:
            self.observer = observer
        elif use_polling:
            self.observer = PollingObserver(timeout=poll_interval)
            logger.debug(f"Using polling observer (interval: {poll_interval}s)")
        else:
            self.observer = Observer()
            logger.debug("Using OS event observer")

        self.watches: Dict[str, ObservedWatch] = {}
        self.known_files: Set[str] = set()

        self.stats = {
            'events_translated': 0,
            'events_ignored': 0,
            'directory_changes_skipped': 0,
            'directories_added': 0,
            'files_vanished': 0,
        }

    def start(self):
        self.observer.start()
        logger.info(f"Observer started for {self.root}")

    def stop(self):
        self.observer.stop()
        if self.observer.is_alive():
            self.observer.join(timeout=10)
        logger.info(f"Observer stopped for {self.root}")

    def is_alive(self) -> bool:
        return self.observer.is_alive()

    def watch_recursive(self, start: str = ".") -> int:
        """
        Watch start and every directory below it

        Each non-ignored directory is marked CLEAN and subscribed.
        Directories that are already watched are left alone.

        Args:
            start: Root-relative directory

        Returns:
            Number of newly subscribed directories

        Raises:
            TraversalError: If the tree cannot be walked
            SubscriptionError: If the observer refuses a directory
        """
        return self._watch_tree(start, replace=False, mark_files=False)

    def _watch_tree(self, start: str, replace: bool, mark_files: bool) -> int:
        added = 0

        for path, is_dir in walk_tree(self.root, start):
            if self.registry.is_ignored(path):
                continue
            if not is_dir:
                self.known_files.add(path)
                if mark_files:
                    self.tracker.set_state(path, FileState.CHANGED)
                continue

            self.tracker.set_state(path, FileState.CLEAN)
            if path in self.watches and not replace:
                continue
            self._subscribe(path)
            added += 1

        return added

    def rescan(self) -> int:
        """
        Rebuild the watch set and file list after events were lost

        Files that were known before but are gone now are marked DELETED.
        Marking the surviving files dirty is left to the caller.

        Returns:
            Number of files that vanished

        Raises:
            TraversalError: If the tree cannot be walked
            SubscriptionError: If a directory cannot be watched
        """
        before = self.known_files
        self.known_files = set()
        self.watch_recursive(".")

        vanished = sorted(before - self.known_files)
        for path in vanished:
            self.tracker.set_state(path, FileState.DELETED)

        self.stats['files_vanished'] += len(vanished)
        if vanished:
            logger.info(f"{len(vanished)} files disappeared while events were lost")
        return len(vanished)

    def _subscribe(self, path: str):
        """Subscribe a single directory, replacing a stale watch on it"""
        stale = self.watches.pop(path, None)
        if stale is not None:
            try:
                self.observer.unschedule(stale)
            except KeyError:
                logger.debug(f"Watch for {path} was already gone")

        try:
            watch = self.observer.schedule(
                self.handler,
                absolute_path(self.root, path),
                recursive=False
            )
        except OSError as e:
            raise SubscriptionError(path, e) from e

        self.watches[path] = watch
        self.stats['directories_added'] += 1
        logger.info(f"Watching {path}")

    def translate(self, event: WatchEvent):
        """
        Turn a converted event into state changes

        Args:
            event: Event produced by the observer thread

        Raises:
            TraversalError: If a new directory cannot be walked
            SubscriptionError: If a new directory cannot be watched
        """
        self.stats['events_translated'] += 1
        src = self._relative(event.src_path)

        if event.event_type == EventType.MOVED:
            if src is not None:
                self._deleted(src)
            dest = self._relative(event.dest_path) if event.dest_path else None
            if dest is not None:
                self._created(dest, event.is_directory)
        elif src is None:
            return
        elif event.event_type == EventType.CREATED:
            self._created(src, event.is_directory)
        elif event.event_type == EventType.DELETED:
            self._deleted(src)
        elif event.is_directory:
            # Directory mtime changes whenever an entry inside it does
            self.stats['directory_changes_skipped'] += 1
        else:
            self.known_files.add(src)
            self.tracker.set_state(src, FileState.CHANGED)

    def _relative(self, path: str) -> Optional[str]:
        """Root-relative path, or None for paths to skip"""
        rel = relative_path(self.root, path)
        if not is_within(rel):
            logger.debug(f"Event outside of {self.root}: {path}")
            return None
        if self.registry.is_ignored(rel):
            self.stats['events_ignored'] += 1
            return None
        return rel

    def _deleted(self, path: str):
        """Mark path DELETED along with every known file below it"""
        self.tracker.set_state(path, FileState.DELETED)
        self.known_files.discard(path)

        prefix = path + os.sep
        for child in sorted(f for f in self.known_files if f.startswith(prefix)):
            self.known_files.discard(child)
            self.tracker.set_state(child, FileState.DELETED)

    def _created(self, path: str, is_directory: bool):
        if not (is_directory or os.path.isdir(absolute_path(self.root, path))):
            self.known_files.add(path)
            self.tracker.set_state(path, FileState.CHANGED)
            return

        try:
            added = self._watch_tree(path, replace=True, mark_files=True)
        except (TraversalError, SubscriptionError) as e:
            if not isinstance(e.cause, FileNotFoundError):
                raise
            logger.warning(f"Directory vanished before it could be watched: {path}")
            return
        logger.debug(f"New directory {path}: {added} directories watched")

    def get_stats(self) -> Dict[str, Any]:
        """Get watcher statistics"""
        return {
            **self.stats,
            'watched_directories': len(self.watches),
            'known_files': len(self.known_files),
            'handler': self.handler.get_stats(),
        }
