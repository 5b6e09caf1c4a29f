# ghostwriter/watch/monitor.py

"""
Watch session: registration, triggering and the driver loop
"""
import asyncio
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

from watchdog.observers.api import BaseObserver

from .events import FileState, WatchEvent
from .patterns import PatternRegistry, MatchRule, IgnoreRule, Handler
from .tracker import DirtyStateTracker, TransitionCallback, print_transition
from .dispatcher import Dispatcher
from .watcher import RecursiveWatcher
from ..errors import GhostwriterError, WatchError
from ..utils.config import Config, WatchConfig, LoggingConfig
from ..utils.logger import setup_logging, log_exception

logger = logging.getLogger(__name__)

_WAKE = object()


class WatchSession:
    """
    Everything one watch needs: rules, pending state, dispatcher and watcher

    Register handlers and ignore patterns first, optionally trigger and
    dispatch an initial build, then call watch() (or run()). Registration
    is refused once watching has started. A session watches at most once.

    Example::

        session = WatchSession("site")
        session.ignore(r"^build/")
        session.match(r"^content/.*\\.md$", render_page)
        session.match(r"^design/.*\\.html$",
                      lambda path, state: session.trigger(r"^content/.*\\.md$"))
        session.trigger(".*")
        session.dispatch()
        session.run()
    """

    def __init__(self, root: Union[str, Path, None] = None,
                 config: Optional[WatchConfig] = None,
                 on_transition: Optional[TransitionCallback] = print_transition,
                 observer: Optional[BaseObserver] = None,
                 logging_config: Optional[LoggingConfig] = None):
        """
        Initialize watch session

        Args:
            root: Directory to watch, overrides config.root
            config: Watch configuration
            on_transition: Called with (path, state) on every state change
            observer: Watchdog observer to use instead of creating one
            logging_config: Logging set up by run(), if given
        """
        self.config = config or WatchConfig()
        self.root = os.path.abspath(root if root is not None else self.config.root)
        self.logging_config = logging_config

        self.registry = PatternRegistry()
        for pattern in self.config.ignore_patterns:
            self.registry.register_ignore(pattern)

        self.tracker = DirtyStateTracker(
            self.root,
            self.registry,
            on_transition=on_transition,
            track_unmatched=self.config.track_unmatched
        )
        self.dispatcher = Dispatcher(self.registry, self.tracker)
        self.watcher = RecursiveWatcher(
            self.root,
            self.registry,
            self.tracker,
            sink=self._enqueue,
            observer=observer,
            use_polling=self.config.use_polling,
            poll_interval=self.config.observer_timeout
        )

        # Event delivery, set while watching
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._overflowed = False
        self._stopping = False

        self.is_running = False
        self.stats = {
            'events_queued': 0,
            'events_dropped': 0,
            'rescans': 0,
            'ticks': 0,
        }

        logger.info(f"WatchSession initialized for {self.root} (mode: {self.config.mode})")

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "WatchSession":
        """Create a session from a full configuration"""
        return cls(config=config.watch, logging_config=config.logging, **kwargs)

    # ========== Registration ==========

    def match(self, pattern: str, handler: Handler) -> MatchRule:
        """Run handler(path, state) for dirty paths matching pattern"""
        return self.registry.register_handler(pattern, handler)

    def ignore(self, pattern: str) -> IgnoreRule:
        """Never track or dispatch paths matching pattern"""
        return self.registry.register_ignore(pattern)

    # ========== Triggering ==========

    def set_state(self, path: str, state: FileState):
        self.tracker.set_state(path, state)

    def set_states_matching(self, pattern: str, state: FileState) -> int:
        return self.tracker.set_states_matching(pattern, state)

    def trigger(self, pattern: str, deleted: bool = False) -> int:
        return self.tracker.trigger(pattern, deleted)

    def dispatch(self) -> int:
        return self.dispatcher.dispatch()

    # ========== Running ==========

    async def watch(self):
        """
        Watch the tree and dispatch until stopped or a fatal error occurs

        Raises:
            WatchError: If the observer dies or the session already ran
            TraversalError: If the tree cannot be walked
            SubscriptionError: If a directory cannot be watched
            HandlerError: If a handler raises
        """
        if self.is_running or self._loop is not None:
            raise WatchError("WatchSession is already watching")

        self.registry.freeze()
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.config.max_events)
        self.is_running = True

        try:
            self.watcher.start()
            added = self.watcher.watch_recursive(".")
            logger.info(f"Watching {added} directories under {self.root}")

            if self.config.initial_pattern:
                self.trigger(self.config.initial_pattern)
            self.dispatch()

            await self._run_loop()

        finally:
            self.is_running = False
            self.watcher.stop()

    def run(self):
        """Blocking wrapper around watch() for build scripts"""
        if self.logging_config:
            setup_logging(
                log_level=self.logging_config.level,
                log_file=self.logging_config.file,
                log_format=self.logging_config.format
            )

        try:
            asyncio.run(self.watch())
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping watch")
        except GhostwriterError as e:
            log_exception(logger, e, "Watch stopped")
            raise

    def stop(self):
        """Ask a running watch() to return; safe to call from any thread"""
        self._stopping = True
        self._call_in_loop(self._put_event, _WAKE)

    async def _run_loop(self):
        timeout = self.config.poll_interval
        poll = self.config.mode == "poll"

        while not self._stopping:
            try:
                first = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                first = None

            if not self.watcher.is_alive():
                raise WatchError("File system observer stopped unexpectedly")

            if self._stopping:
                break

            if self._overflowed:
                self._rescan()

            events = self._drain(first)
            for event in events:
                self.watcher.translate(event)

            if events:
                self.dispatch()
            elif poll:
                self.stats['ticks'] += 1
                self.dispatch()

        logger.info("Watch stopped")

    def _drain(self, first) -> list:
        """Collect first plus everything already queued behind it"""
        events = []
        item = first
        while True:
            if isinstance(item, WatchEvent):
                events.append(item)
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return events

    def _rescan(self):
        """Recover from dropped events by treating the whole tree as changed"""
        self._overflowed = False
        self.stats['rescans'] += 1
        logger.warning("Event queue overflowed, rescanning the whole tree")

        self.watcher.rescan()
        self.trigger(".*")

    # ========== Event delivery ==========

    def _enqueue(self, event: WatchEvent):
        """Observer thread entry point"""
        self._call_in_loop(self._put_event, event)

    def _call_in_loop(self, callback, *args):
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop already closed, nothing left to deliver to
            logger.debug("Event loop closed, dropping event")

    def _put_event(self, item):
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            if item is _WAKE:
                return
            if not self._overflowed:
                logger.warning(f"Event queue full ({self.config.max_events}), dropping events")
            self._overflowed = True
            self.stats['events_dropped'] += 1
            return

        if item is not _WAKE:
            self.stats['events_queued'] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get session statistics"""
        return {
            'root': self.root,
            'is_running': self.is_running,
            'mode': self.config.mode,
            **self.stats,
            'registry': self.registry.get_stats(),
            'tracker': self.tracker.get_stats(),
            'dispatcher': self.dispatcher.get_stats(),
            'watcher': self.watcher.get_stats(),
        }
