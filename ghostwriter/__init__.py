"""
ghostwriter - small build systems driven by file system changes

Register handlers for path patterns, mark paths dirty from a full-tree scan,
and keep dispatching as files change::

    from ghostwriter import WatchSession, FileState

    session = WatchSession("site")
    session.ignore(r"^build")

    def copy_image(path, state):
        if state is FileState.DELETED:
            ...  # remove the copy from build/
        else:
            ...  # copy path into build/

    session.match(r"^content/.*\\.(jpe?g|png|gif)$", copy_image)

    # Rebuild every page when a template changes
    session.match(r"^design/.*\\.html$",
                  lambda path, state: session.trigger(r"^content/.*\\.md$"))

    session.trigger(".*")
    session.dispatch()
    session.run()

Paths handed to handlers are relative to the session root.
"""
from .watch import (
    FileState,
    WatchSession,
    PatternRegistry,
    DirtyStateTracker,
    Dispatcher,
    RecursiveWatcher,
    print_transition,
)
from .errors import (
    GhostwriterError,
    PatternCompileError,
    InvalidPatternError,
    PatternError,
    TraversalError,
    SubscriptionError,
    HandlerError,
    WatchError,
    RegistrationError,
)
from .utils.config import Config, WatchConfig, LoggingConfig, load_config

__version__ = "0.1.0"

__all__ = [
    'FileState',
    'WatchSession',
    'PatternRegistry',
    'DirtyStateTracker',
    'Dispatcher',
    'RecursiveWatcher',
    'print_transition',
    'GhostwriterError',
    'PatternCompileError',
    'InvalidPatternError',
    'PatternError',
    'TraversalError',
    'SubscriptionError',
    'HandlerError',
    'WatchError',
    'RegistrationError',
    'Config',
    'WatchConfig',
    'LoggingConfig',
    'load_config',
]
