# ghostwriter/errors.py

"""
Exceptions raised by ghostwriter
"""
from typing import Optional


class GhostwriterError(Exception):
    """Base class for all ghostwriter errors"""


class PatternCompileError(GhostwriterError, ValueError):
    """A handler, ignore or trigger pattern is not a valid regular expression"""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


InvalidPatternError = PatternCompileError
PatternError = PatternCompileError


class TraversalError(GhostwriterError):
    """Walking the watched tree failed"""

    def __init__(self, path: Optional[str], cause: OSError):
        super().__init__(f"Cannot walk {path}: {cause}")
        self.path = path
        self.cause = cause


class SubscriptionError(GhostwriterError):
    """The observer refused to watch a directory"""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Cannot watch {path}: {cause}")
        self.path = path
        self.cause = cause


class HandlerError(GhostwriterError):
    """A registered handler raised while being dispatched"""

    def __init__(self, path: str, state, cause: BaseException):
        super().__init__(f"Handler failed for {path} ({state.value}): {cause}")
        self.path = path
        self.state = state
        self.cause = cause


class WatchError(GhostwriterError):
    """The file system event channel failed and watching cannot continue"""


class RegistrationError(GhostwriterError):
    """Rules were registered after the watch loop started"""
