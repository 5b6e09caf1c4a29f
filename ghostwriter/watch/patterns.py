# ghostwriter/watch/patterns.py

"""
Pattern registry for handler and ignore rules

Patterns are Python regular expressions tested with ``re.search``: a pattern
matches anywhere in the relative path unless it is anchored with ``^``/``$``.
``content/.*\\.md`` therefore also matches ``old/content/x.md``; anchor it as
``^content/.*\\.md$`` when an exact path prefix is meant.
"""
import re
import logging
from dataclasses import dataclass
from typing import Callable, List, Pattern, Dict, Any

from .events import FileState
from ..errors import PatternCompileError, RegistrationError

logger = logging.getLogger(__name__)

Handler = Callable[[str, FileState], None]


def compile_pattern(pattern: str) -> Pattern:
    """
    Compile a path pattern

    Args:
        pattern: Regular expression source

    Returns:
        Compiled pattern

    Raises:
        PatternCompileError: If the pattern does not compile
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternCompileError(pattern, str(e)) from e


@dataclass(frozen=True)
class MatchRule:
    """Handler invoked for paths matching a pattern"""
    pattern: Pattern
    handler: Handler

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None


@dataclass(frozen=True)
class IgnoreRule:
    """Paths matching an ignore rule are never tracked or dispatched"""
    pattern: Pattern

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None


class PatternRegistry:
    """
    Ordered handler and ignore rules for one watch session

    Registration must finish before the watch loop starts. The session
    freezes the registry when it starts watching and later registrations
    raise RegistrationError.
    """

    def __init__(self):
        self.match_rules: List[MatchRule] = []
        self.ignore_rules: List[IgnoreRule] = []
        self.frozen = False

    def register_handler(self, pattern: str, handler: Handler) -> MatchRule:
        """
        Register a handler for paths matching pattern

        Args:
            pattern: Regular expression matched against relative paths
            handler: Callable invoked with (path, state)

        Returns:
            The registered rule
        """
        self._check_not_frozen()
        rule = MatchRule(compile_pattern(pattern), handler)
        self.match_rules.append(rule)
        logger.debug(f"Registered handler for pattern: {pattern}")
        return rule

    def register_ignore(self, pattern: str) -> IgnoreRule:
        """
        Register an ignore pattern

        Args:
            pattern: Regular expression matched against relative paths

        Returns:
            The registered rule
        """
        self._check_not_frozen()
        rule = IgnoreRule(compile_pattern(pattern))
        self.ignore_rules.append(rule)
        logger.debug(f"Registered ignore pattern: {pattern}")
        return rule

    def matches_any_rule(self, path: str) -> bool:
        return any(rule.matches(path) for rule in self.match_rules)

    def is_ignored(self, path: str) -> bool:
        return any(rule.matches(path) for rule in self.ignore_rules)

    def handlers_for(self, path: str) -> List[Handler]:
        """All handlers whose pattern matches path, in registration order"""
        return [rule.handler for rule in self.match_rules if rule.matches(path)]

    def freeze(self):
        if not self.frozen:
            self.frozen = True
            logger.debug(
                f"Pattern registry frozen with {len(self.match_rules)} handler "
                f"and {len(self.ignore_rules)} ignore rules"
            )

    def _check_not_frozen(self):
        if self.frozen:
            raise RegistrationError("Cannot register rules while a watch loop is running")

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics"""
        return {
            'handler_rules': len(self.match_rules),
            'ignore_rules': len(self.ignore_rules),
            'frozen': self.frozen,
        }
