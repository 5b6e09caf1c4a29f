from __future__ import annotations

import unittest

from ghostwriter.errors import InvalidPatternError, PatternCompileError, RegistrationError
from ghostwriter.watch.events import FileState
from ghostwriter.watch.patterns import PatternRegistry, compile_pattern


def _noop(path, state):
    return None


class PatternRegistryTests(unittest.TestCase):
    def test_invalid_handler_pattern_raises_and_leaves_registry_untouched(self) -> None:
        registry = PatternRegistry()

        with self.assertRaises(PatternCompileError) as ctx:
            registry.register_handler("content/(.*", _noop)

        self.assertEqual(ctx.exception.pattern, "content/(.*")
        self.assertIsInstance(ctx.exception, ValueError)
        self.assertEqual(registry.match_rules, [])

    def test_invalid_ignore_pattern_raises(self) -> None:
        registry = PatternRegistry()

        with self.assertRaises(InvalidPatternError):
            registry.register_ignore("[unclosed")

        self.assertEqual(registry.ignore_rules, [])

    def test_handlers_for_returns_every_match_in_registration_order(self) -> None:
        registry = PatternRegistry()
        calls = []
        first = lambda path, state: calls.append("first")
        second = lambda path, state: calls.append("second")
        other = lambda path, state: calls.append("other")

        registry.register_handler(r"\.md$", first)
        registry.register_handler(r"^design/", other)
        registry.register_handler(r"^content/", second)

        self.assertEqual(registry.handlers_for("content/index.md"), [first, second])
        self.assertEqual(registry.handlers_for("design/header.html"), [other])
        self.assertEqual(registry.handlers_for("README"), [])

    def test_unanchored_patterns_match_anywhere_in_the_path(self) -> None:
        registry = PatternRegistry()
        registry.register_handler(r"content/.*\.md", _noop)

        self.assertTrue(registry.matches_any_rule("content/a.md"))
        self.assertTrue(registry.matches_any_rule("old/content/a.md"))

        anchored = PatternRegistry()
        anchored.register_handler(r"^content/.*\.md$", _noop)
        self.assertFalse(anchored.matches_any_rule("old/content/a.md"))
        self.assertFalse(anchored.matches_any_rule("content/a.md.bak"))

    def test_is_ignored_checks_every_ignore_rule(self) -> None:
        registry = PatternRegistry()
        registry.register_ignore(r"^build")
        registry.register_ignore(r"~$")

        self.assertTrue(registry.is_ignored("build/index.html"))
        self.assertTrue(registry.is_ignored("content/index.md~"))
        self.assertFalse(registry.is_ignored("content/index.md"))

    def test_frozen_registry_refuses_new_rules(self) -> None:
        registry = PatternRegistry()
        registry.register_handler(r"^a$", _noop)
        registry.freeze()

        with self.assertRaises(RegistrationError):
            registry.register_handler(r"^b$", _noop)
        with self.assertRaises(RegistrationError):
            registry.register_ignore(r"^c$")

        self.assertEqual(registry.get_stats(), {'handler_rules': 1, 'ignore_rules': 0, 'frozen': True})

    def test_compile_pattern_returns_regex(self) -> None:
        regex = compile_pattern(r"^a\.txt$")

        self.assertIsNotNone(regex.search("a.txt"))
        self.assertIsNone(regex.search("ab.txt"))

    def test_handler_receives_path_and_state(self) -> None:
        registry = PatternRegistry()
        seen = []
        registry.register_handler(r"^a$", lambda path, state: seen.append((path, state)))

        for handler in registry.handlers_for("a"):
            handler("a", FileState.DELETED)

        self.assertEqual(seen, [("a", FileState.DELETED)])
