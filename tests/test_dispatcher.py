from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from ghostwriter.errors import HandlerError
from ghostwriter.watch.dispatcher import Dispatcher
from ghostwriter.watch.events import FileState
from ghostwriter.watch.patterns import PatternRegistry
from ghostwriter.watch.tracker import DirtyStateTracker


class DispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.registry = PatternRegistry()
        self.tracker = DirtyStateTracker(self.root, self.registry, on_transition=None)
        self.dispatcher = Dispatcher(self.registry, self.tracker)
        self.calls = []

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def record(self, name: str):
        return lambda path, state: self.calls.append((name, path, state))

    def test_single_path_is_dispatched_once(self) -> None:
        self.registry.register_handler(r"^a\.txt$", self.record("a"))

        self.tracker.set_state("a.txt", FileState.CHANGED)
        count = self.dispatcher.dispatch()

        self.assertEqual(count, 1)
        self.assertEqual(self.calls, [("a", "a.txt", FileState.CHANGED)])
        self.assertEqual(len(self.tracker), 0)

    def test_every_matching_handler_runs_in_registration_order(self) -> None:
        self.registry.register_handler(r"\.md$", self.record("first"))
        self.registry.register_handler(r"^content/", self.record("second"))

        self.tracker.set_state("content/a.md", FileState.DELETED)
        self.dispatcher.dispatch()

        self.assertEqual(
            self.calls,
            [("first", "content/a.md", FileState.DELETED), ("second", "content/a.md", FileState.DELETED)],
        )

    def test_dispatch_drains_everything(self) -> None:
        self.registry.register_handler(r".*", self.record("all"))
        for name in ("a", "b", "c"):
            self.tracker.set_state(name, FileState.CHANGED)
        self.tracker.set_state("b", FileState.DELETED)

        self.assertEqual(self.dispatcher.dispatch(), 3)

        self.assertEqual(len(self.tracker), 0)
        self.assertEqual(
            sorted(self.calls),
            [("all", "a", FileState.CHANGED), ("all", "b", FileState.DELETED), ("all", "c", FileState.CHANGED)],
        )
        self.assertEqual(self.dispatcher.dispatch(), 0)

    def test_handler_never_sees_its_own_path_dirty(self) -> None:
        seen = []
        self.registry.register_handler(r"^a$", lambda path, state: seen.append(self.tracker.state_of(path)))

        self.tracker.set_state("a", FileState.CHANGED)
        self.dispatcher.dispatch()

        self.assertEqual(seen, [FileState.CLEAN])

    def test_paths_dirtied_by_a_handler_run_in_the_same_dispatch(self) -> None:
        for name in ("x.md", "y.md", "header.html"):
            (self.root / name).write_text("x\n", encoding="utf-8")

        self.registry.register_handler(
            r"\.html$",
            lambda path, state: self.tracker.set_states_matching(r"\.md$", FileState.CHANGED),
        )
        self.registry.register_handler(r"\.md$", self.record("page"))

        self.tracker.set_state("header.html", FileState.CHANGED)
        count = self.dispatcher.dispatch()

        self.assertEqual(count, 3)
        self.assertEqual(
            sorted(self.calls),
            [("page", "x.md", FileState.CHANGED), ("page", "y.md", FileState.CHANGED)],
        )
        self.assertEqual(len(self.tracker), 0)

    def test_failing_handler_stops_dispatch_and_keeps_the_rest_pending(self) -> None:
        def explode(path, state):
            raise RuntimeError("pandoc failed")

        self.registry.register_handler(r"^bad$", explode)
        self.registry.register_handler(r"^good", self.record("good"))

        self.tracker.set_state("bad", FileState.CHANGED)
        self.tracker.set_state("good1", FileState.CHANGED)
        self.tracker.set_state("good2", FileState.CHANGED)

        with self.assertRaises(HandlerError) as ctx:
            self.dispatcher.dispatch()

        self.assertEqual(ctx.exception.path, "bad")
        self.assertEqual(ctx.exception.state, FileState.CHANGED)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertNotIn("bad", self.tracker)
        self.assertEqual(set(self.tracker.pending()), {"good1", "good2"})
        self.assertEqual(self.calls, [])

        self.assertEqual(self.dispatcher.dispatch(), 2)
        self.assertEqual(len(self.tracker), 0)

    def test_ignored_build_directory_is_never_dispatched(self) -> None:
        for name in ("build/x", "src/y"):
            (self.root / name).parent.mkdir(parents=True, exist_ok=True)
            (self.root / name).write_text("x\n", encoding="utf-8")
        self.registry.register_ignore(r"^build/")
        self.registry.register_handler(r"^src/", self.record("src"))
        self.registry.register_handler(r"^build/", self.record("build"))

        self.tracker.set_states_matching(r".*", FileState.CHANGED)
        self.dispatcher.dispatch()

        self.assertEqual(self.calls, [("src", "src/y", FileState.CHANGED)])

    def test_nested_dispatch_from_a_handler_is_a_noop(self) -> None:
        nested = []
        self.registry.register_handler(r"^a$", lambda path, state: nested.append(self.dispatcher.dispatch()))

        self.tracker.set_state("a", FileState.CHANGED)
        self.dispatcher.dispatch()

        self.assertEqual(nested, [0])
        self.assertFalse(self.dispatcher.is_dispatching)
