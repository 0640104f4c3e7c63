import unittest

from tradeview.components.symbol_search import (
    EMPTY,
    HIDDEN,
    RESULTS,
    SEARCHING,
    SymbolSearchController,
)
from tradeview.core.http import ApiError
from tradeview.modules.data.symbols import SearchResult
from tradeview.modules.data.watchlist import WatchlistStore
from tradeview.test.fakes import DeferredRunner, FakeScheduler, ImmediateRunner, MemoryStorage

EURUSD = SearchResult(1, "EURUSD", "Euro / US Dollar", "EUR", "USD", "Forex")
AUDUSD = SearchResult(2, "AUDUSD", "Australian Dollar / US Dollar", "AUD", "USD", "Forex")


class FakeSearch:
    """Async search stand-in that records the queries it was asked for."""

    def __init__(self, answers=None, error=None):
        self.answers = answers or {}
        self.error = error
        self.queries = []

    async def __call__(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.answers.get(query, [])


class SymbolSearchControllerTests(unittest.TestCase):
    def make(self, search, runner=None):
        self.scheduler = FakeScheduler()
        self.runner = runner or ImmediateRunner()
        self.store = WatchlistStore(MemoryStorage(), defaults=[])
        self.notes = []
        self.changes = 0

        def on_change():
            self.changes += 1

        return SymbolSearchController(
            self.scheduler,
            self.runner,
            self.store,
            search_func=search,
            on_change=on_change,
            notify=self.notes.append,
            debounce_ms=300,
        )

    def test_keystrokes_are_debounced(self):
        search = FakeSearch({"EUR": [EURUSD]})
        ctl = self.make(search)
        ctl.set_query("E")
        ctl.set_query("EU")
        ctl.set_query("EUR")
        self.assertEqual(len(self.scheduler.pending), 1)
        self.assertEqual(len(self.scheduler.cancelled), 2)
        self.assertEqual(search.queries, [])
        ms, _func, _args = next(iter(self.scheduler.pending.values()))
        self.assertEqual(ms, 300)

        self.scheduler.fire_all()
        self.assertEqual(search.queries, ["EUR"])
        self.assertEqual(ctl.results, [EURUSD])
        self.assertTrue(ctl.show_results)
        self.assertFalse(ctl.is_searching)
        self.assertEqual(ctl.view_state, RESULTS)

    def test_empty_query_clears_without_request(self):
        search = FakeSearch({"EUR": [EURUSD]})
        ctl = self.make(search)
        ctl.set_query("EUR")
        self.scheduler.fire_all()

        ctl.set_query("   ")
        self.assertEqual(self.scheduler.pending, {})
        self.assertEqual(search.queries, ["EUR"])
        self.assertEqual(ctl.results, [])
        self.assertFalse(ctl.show_results)
        self.assertEqual(ctl.view_state, HIDDEN)

    def test_empty_result_list_still_shows_panel(self):
        ctl = self.make(FakeSearch())
        ctl.set_query("ZZZ")
        self.scheduler.fire_all()
        self.assertTrue(ctl.show_results)
        self.assertEqual(ctl.view_state, EMPTY)

    def test_in_flight_state(self):
        runner = DeferredRunner()
        ctl = self.make(FakeSearch({"EUR": [EURUSD]}), runner)
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        self.assertTrue(ctl.is_searching)
        self.assertEqual(ctl.view_state, SEARCHING)
        runner.complete(0)
        self.assertFalse(ctl.is_searching)

    def test_stale_response_is_dropped(self):
        runner = DeferredRunner()
        ctl = self.make(FakeSearch({"EU": [EURUSD, AUDUSD], "EUR": [EURUSD]}), runner)
        ctl.set_query("EU")
        self.scheduler.fire_all()
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        self.assertEqual(len(runner.jobs), 2)

        # the newer request answers first, the older one arrives late
        runner.complete(1)
        runner.complete(0)
        self.assertEqual(ctl.results, [EURUSD])
        self.assertEqual(ctl.query, "EUR")

    def test_response_for_previous_query_is_dropped_while_debouncing(self):
        runner = DeferredRunner()
        ctl = self.make(FakeSearch({"EU": [EURUSD, AUDUSD], "EUR": [EURUSD]}), runner)
        ctl.set_query("EU")
        self.scheduler.fire_all()
        ctl.set_query("EUR")

        # "EU" answers while the "EUR" timer is still pending
        runner.complete(0)
        self.assertEqual(ctl.query, "EUR")
        self.assertEqual(ctl.results, [])
        self.assertFalse(ctl.show_results)
        self.assertEqual(len(self.scheduler.pending), 1)

        self.scheduler.fire_all()
        runner.complete(1)
        self.assertEqual(ctl.results, [EURUSD])
        self.assertFalse(ctl.is_searching)

    def test_runner_failure_resets_searching(self):
        def broken_runner(coro, callback=None, errback=None):
            raise RuntimeError("loop is closed")

        ctl = self.make(FakeSearch({"EUR": [EURUSD]}), broken_runner)
        ctl.set_query("EUR")
        with self.assertRaises(RuntimeError):
            self.scheduler.fire_all()
        self.assertFalse(ctl.is_searching)
        self.assertNotEqual(ctl.view_state, SEARCHING)

    def test_response_after_clearing_is_dropped(self):
        runner = DeferredRunner()
        ctl = self.make(FakeSearch({"EUR": [EURUSD]}), runner)
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        ctl.set_query("")
        runner.complete(0)
        self.assertEqual(ctl.results, [])
        self.assertFalse(ctl.show_results)

    def test_failure_clears_results_and_notifies(self):
        search = FakeSearch({"EUR": [EURUSD]})
        ctl = self.make(search)
        ctl.set_query("EUR")
        self.scheduler.fire_all()

        search.error = ApiError("Request failed with status 500", status=500)
        ctl.set_query("EURO")
        self.scheduler.fire_all()
        self.assertEqual(ctl.results, [])
        self.assertFalse(ctl.is_searching)
        self.assertEqual(ctl.view_state, HIDDEN)
        self.assertEqual(len(self.notes), 1)
        self.assertEqual(self.notes[0].title, "Search failed")
        self.assertTrue(self.notes[0].destructive)
        self.assertEqual(search.queries, ["EUR", "EURO"])

    def test_select_adds_once_and_clears_query(self):
        ctl = self.make(FakeSearch({"EUR": [EURUSD]}))
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        ctl.select(ctl.results[0])

        self.assertEqual(self.store.symbols, ("EURUSD",))
        self.assertEqual(ctl.query, "")
        self.assertFalse(ctl.show_results)

        ctl.set_query("EUR")
        self.scheduler.fire_all()
        ctl.select(ctl.results[0])
        self.assertEqual(self.store.symbols, ("EURUSD",))

    def test_dismiss_keeps_query(self):
        ctl = self.make(FakeSearch({"EUR": [EURUSD]}))
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        ctl.dismiss()
        self.assertFalse(ctl.show_results)
        self.assertEqual(ctl.query, "EUR")
        self.assertEqual(ctl.results, [EURUSD])

    def test_dispose_cancels_timer_and_drops_late_responses(self):
        runner = DeferredRunner()
        ctl = self.make(FakeSearch({"EUR": [EURUSD], "EURO": []}), runner)
        ctl.set_query("EUR")
        self.scheduler.fire_all()
        ctl.set_query("EURO")
        ctl.dispose()
        self.assertEqual(self.scheduler.pending, {})

        changes = self.changes
        runner.complete(0)
        self.assertEqual(ctl.results, [])
        self.assertEqual(self.changes, changes)
        ctl.set_query("GBP")
        self.assertEqual(self.scheduler.pending, {})


if __name__ == "__main__":
    unittest.main()
