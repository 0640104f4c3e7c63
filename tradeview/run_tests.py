"""
Run the project's unittests.

Usage: python -m tradeview.run_tests [--test tradeview.test.test_watchlist_store]

Tests need neither a display nor a running API: widgets are replaced by
small fakes and HTTP sessions by in-memory stand-ins.
"""
import os
import sys
import argparse
import unittest


def main():
    this_dir = os.path.dirname(os.path.abspath(__file__))
    parent_dir = os.path.dirname(this_dir)
    # Make the repo root importable so `import tradeview.*` works without installing
    sys.path.insert(0, parent_dir)

    parser = argparse.ArgumentParser()
    parser.add_argument("--test", help="Module or test name to run (eg: tradeview.test.test_symbol_search or tradeview.test.test_symbol_search.SymbolSearchControllerTests.test_debounce)")
    parser.add_argument("--pattern", help="Discovery pattern to use in tradeview/test (default: 'test_*.py')", default="test_*.py")
    args = parser.parse_args()

    loader = unittest.TestLoader()
    if args.test:
        suite = loader.loadTestsFromName(args.test)
    else:
        suite = loader.discover(os.path.join(this_dir, "test"), pattern=args.pattern, top_level_dir=parent_dir)

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    sys.exit(0 if result.wasSuccessful() else 1)


if __name__ == "__main__":
    main()
