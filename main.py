"""Main entry point for the agro-climate core."""

import sys
from datetime import date, timedelta

from loguru import logger

from src.utils.errors import AgroClimateError

USAGE = "Usage: python main.py [cycle|history|predict] <location> [days] [--json]"


def build_scanner():
    from src.core import (
        AgroClimateScanner,
        AlertEvaluator,
        AlertMonitor,
        InMemoryDedupStore,
        LoggingDispatcher,
        PredictionEngine,
        RecommendationGenerator,
    )
    from src.data_sources import FallbackObservationStore, OpenMeteoClient
    from src.ml import PatternAnalyzer

    store = FallbackObservationStore(primary=OpenMeteoClient())
    analyzer = PatternAnalyzer()
    return AgroClimateScanner(
        store=store,
        analyzer=analyzer,
        engine=PredictionEngine(store, analyzer=analyzer),
        generator=RecommendationGenerator(),
        monitor=AlertMonitor(AlertEvaluator(), InMemoryDedupStore()),
        dispatcher=LoggingDispatcher(),
    )


def main():
    """Run the application."""
    args = [a for a in sys.argv[1:] if a != "--json"]
    audience = "researcher" if "--json" in sys.argv else "farmer"
    if not args:
        print(USAGE)
        sys.exit(1)

    from src.core import format_output
    from src.utils.config import settings
    from src.utils.logger import setup_logging

    setup_logging()

    cmd = args[0]
    location = args[1] if len(args) > 1 else settings.scanner.default_location

    try:
        days = int(args[2]) if len(args) > 2 else None
    except ValueError:
        print(USAGE)
        sys.exit(1)

    scanner = build_scanner()
    try:
        if cmd == "cycle":
            result = scanner.run_cycle(location)
            print(format_output(result, audience))

        elif cmd == "history":
            end = date.today()
            start = end - timedelta(days=days or settings.scanner.history_days)
            patterns = scanner.engine.analyze_history(location, start, end)
            print(format_output(patterns, audience, location=location))

        elif cmd == "predict":
            run = scanner.engine.predict_range(location, date.today(), days or settings.scanner.horizon_days)
            print(format_output(run, audience))

        else:
            print(f"Unknown command: {cmd}")
            sys.exit(1)
    except AgroClimateError as e:
        logger.error(f"{cmd} failed for {location}: {e}")
        sys.exit(1)
    finally:
        scanner.store.close()


if __name__ == "__main__":
    main()
