"""
Operator CLI for the mandi price forecaster.

Examples:
    python -m mandi_forecast.scripts.run_forecaster run
    python -m mandi_forecast.scripts.run_forecaster predict wheat Maharashtra --arrivals 250
"""
from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from types import FrameType
from typing import Optional

from loguru import logger

from mandi_forecast.engine.service import ForecastService, build_service
from mandi_forecast.errors import ForecastError
from mandi_forecast.utils.logging import setup_logging


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _run_forever(service: ForecastService) -> int:
    stop = threading.Event()

    def _handle_signal(signum: int, _frame: Optional[FrameType]) -> None:
        logger.warning(f"Shutdown requested ({signal.Signals(signum).name}); finishing current cycle")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    service.start()
    while not stop.wait(1.0):
        pass
    service.stop(timeout=None)
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Mandi price collection, training and forecasting.")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Collect now, then every COLLECT_INTERVAL_MINUTES until interrupted.")
    sub.add_parser("collect", help="Run one collection cycle (trains once the corpus is large enough).")
    sub.add_parser("train", help="Train on the current corpus without collecting.")
    sub.add_parser("manual-train", help="Collect fresh data, then train.")
    sub.add_parser("comprehensive", help="Collect the extended crop list for both focus states, then train.")
    sub.add_parser("status", help="Print corpus and model status.")
    predict = sub.add_parser("predict", help="Forecast the price of a commodity in a state.")
    predict.add_argument("commodity")
    predict.add_argument("state")
    predict.add_argument("--arrivals", type=float, default=None, help="Override expected arrivals.")
    predict.add_argument("--insights", action="store_true", help="Include trend and volatility insights.")
    args = parser.parse_args(argv)

    setup_logging()
    service = build_service()
    try:
        if args.command == "run":
            return _run_forever(service)
        if args.command == "collect":
            result = service.collect_once()
            _print({"pointsCollected": result.report.points_collected, "trained": result.trained})
        elif args.command == "train":
            model = service.train_model()
            _print(model.to_dict() if model else {"trained": False, "reason": "insufficient data"})
        elif args.command == "manual-train":
            result = service.manual_train()
            _print(result.model.to_dict() if result.model else {"trained": False, "reason": "insufficient data"})
        elif args.command == "comprehensive":
            _print(service.train_comprehensive())
        elif args.command == "status":
            _print(service.get_status())
        elif args.command == "predict":
            extra = {"arrivals": args.arrivals} if args.arrivals is not None else None
            if args.insights:
                _print(service.price_insights(args.commodity, args.state).to_dict())
            else:
                _print(service.predict(args.commodity, args.state, extra).to_dict())
        return 0
    except ForecastError as exc:
        logger.error(f"{args.command} failed: {exc}")
        return 1
    except Exception:
        logger.exception(f"{args.command} failed.")
        return 1
    finally:
        if args.command != "run":
            service.stop()


if __name__ == "__main__":
    sys.exit(main())
