import argparse
import asyncio
import os
from pathlib import Path

from detachable.core import log
from detachable.core.metrics import emit_now
from detachable.scenario import FetchScenario, load_scenario, run_scenario

DEFAULT_CONFIG = Path(__file__).with_name("fetch_scenario.yaml")


def main():
    ap = argparse.ArgumentParser(description="Detach a callback before (or after) a simulated fetch answers")
    ap.add_argument("--config", default=str(DEFAULT_CONFIG), help="Scenario YAML")
    ap.add_argument("--fetch-ms", type=float, default=None, help="Override fetch_delay_ms")
    ap.add_argument("--detach-ms", type=float, default=None, help="Override detach_delay_ms")
    ap.add_argument("--no-detach", action="store_true", help="Never detach the callback")
    ap.add_argument("--log-json", action="store_true", help="Log in JSON")
    args = ap.parse_args()

    os.environ.setdefault("LOG_LEVEL", "INFO")
    os.environ["LOG_JSON"] = "1" if args.log_json else os.environ.get("LOG_JSON", "0")
    log.setup()

    sc = load_scenario(args.config)
    overrides = {}
    if args.fetch_ms is not None:
        overrides["fetch_delay_ms"] = args.fetch_ms
    if args.detach_ms is not None:
        overrides["detach_delay_ms"] = args.detach_ms
    if args.no_detach:
        overrides["detach_delay_ms"] = None
    if overrides:
        sc = FetchScenario(**{**vars(sc), **overrides})

    asyncio.run(run_scenario(sc))
    emit_now(logger=log.get("metrics"), json_mode=(os.getenv("LOG_JSON", "0") == "1"))


if __name__ == "__main__":
    main()
