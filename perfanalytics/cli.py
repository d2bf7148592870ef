from __future__ import annotations

import argparse
import json
import os
import sys
import time
from typing import Any, Dict, List, Optional

from perfanalytics.core.analytics.sinks import MemorySink
from perfanalytics.core.config.manager import get_config
from perfanalytics.core.errors import PerfAnalyticsError
from perfanalytics.core.logger import setup_logging
from perfanalytics.core.runtime import build_runtime


def parse_props(items: Optional[List[str]]) -> Dict[str, Any]:
    """`k=v` pairs; values are decoded as JSON when possible, else kept as strings."""
    out: Dict[str, Any] = {}
    for item in items or []:
        if "=" not in item:
            raise argparse.ArgumentTypeError(f"property must be key=value: {item!r}")
        k, v = item.split("=", 1)
        k = k.strip()
        if not k:
            raise argparse.ArgumentTypeError(f"empty property key: {item!r}")
        try:
            out[k] = json.loads(v)
        except json.JSONDecodeError:
            out[k] = v
    return out


def _print(obj: Any) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="perfanalytics", description="Device performance metrics + enriched analytics events")
    ap.add_argument("--root", default=".", help="Directory holding config/ and logs/.")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("snapshot", help="Print the current performance record.")
    sp.add_argument("--user-props", action="store_true", help="Print storage user properties instead.")

    tp = sub.add_parser("track", help="Send one enriched event through the configured sink.")
    tp.add_argument("event")
    tp.add_argument("--prop", action="append", default=[], metavar="KEY=VALUE", help="Event property (repeatable).")
    tp.add_argument("--user", default=None, help="Identify as this user first.")

    wp = sub.add_parser("watch", help="Poll and print performance records.")
    wp.add_argument("--interval", type=float, default=None, help="Seconds between samples (default: config).")
    wp.add_argument("--count", type=int, default=0, help="Stop after N samples (0 = until interrupted).")
    wp.add_argument("--summary", action="store_true", help="Print rolling statistics when done.")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    root = os.path.abspath(args.root)
    try:
        cm = get_config(root)
        cfg = cm.get()
        logger = setup_logging(os.path.join(root, cfg.logging.log_dir), level=cfg.logging.level)
        cm.logger = logger
        rt = build_runtime(cfg, root=root, logger=logger)
    except PerfAnalyticsError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 2

    try:
        if args.command == "snapshot":
            _print(rt.performance.get_storage_user_properties() if args.user_props else rt.performance.get_all_metrics())
            return 0

        if args.command == "track":
            try:
                props = parse_props(args.prop)
            except argparse.ArgumentTypeError as e:
                print(f"perfanalytics track: {e}", file=sys.stderr)
                return 2
            if args.user:
                rt.analytics.identify_user(args.user, {})
            rt.analytics.track(args.event, props)
            rt.analytics.flush()
            if isinstance(rt.sink, MemorySink) and rt.sink.events:
                _print(rt.sink.events[-1].model_dump())
            else:
                logger.info(f"Tracked '{args.event}' via {rt.sink.name} sink.")
            return 0

        if args.command == "watch":
            interval = args.interval if args.interval is not None else cfg.poller.interval_seconds
            n = 0
            logger.info(f"watch: sampling every {interval:.1f}s")
            try:
                while args.count <= 0 or n < args.count:
                    _print(rt.poller.sample_now())
                    n += 1
                    if args.count <= 0 or n < args.count:
                        time.sleep(max(0.2, float(interval)))
            except KeyboardInterrupt:
                pass
            if args.summary:
                _print(rt.poller.summary())
            return 0
    except PerfAnalyticsError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1
    finally:
        try:
            rt.shutdown()
        except PerfAnalyticsError as e:
            logger.warning(f"Shutdown flush failed: {e.user_message}")
    return 1
