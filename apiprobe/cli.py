# apiprobe/cli.py
import argparse
import asyncio
import logging
import signal
import sys

from .config import ConfigError, load_config
from .errors import ScanConfigurationError
from .report import render_json, render_text
from .scan_core import run_scan

logger = logging.getLogger("apiprobe")


async def _scan(config):
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
        loop.add_signal_handler(signal.SIGTERM, cancel.set)
    except (NotImplementedError, RuntimeError) as e:
        logger.debug("Signal-driven cancellation unavailable: %s", e)
    return await run_scan(config, cancel_event=cancel)


def main(argv=None):
    p = argparse.ArgumentParser(prog="apiprobe", description="API endpoint security scanner")
    p.add_argument("--config", default="config.yaml", help="YAML configuration file")
    p.add_argument("--output", default="text", choices=["text", "json"])
    p.add_argument("--serve", action="store_true", help="Start the HTTP API instead of scanning")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v, -vv")
    args = p.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.serve:
        import uvicorn
        uvicorn.run("apiprobe.main:app", host=args.host, port=args.port)
        return 0

    try:
        config = load_config(args.config)
        results = asyncio.run(_scan(config))
    except (ConfigError, ScanConfigurationError) as e:
        logger.error("Configuration error: %s", e)
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    print(render_json(results) if args.output == "json" else render_text(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
