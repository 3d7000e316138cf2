#!/usr/bin/env python3
"""
Main entry point for the Semester Result Scraper.
Fetches a batch or a full roster from the command line, or serves the HTTP API.
"""

import json
import logging
import sys
import argparse
from pathlib import Path
from dotenv import load_dotenv

from result_scraper.api import CORE, ROSTER, create_app
from result_scraper.config_manager import ConfigManager
from result_scraper.exceptions import ScrapingError
from result_scraper.models import entries_to_json
from result_scraper.orchestrator import ResultOrchestrator


def setup_logging(log_level: str = "INFO", log_dir: str = "data/logs"):
    """Configure file and console logging."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        datefmt=date_format,
        handlers=[
            logging.FileHandler(log_path / "result_scraper.log", encoding='utf-8'),
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Suppress overly verbose external library logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Semester Result Scraper - batch retrieval of university examination results"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a configuration file merged over the bundled defaults"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from configuration)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="Fetch results and print them as JSON")
    fetch.add_argument("--reg-no", required=True, help="Seed registration number")
    fetch.add_argument("--year", required=True, type=int, help="Admission year")
    fetch.add_argument("--sem", default=None, help="Semester label (default: from configuration)")
    fetch.add_argument("--roster", action="store_true",
                       help="Fetch the whole regular and lateral-entry roster instead of one batch")
    fetch.add_argument("--output", "-o", default=None, help="Write JSON to this file instead of stdout")

    serve = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve.add_argument("--mode", choices=[CORE, ROSTER], default=CORE)
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def main(argv=None):
    """Main execution function."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = ConfigManager(args.config).get_settings()
    except ScrapingError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or settings.log_level, settings.log_dir)
    logger = logging.getLogger(__name__)

    if args.command == "serve":
        logger.info(f"Serving {args.mode} API on {args.host}:{args.port}")
        create_app(settings, mode=args.mode).run(host=args.host, port=args.port)
        return 0

    orchestrator = ResultOrchestrator(settings)
    try:
        if args.roster:
            entries = orchestrator.run_roster(args.reg_no, args.year, args.sem)
        else:
            entries = orchestrator.run_batch(args.reg_no, args.year, args.sem)
    except ScrapingError as e:
        logger.error(f"Fetch failed: {e}")
        return 1
    finally:
        orchestrator.close()

    payload = json.dumps(entries_to_json(entries), indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding='utf-8')
        logger.info(f"Wrote {len(entries)} entries to {args.output}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
