"""
Command line entry point.

Usage:
    lesson-harvester -sso https://sso.example.com/start -course https://www.linkedin.com/learning/some-course -transcripts
    lesson-harvester -sso ... -course ... -transcripts -videos -json -timeout 2h -backoff 90s

Settings not given on the command line are read from the environment or a .env file.
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from lesson_harvester.config import Settings, parse_duration
from lesson_harvester.errors import FatalSetupError
from lesson_harvester.orchestrator import harvest

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

logger = logging.getLogger("lesson_harvester")


def str_to_bool(v):
    """Convert string to boolean for argparse."""
    if isinstance(v, bool):
        return v
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    elif v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    else:
        raise argparse.ArgumentTypeError('Boolean value expected.')


def duration(v: str) -> float:
    try:
        return parse_duration(v)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lesson-harvester",
        description="Download transcripts and videos of an online course behind enterprise SSO.",
        allow_abbrev=False,
    )
    parser.add_argument('-sso', '--sso', dest='sso_url', help='URL to the enterprise SSO sign-on.')
    parser.add_argument('-course', '--course', dest='course_url', help='URL of the course to download.')
    parser.add_argument('-transcripts', '--transcripts', action='store_true', default=None,
                        help='Download transcripts.')
    parser.add_argument('-videos', '--videos', action='store_true', default=None,
                        help='Download videos.')
    parser.add_argument('-json', '--json', dest='save_json', action='store_true', default=None,
                        help='Write transcripts as JSON instead of plain text.')
    parser.add_argument('-timeout', '--timeout', type=duration,
                        help='Timeout for the entire run, e.g. 1h (default 1h).')
    parser.add_argument('-backoff', '--backoff', type=duration,
                        help='Wait between retries when rate limited, e.g. 1m (default 1m).')
    parser.add_argument('-max-retry', '--max-retry', dest='max_retry', type=int,
                        help='Navigation attempts per lesson (default 6).')
    parser.add_argument('-output-dir', '--output-dir', dest='output_dir',
                        help='Directory the artifacts are written to (default: current directory).')
    parser.add_argument('-headless', '--headless', type=str_to_bool,
                        help='Run browser in headless mode (true/false).')
    parser.add_argument('-log-level', '--log-level', dest='log_level',
                        help='Logging level (default INFO).')
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from environment/.env, overridden by whatever was given on the command line."""
    overrides = {
        'SSO_URL': args.sso_url,
        'COURSE_URL': args.course_url,
        'DOWNLOAD_TRANSCRIPTS': args.transcripts,
        'DOWNLOAD_VIDEOS': args.videos,
        'SAVE_JSON': args.save_json,
        'TIMEOUT': args.timeout,
        'BACKOFF': args.backoff,
        'MAX_RETRY': args.max_retry,
        'OUTPUT_DIR': args.output_dir,
        'HEADLESS': args.headless,
        'LOG_LEVEL': args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def check_settings(settings: Settings) -> None:
    if not settings.SSO_URL:
        raise FatalSetupError("an SSO URL is required (-sso)")
    if not settings.COURSE_URL:
        raise FatalSetupError("a course URL is required (-course)")
    if not settings.DOWNLOAD_TRANSCRIPTS and not settings.DOWNLOAD_VIDEOS:
        raise FatalSetupError("You must specify at least one of -transcripts or -videos to download.")


def setup_logging(level: str) -> None:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args)
    except ValidationError as e:
        setup_logging("INFO")
        logger.critical(f"Invalid settings: {e}")
        return 1
    setup_logging(settings.LOG_LEVEL)

    try:
        check_settings(settings)
        report = await harvest(settings, logger)
    except FatalSetupError as e:
        logger.critical(f"{e}")
        return 1

    if report.timed_out:
        logger.warning("Run stopped at the global timeout.")
    else:
        logger.info("All lessons processed.")
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))
