"""
Command-line interface for web novel translation
"""
import argparse
import asyncio
import sys

from tsundoku.config import AppConfig, get_config_dir
from tsundoku.core.exceptions import TsundokuError
from tsundoku.scrapers import ScraperRegistry
from tsundoku.utils.unified_logger import LogLevel, UnifiedLogger
from tsundoku.workflow import translate_novel


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be 1 or greater, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    sites = ", ".join(ScraperRegistry.supported_sites())
    parser = argparse.ArgumentParser(
        description=f"Download a Japanese web novel and translate it to English ({sites})."
    )
    parser.add_argument("novel_url", help="URL of the novel, series or one-shot story.")
    parser.add_argument("--start", type=positive_int, default=None, help="First chapter to process (default: 1).")
    parser.add_argument("--end", type=positive_int, default=None, help="Last chapter to process (default: last chapter).")
    parser.add_argument("--no-name-pause", action="store_true", help="Skip the manual name mapping review.")
    parser.add_argument("--output-dir", default=None, help="Directory for story folders (overrides OUTPUT_DIRECTORY).")
    parser.add_argument("--config-dir", default=None, help=f"Configuration directory (default: {get_config_dir()}).")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    parser.add_argument("--debug", action="store_true", help="Show debug messages.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logger = UnifiedLogger(
        enable_colors=not args.no_color,
        min_level=LogLevel.DEBUG if args.debug else LogLevel.INFO,
    )
    logger.section("Tsundoku - Web Novel Translator")

    logger.step("Loading configuration...")
    try:
        config = AppConfig.from_cli_args(args)
    except TsundokuError as e:
        logger.error(str(e))
        return 1

    if not config.api.is_configured:
        logger.warning(f"API key not configured. Set API_KEY in {config.config_dir / '.env'} or the environment.")
        logger.info("Set your OpenAI-compatible API key and run again.")
        return 0

    try:
        config.validate()
    except TsundokuError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    logger.success("Configuration loaded")

    try:
        asyncio.run(translate_novel(
            config,
            args.novel_url,
            logger,
            start=args.start,
            end=args.end,
            name_pause=not args.no_name_pause,
        ))
    except TsundokuError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted. Completed chapters and name votes are saved.")
        return 130

    logger.section("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
