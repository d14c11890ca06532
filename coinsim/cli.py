"""
Command-line interface for coinsim.

Provides CLI commands for running the service, checking prices and
validating configuration.
"""

import argparse
import logging
import sys

from colorama import Fore, Style, init

from .api.coingecko_client import CoinGeckoClient
from .config.config import load_config
from .utils.exceptions import CoinsimError, ConfigurationError
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinsim",
        description="Simulated cryptocurrency portfolio backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  coinsim serve                       # Run the HTTP API on the configured port
  coinsim serve --port 8080           # Run on a custom port
  coinsim prices bitcoin solana       # Print current quotes
  coinsim validate-config --config-file coinsim.yaml
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set logging level (overrides configuration)'
    )
    parser.add_argument(
        '--log-dir',
        help='Directory for log files (overrides configuration)'
    )
    parser.add_argument(
        '--config-file',
        help='Path to a JSON or YAML configuration file'
    )
    parser.add_argument(
        '--env-file',
        help='Path to a .env file'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', help='Interface to bind')
    serve_parser.add_argument('--port', type=int, help='Port to listen on')

    prices_parser = subparsers.add_parser('prices', help='Print current market quotes')
    prices_parser.add_argument('ids', nargs='*', help='CoinGecko coin ids (default: configured ids)')

    subparsers.add_parser('validate-config', help='Validate configuration')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    init(autoreset=True)
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config_file, args.env_file)
    except ConfigurationError as e:
        print(f"{Fore.RED}✗ {e.message}{Style.RESET_ALL}")
        return 1

    if args.log_level:
        config.operations.log_level = args.log_level
    if args.log_dir:
        config.operations.log_dir = args.log_dir

    setup_logging(
        log_level=config.operations.log_level,
        log_dir=config.operations.log_dir,
        enable_console=config.operations.enable_console,
        enable_structlog=config.operations.enable_structlog,
        colored=sys.stdout.isatty()
    )

    if args.command == 'serve' or args.command is None:
        return serve_command(args, config)
    if args.command == 'prices':
        return prices_command(args, config)
    if args.command == 'validate-config':
        return validate_config_command(args, config)

    parser.print_help()
    return 1


def serve_command(args, config) -> int:
    """Execute the serve command."""
    from .web.app import run_server

    try:
        logger.info("Starting coinsim backend...")
        run_server(config, host=getattr(args, 'host', None), port=getattr(args, 'port', None))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    return 0


def prices_command(args, config) -> int:
    """Execute the prices command."""
    client = CoinGeckoClient.from_config(config.feed)
    ids = args.ids or config.feed.default_ids

    try:
        quotes = client.fetch_quotes(ids)
    except CoinsimError as e:
        logger.error(f"Error fetching prices: {e}")
        print(f"{Fore.RED}✗ {e.message}{Style.RESET_ALL}")
        return 1

    for asset_id in ids:
        quote = quotes.get(asset_id)
        if quote is None or quote.current_price is None:
            print(f"  {asset_id:<12} {Fore.YELLOW}price unavailable{Style.RESET_ALL}")
            continue
        change = quote.price_change_percentage_24h or 0.0
        color = Fore.GREEN if change >= 0 else Fore.RED
        print(f"  {asset_id:<12} ${quote.current_price:>14,.2f}  {color}{change:+.2f}%{Style.RESET_ALL}")
    return 0


def validate_config_command(args, config) -> int:
    """Execute the validate-config command."""
    print(f"{Fore.GREEN}✓ Configuration is valid{Style.RESET_ALL}")
    print("\nConfiguration Summary:")
    for key, value in config.to_dict().items():
        print(f"  {key}: {value}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
