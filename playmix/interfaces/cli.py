import argparse
import json
import sys
from typing import List, Optional

from playmix.application.service import build_service
from playmix.crosscutting.config import ConfigError, setup_config
from playmix.crosscutting.logging import get_logger, setup_logging


class CLI:
    """Command Line Interface for playmix."""

    def __init__(self):
        """Initialize CLI."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='playmix',
            description='Build Spotify playlists from the top tracks of several artists'
        )
        parser.add_argument(
            '--env-file',
            help='Path to a .env file (default: ./.env)'
        )
        parser.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            help='Logging level (default: PLAYMIX_LOG_LEVEL or INFO)'
        )
        parser.add_argument(
            '--log-file',
            help='Also write logs to this file'
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        http_parser = subparsers.add_parser('http', help='Run the HTTP API')
        http_parser.add_argument('--host', help='Bind address (default: PLAYMIX_HTTP_HOST or 127.0.0.1)')
        http_parser.add_argument('--port', type=int, help='Port (default: PLAYMIX_HTTP_PORT or 3000)')
        http_parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')

        subparsers.add_parser('mcp', help='Run the agent tool server on stdio')
        subparsers.add_parser('config', help='Show configuration summary (no secrets)')

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parse arguments and dispatch to a command."""
        args = self.parser.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch(args)
        except ConfigError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

    def _dispatch(self, args: argparse.Namespace) -> int:
        settings = setup_config(args.env_file)
        setup_logging(args.log_level or settings.log_level, args.log_file)

        if args.command == 'config':
            print(json.dumps(settings.get_config_summary(), indent=2))
            return 0

        logger = get_logger('playmix.cli')
        service = build_service(settings)

        if args.command == 'http':
            from playmix.interfaces.http import HTTPServer
            HTTPServer(service=service, settings=settings,
                       host=args.host, port=args.port, debug=args.debug).run()
            return 0

        if args.command == 'mcp':
            from playmix.interfaces.mcp import create_mcp_server
            logger.info("Spotify MCP server running on stdio")
            create_mcp_server(service).run()
            return 0

        self.parser.print_help()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    return CLI().run(argv)


if __name__ == '__main__':
    sys.exit(main())
