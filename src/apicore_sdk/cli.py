"""
Command-line interface for APICore Python SDK
Sends single requests through the full request pipeline and validates configuration files
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from .config import ConfigLoader
from .encoding.array_serialization import ArraySerializationOption
from .exceptions import APICoreSDKError, ApiError
from .http_clients.call_builder import create_call_builder_factory
from .http_clients.retryer import RequestRetryOption
from .http_clients.transport import HttpClient, HttpConfiguration
from .logging import LoggingConfiguration, RequestLoggingConfiguration, ResponseLoggingConfiguration, SdkLogger
from .version import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='apicore-cli',
        description='APICore SDK command-line interface for sending API requests'
    )
    
    parser.add_argument(
        '--version',
        action='version',
        version=f'APICore Python SDK {__version__}'
    )
    
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    setup_request_parser(subparsers)
    setup_check_config_parser(subparsers)
    
    return parser


def setup_request_parser(subparsers):
    """Setup request subcommand."""
    request_parser = subparsers.add_parser('request', help='Send one request')
    request_parser.add_argument('method', help='HTTP method (GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS)')
    request_parser.add_argument('url', help='Absolute URL, or a path when --config is given')
    request_parser.add_argument('--config', help='JSON configuration file')
    request_parser.add_argument('--server', default='default', help='Server name from the configuration (default: default)')
    request_parser.add_argument('--query', action='append', default=[], metavar='KEY=VALUE', help='Query parameter (repeatable)')
    request_parser.add_argument('--header', action='append', default=[], metavar='NAME=VALUE', help='Request header (repeatable)')
    request_parser.add_argument('--form', action='append', default=[], metavar='KEY=VALUE', help='URL-encoded form field (repeatable)')
    request_parser.add_argument('--json', dest='json_body', help='JSON request body')
    request_parser.add_argument('--text', help='Plain text request body')
    request_parser.add_argument(
        '--array-serialization',
        choices=[o.value for o in ArraySerializationOption],
        help='Array serialization for query and form parameters'
    )
    request_parser.add_argument('--timeout', type=float, help='Request timeout in seconds (default: 60, or the configured value)')
    request_parser.add_argument('--retries', type=int, help='Maximum retry attempts (default: 0, or the configured value)')
    request_parser.add_argument(
        '--retry',
        choices=[o.value for o in RequestRetryOption],
        default=RequestRetryOption.DEFAULT.value,
        help='Retry option for this request (default: default)'
    )
    request_parser.add_argument('--verbose', action='store_true', help='Log requests and responses')


def setup_check_config_parser(subparsers):
    """Setup check-config subcommand."""
    check_parser = subparsers.add_parser('check-config', help='Validate a configuration file')
    check_parser.add_argument('file', help='JSON configuration file')


def parse_pairs(values: List[str]) -> Dict[str, str]:
    """Parse KEY=VALUE arguments"""
    pairs = {}
    for value in values:
        if '=' not in value:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{value}'")
        key, _, item = value.partition('=')
        pairs[key] = item
    return pairs


def _verbose_logger() -> SdkLogger:
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    return SdkLogger(LoggingConfiguration(
        request=RequestLoggingConfiguration(log_headers=True, include_query_in_path=True),
        response=ResponseLoggingConfiguration(log_headers=True),
    ))


def apply_overrides(config: HttpConfiguration, args) -> HttpConfiguration:
    """Apply --timeout and --retries on top of ``config``"""
    overrides = {}
    if args.timeout is not None:
        overrides['timeout'] = args.timeout
    if args.retries is not None:
        overrides['retry_configuration'] = replace(
            config.retry_configuration, max_retry_attempts=args.retries
        )
    return replace(config, **overrides) if overrides else config


def build_factory(args):
    """Create the call builder factory and the path for a request command."""
    sdk_logger = _verbose_logger() if args.verbose else None
    
    if args.config:
        loader = ConfigLoader.from_file(args.config)
        loader.config.http = apply_overrides(loader.config.http, args)
        return loader.create_call_builder_factory(sdk_logger=sdk_logger), args.url
    
    config = apply_overrides(HttpConfiguration(base_urls={args.server: args.url}), args)
    factory = create_call_builder_factory(
        config.get_base_uri,
        {},
        HttpClient(config),
        config.retry_configuration,
        sdk_logger=sdk_logger,
    )
    return factory, ''


def handle_request_command(args) -> int:
    """Handle sending a single request."""
    factory, path = build_factory(args)
    builder = factory(args.method, path).base_url(args.server)
    builder.request_retry_option(RequestRetryOption(args.retry))
    if args.array_serialization:
        builder.array_serialization_option(ArraySerializationOption(args.array_serialization))
    
    builder.query_params(parse_pairs(args.query))
    for name, value in parse_pairs(args.header).items():
        builder.header(name, value)
    if args.json_body is not None:
        builder.json(json.loads(args.json_body))
    if args.text is not None:
        builder.text(args.text)
    if args.form:
        builder.form_params(parse_pairs(args.form))
    
    try:
        context = builder.call()
    except ApiError as e:
        print(f"HTTP {e.status_code}: {e.message}", file=sys.stderr)
        if e.body:
            print(e.body.decode('utf-8', errors='replace'))
        return 1
    
    response = context.response
    print(f"HTTP {response.status_code}")
    body = context.get_response_body()
    if body:
        print(body.decode(response.encoding or 'utf-8', errors='replace'))
    return 0


def handle_check_config_command(args) -> int:
    """Handle configuration file validation."""
    loader = ConfigLoader.from_file(args.file)
    http = loader.http_configuration
    retry = loader.retry_configuration
    
    print("✓ Configuration is valid")
    print(f"  Servers: {', '.join(f'{k}={v}' for k, v in http.base_urls.items()) or '(none)'}")
    print(f"  Timeout: {http.timeout}s")
    print(f"  Retry attempts: {retry.max_retry_attempts}")
    print(f"  Array serialization: {http.array_serialization_option.value}")
    print(f"  Credentials: {', '.join(loader.config.auth_providers) or '(none)'}")
    print(f"  Request logging: {'enabled' if loader.config.logging else 'disabled'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI
    
    Args:
        argv: Command line arguments (None to use sys.argv)
        
    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]
    
    parser = create_parser()
    args = parser.parse_args(argv)
    
    try:
        if args.command == 'request':
            return handle_request_command(args)
        elif args.command == 'check-config':
            return handle_check_config_command(args)
        else:
            parser.print_help()
            return 1
    
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (APICoreSDKError, argparse.ArgumentTypeError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
