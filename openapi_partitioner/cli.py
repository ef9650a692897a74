"""
Command-line interface for OpenAPI Partitioner.
"""

import argparse
import sys
import logging
from .core import OpenAPIPartitioner, OpenAPIPartitionerError


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(message)s' if not verbose else '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description='Partition an OpenAPI spec into per-operation and per-tag files with an llms.txt overview',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                 # Use openapi.json/.yaml/.yml in the current directory
  %(prog)s api/openapi.yaml -o docs        # Explicit input file and output directory
  %(prog)s openapi.yaml -f json            # Write partitions as JSON files
  %(prog)s openapi.yaml --shallow          # Only components referenced directly by the paths
  %(prog)s openapi.yaml --no-external-docs # Skip fetching externalDocs URLs
        """
    )

    parser.add_argument(
        'input_path',
        nargs='?',
        default='.',
        help='OpenAPI file, or directory holding openapi.json, openapi.yaml or openapi.yml (default: current directory)'
    )

    parser.add_argument(
        '-o', '--output',
        default='.',
        help='Output directory for generated files (default: current directory)'
    )

    parser.add_argument(
        '-f', '--format',
        choices=['yaml', 'json'],
        default='yaml',
        help='Output format for partitions: yaml or json (default: yaml)'
    )

    parser.add_argument(
        '--shallow',
        action='store_true',
        help='Do not follow references between components'
    )

    parser.add_argument(
        '--no-external-docs',
        action='store_true',
        help='Do not fetch documentation behind externalDocs URLs'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=30.0,
        help='Timeout in seconds for each externalDocs request (default: 30)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s 1.0.0'
    )

    return parser


def main(argv=None):
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        partitioner = OpenAPIPartitioner(
            args.input_path,
            args.output,
            args.format,
            transitive=not args.shallow,
            fetch_docs=not args.no_external_docs,
            timeout=args.timeout,
        )
    except OpenAPIPartitionerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        print(f"Found {partitioner.input_file.name}, processing...")
        created_files = partitioner.split()

        print(f"\nGenerated {len(created_files)} files from {partitioner.input_file.name}")
        print("Main overview available in llms.txt")

    except OpenAPIPartitionerError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
