#!/usr/bin/env python3
"""
Main entry point for the Phisherman training backend.

Subcommands:
    serve     Run the REST API (and the built web app, if present)
    init-db   Create the database tables and seed the demo organisation
    generate  Generate a batch of simulations to CSV/JSON/WAV files
    export    Export recorded results and dashboard tables
"""

import sys
import asyncio
import logging
import argparse

import uvicorn

from phisherman.database import SQLiteConfig, SQLiteConnection, TrainingDataService
from phisherman.exceptions import PhishermanBaseError
from phisherman.server import ServerConfig, create_app
from phisherman.simulate import SimulationGenerator, BATCH_KINDS
from phisherman.utils import ReportExporter

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # Disable httpx logging to avoid cluttering the output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_data_service(db_path: str = None) -> TrainingDataService:
    return TrainingDataService(SQLiteConnection(SQLiteConfig(db_path)))


def run_serve(args):
    config = ServerConfig(host=args.host, port=args.port, static_dir=args.static_dir)
    if args.no_seed:
        config.seed = False
    app = create_app(config=config, data_service=build_data_service(args.db))
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


def run_init_db(args):
    data_service = build_data_service(args.db)
    data_service.initialize()
    if args.no_seed:
        print("Database tables ready (seed skipped)")
    elif data_service.seed_if_empty():
        print("Database tables ready, demo organisation inserted")
    else:
        print("Database tables ready, existing data kept")


def run_generate(args):
    generator = SimulationGenerator(output_dir=args.output_dir)
    results = asyncio.run(generator.generate_batch_async(
        kind=args.kind,
        count=args.count,
        difficulty=args.difficulty,
        concurrent_requests=args.concurrent,
        show_progress=not args.no_progress
    ))
    save_paths = generator.save_results(results)

    successful = sum(1 for r in results if r['success'])
    print(f"\nGenerated {successful}/{len(results)} {args.kind} simulations")
    print(f"Results saved to: {save_paths['results_directory']}")
    if save_paths.get('audio_files'):
        print(f"- Audio files: {len(save_paths['audio_files'])}")


def run_export(args):
    data_service = build_data_service(args.db)
    data_service.initialize()
    exporter = ReportExporter(data_service, output_dir=args.output_dir)
    paths = exporter.export(include_summary_report=not args.no_report)

    print(f"\nReports saved to: {paths['results_directory']}")
    if 'report_path' in paths:
        print(exporter.create_summary_report(paths['metrics']))


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Security-awareness training backend with AI-generated simulations",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Logging level (default: LOG_LEVEL env var or INFO)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the REST API server')
    serve.add_argument('--host', type=str, help='Bind address (default: PHISHERMAN_HOST or 0.0.0.0)')
    serve.add_argument('--port', type=int, help='Port (default: PHISHERMAN_PORT or 3000)')
    serve.add_argument('--static-dir', type=str, help='Built web app directory (default: dist)')
    serve.add_argument('--db', type=str, help='SQLite database path (default: PHISHERMAN_DB_PATH or phisherman.db)')
    serve.add_argument('--no-seed', action='store_true', help='Do not insert the demo organisation')
    serve.set_defaults(handler=run_serve)

    init_db = subparsers.add_parser('init-db', help='Create tables and seed demo data')
    init_db.add_argument('--db', type=str, help='SQLite database path')
    init_db.add_argument('--no-seed', action='store_true', help='Only create the tables')
    init_db.set_defaults(handler=run_init_db)

    generate = subparsers.add_parser('generate', help='Generate a batch of simulations')
    generate.add_argument('kind', choices=BATCH_KINDS, help='Kind of simulation to generate')
    generate.add_argument('--count', type=int, default=5, help='Number of simulations (default: 5)')
    generate.add_argument(
        '--difficulty',
        type=int,
        help='Difficulty 1-5 (default: random 1-3 for email, 2 for phone)'
    )
    generate.add_argument('--concurrent', type=int, default=5, help='Concurrent API requests (default: 5)')
    generate.add_argument(
        '--output-dir',
        type=str,
        default='results/simulations',
        help='Output directory (default: results/simulations)'
    )
    generate.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    generate.set_defaults(handler=run_generate)

    export = subparsers.add_parser('export', help='Export results and dashboard tables')
    export.add_argument('--db', type=str, help='SQLite database path')
    export.add_argument(
        '--output-dir',
        type=str,
        default='results/reports',
        help='Output directory (default: results/reports)'
    )
    export.add_argument('--no-report', action='store_true', help='Skip the text summary report')
    export.set_defaults(handler=run_export)

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args.log_level or ServerConfig().log_level)

    try:
        args.handler(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except PhishermanBaseError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
