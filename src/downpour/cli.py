#!/usr/bin/env python3
# cli.py — Command-line entry point for downpour

import argparse
import asyncio
import logging
import sys

from downpour.config import DEFAULT_URL, TOKEN_ENV_VAR, LoadTestConfig, token_from_env
from downpour.core import LoadRunner
from downpour.errors import FatalSetupError, FatalTeardownError
from downpour.logging_config import setup_logging
from downpour.persistence import ResultsWriter
from downpour.rendering import render_latency_histogram, render_report
from downpour.utils import GracefulKiller

EXIT_SETUP_ERROR = 2
EXIT_TEARDOWN_ERROR = 3


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Downpour: concurrent multipart upload load generator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--url", default=DEFAULT_URL, help="Upload endpoint to POST to")
    parser.add_argument(
        "-d",
        "--corpus",
        default="images",
        help="Directory with .jpg/.jpeg/.png files to upload (extension match is case-sensitive)",
    )
    parser.add_argument(
        "--extension",
        action="append",
        dest="extensions",
        default=None,
        help="Extra file extension to accept, e.g. .JPG (repeatable)",
    )

    # Load shape
    parser.add_argument("-n", "--requests", type=int, default=1000, help="Total number of uploads")
    parser.add_argument(
        "-c", "--concurrency", type=int, default=10, help="Maximum uploads in flight"
    )
    parser.add_argument(
        "--pacing-ms",
        type=float,
        default=20.0,
        help="Delay after each upload before its slot is freed",
    )
    parser.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout (seconds)")

    # Request headers
    parser.add_argument(
        "--token",
        default=None,
        help=f"Bearer token (defaults to ${TOKEN_ENV_VAR})",
    )
    parser.add_argument("--time-zone", default="Europe/Moscow", help="Time-Zone header value")
    parser.add_argument("--origin", default=None, help="Origin/Referer header (defaults to URL origin)")

    # Memory sampling
    parser.add_argument(
        "--container",
        default=None,
        help="Docker container id/name to sample memory from (skipped when omitted)",
    )
    parser.add_argument("--docker-host", default=None, help="Docker daemon address (defaults to $DOCKER_HOST)")

    # Output
    parser.add_argument("--results-file", default=None, help="Write a JSON summary to this file")
    parser.add_argument("--histogram-bins", type=int, default=20, help="Latency histogram bins")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    # Logging & Debugging
    parser.add_argument("--debug", action="store_true", help="Enable debug-level logging")
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., downpour.log)",
    )

    return parser.parse_args(argv)


def build_config(args) -> LoadTestConfig:
    extensions = (".jpg", ".jpeg", ".png") + tuple(args.extensions or ())
    return LoadTestConfig(
        url=args.url,
        corpus_path=args.corpus,
        total_requests=args.requests,
        concurrency=args.concurrency,
        bearer_token=args.token if args.token is not None else token_from_env(),
        pacing_delay_s=args.pacing_ms / 1000.0,
        request_timeout_s=args.timeout,
        time_zone=args.time_zone,
        origin=args.origin,
        container_id=args.container,
        docker_host=args.docker_host,
        extensions=extensions,
    )


def print_result(result, args, sampled_memory: bool) -> None:
    print("\n" + "=" * 60)
    print(render_report(result, sampled_memory=sampled_memory))
    print()
    print(render_latency_histogram(result.latencies, args.histogram_bins))
    print("=" * 60)


async def run(argv=None) -> int:
    args = parse_args(argv)

    log_level = "DEBUG" if args.debug else "INFO"
    setup_logging(level=log_level, log_file=args.log_file)

    try:
        config = build_config(args)
        runner = LoadRunner(
            config,
            graceful_killer=GracefulKiller(),
            use_progress_bar=not args.no_progress,
        )
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        return EXIT_SETUP_ERROR
    except FatalSetupError as e:
        logging.error(f"Setup failed, no requests were sent: {e}")
        return EXIT_SETUP_ERROR

    logging.info(
        f"Starting downpour against {config.url} | "
        f"Requests: {config.total_requests} | Concurrency: {config.concurrency} | "
        f"Memory sampling: {'on' if runner.samples_memory else 'off'}"
    )

    exit_code = 0
    try:
        result = await runner.run()
    except FatalSetupError as e:
        logging.error(f"Setup failed, no requests were sent: {e}")
        return EXIT_SETUP_ERROR
    except FatalTeardownError as e:
        logging.error(f"{e}. Request statistics follow; memory figures are unavailable.")
        result = e.result
        exit_code = EXIT_TEARDOWN_ERROR

    print_result(result, args, sampled_memory=runner.samples_memory)

    if args.results_file:
        ResultsWriter(args.results_file).save(result)

    return exit_code


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
