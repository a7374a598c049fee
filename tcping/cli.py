"""Command-line interface for tcping.

Parses flags into an :class:`Options` value, resolves the target, runs the
probe loop on a worker thread and prints the final statistics.
"""

import argparse
import logging

import colorama

from tcping.cancellation import CancellationController, CancellationToken
from tcping.config import (
    DEFAULT_COUNT,
    DEFAULT_INTERVAL_MS,
    DEFAULT_TIMEOUT_MS,
    Options,
    http_target,
    tcp_endpoint,
)
from tcping.errors import TcpingError, ValidationError
from tcping.logging_config import configure_logging
from tcping.messages import get_messages
from tcping.models import ResolvedTarget
from tcping.prober import Prober, create_prober
from tcping.report import Reporter
from tcping.resolver import resolve_target
from tcping.scheduler import ProbeScheduler
from tcping.stats import StatisticsAggregator
from tcping.version import user_agent
from tcping.workers import ProbeWorker

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ValidationError("error_bad_argument", message=message)


def build_parser() -> argparse.ArgumentParser:
    # Help text is rendered by Reporter.help() from the message catalog
    parser = _ArgumentParser(prog="tcping", add_help=False)
    parser.add_argument("-4", "--ipv4", dest="use_ipv4", action="store_true")
    parser.add_argument("-6", "--ipv6", dest="use_ipv6", action="store_true")
    parser.add_argument("-n", "--count", type=int, default=DEFAULT_COUNT)
    parser.add_argument("-p", "--port", type=int, default=None)
    parser.add_argument("-t", "--interval", dest="interval_ms", type=int, default=DEFAULT_INTERVAL_MS)
    parser.add_argument("-w", "--timeout", dest="timeout_ms", type=int, default=DEFAULT_TIMEOUT_MS)
    parser.add_argument("-c", "--color", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("-H", "--http", dest="http_mode", action="store_true")
    parser.add_argument("-k", "--insecure", action="store_true")
    parser.add_argument("-l", "--language", default=None)
    parser.add_argument("-V", "--version", dest="show_version", action="store_true")
    parser.add_argument("-h", "--help", dest="show_help", action="store_true")
    parser.add_argument("args", nargs="*")
    return parser


def parse_args(argv: list[str] | None = None) -> tuple[Options, list[str]]:
    """Parse ``argv`` into options and positional arguments.

    Raises:
        ValidationError: Unknown flag or malformed flag value
    """
    namespace = build_parser().parse_args(argv)
    values = vars(namespace)
    args = values.pop("args")
    return Options(**values), args


def build_target(options: Options, args: list[str]) -> ResolvedTarget:
    """Validate positionals and resolve the target for the selected mode."""
    if options.http_mode:
        return http_target(args)

    host, port = tcp_endpoint(options, args)
    return resolve_target(host, port, options.use_ipv4, options.use_ipv6)


def run(options: Options, target: ResolvedTarget, prober: Prober, reporter: Reporter) -> int:
    """Probe ``target`` until done or interrupted, then print statistics.

    Returns:
        Process exit code: 0, or 1 if the probe loop crashed
    """
    token = CancellationToken()
    aggregator = StatisticsAggregator()
    scheduler = ProbeScheduler(
        prober,
        target,
        aggregator,
        token,
        count=options.count,
        interval_ms=options.interval_ms,
        timeout_ms=options.timeout_ms,
        on_outcome=lambda outcome: reporter.outcome(outcome, target),
        on_cancelled=lambda seq: reporter.cancelled(prober.mode),
    )
    worker = ProbeWorker(scheduler)
    controller = CancellationController(token, on_interrupt=reporter.interrupted)

    reporter.start(target, prober.mode, agent=user_agent(), insecure=options.insecure)
    controller.run(worker)

    # The worker has been joined; no writer is left
    reporter.statistics(aggregator.snapshot(), prober.mode)
    return 1 if worker.error is not None else 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the tcping command."""
    configure_logging()

    try:
        options, args = parse_args(argv)
    except ValidationError as e:
        Reporter(get_messages()).error(e)
        return 1

    messages = get_messages(options.language)
    reporter = Reporter(messages, color=options.color, verbose=options.verbose)
    if options.color:
        colorama.just_fix_windows_console()

    if options.show_help:
        reporter.help()
        return 0
    if options.show_version:
        reporter.version()
        return 0

    try:
        options.validate()
        target = build_target(options, args)
    except TcpingError as e:
        logger.debug("Aborting before probing: %s", e)
        reporter.error(e)
        return 1

    prober = create_prober(options)
    return run(options, target, prober, reporter)
