"""Operator-facing output: probe lines, statistics, help, version, errors."""

import sys
from typing import TextIO

from colorama import Fore, Style

from tcping.errors import TcpingError
from tcping.messages import Messages
from tcping.models import FailureKind, ProbeMode, ProbeOutcome, ResolvedTarget, Statistics
from tcping.stats import bandwidth_mbps
from tcping.version import BUILD_TIME, GIT_HASH, PROGRAM_NAME, __version__

# Header values longer than this go on their own line in verbose output
_WRAP_HEADER_AT = 60

_HTTP_FAILURE_KEYS = {
    FailureKind.CONSTRUCTION: "http_build_failed",
    FailureKind.EXECUTION: "http_request_failed",
    FailureKind.READ: "http_read_failed",
}


def colorize(text: str, color: str, use_color: bool) -> str:
    """Wrap ``text`` in a colorama color when ``use_color`` is set."""
    if not use_color:
        return text
    return f"{color}{text}{Style.RESET_ALL}"


class Reporter:
    """Renders run events through a :class:`Messages` catalog.

    Per-probe lines are green for success and red for failure when color is
    enabled; informational lines are cyan.
    """

    def __init__(
        self,
        messages: Messages,
        color: bool = False,
        verbose: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ):
        self.messages = messages
        self.color = color
        self.verbose = verbose
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr

    def _emit(self, text: str, color: str | None = None):
        if color is not None:
            text = colorize(text, color, self.color)
        print(text, file=self.out, flush=True)

    def _success(self, text: str):
        self._emit(text, Fore.GREEN)

    def _failure(self, text: str):
        self._emit(text, Fore.RED)

    def _info(self, text: str):
        self._emit(text, Fore.CYAN)

    # -- informational ------------------------------------------------------

    def help(self):
        m = self.messages
        options = [
            ("-4, --ipv4", "opt_ipv4"),
            ("-6, --ipv6", "opt_ipv6"),
            ("-n, --count <count>", "opt_count"),
            ("-p, --port <port>", "opt_port"),
            ("-t, --interval <ms>", "opt_interval"),
            ("-w, --timeout <ms>", "opt_timeout"),
            ("-c, --color", "opt_color"),
            ("-v, --verbose", "opt_verbose"),
            ("-H, --http", "opt_http"),
            ("-k, --insecure", "opt_insecure"),
            ("-l, --language <code>", "opt_language"),
            ("-V, --version", "opt_version"),
            ("-h, --help", "opt_help"),
        ]
        tcp_examples = ["example_basic", "example_basic_port", "example_port_flag", "example_ipv4", "example_color_verbose"]
        http_examples = [
            "example_https",
            "example_http",
            "example_http_count",
            "example_http_verbose",
            "example_http_insecure",
        ]

        lines = [
            f"{PROGRAM_NAME} {__version__} - {m.format('program_description')}",
            "",
            m.format("usage_description", program=PROGRAM_NAME),
            "",
            m.format("usage_tcp"),
            m.format("usage_http"),
            "",
            f"{m.format('options_title')}:",
        ]
        lines += [f"    {flag:<24}{m.format(key)}" for flag, key in options]
        lines += ["", f"{m.format('tcp_examples_title')}:"]
        lines += [f"    {m.format(key)}" for key in tcp_examples]
        lines += ["", f"{m.format('http_examples_title')}:"]
        lines += [f"    {m.format(key)}" for key in http_examples]
        lines.append("")
        self._emit("\n".join(lines))

    def version(self):
        m = self.messages
        self._emit(m.format("version_format", program=PROGRAM_NAME, version=__version__))
        if GIT_HASH != "unknown":
            self._emit(m.format("version_git", git_hash=GIT_HASH))
        if BUILD_TIME != "unknown":
            self._emit(m.format("version_build", build_time=BUILD_TIME))
        self._emit(m.format("copyright"))

    def error(self, error: TcpingError):
        text = self.messages.format("error_prefix", message=error.render(self.messages))
        print(text, file=self.err, flush=True)

    # -- run lifecycle ------------------------------------------------------

    def start(self, target: ResolvedTarget, mode: ProbeMode, agent: str, insecure: bool = False):
        if mode == ProbeMode.HTTP:
            self._emit(self.messages.format("http_start", uri=target.original, agent=agent))
            if self.verbose and insecure:
                self._emit(self.messages.format("insecure_warning"))
            return

        self._emit(
            self.messages.format(
                "tcp_start",
                host=target.original,
                family=target.family.value,
                ip=target.ip,
                port=target.port,
            )
        )

    def interrupted(self):
        self._info(self.messages.format("interrupted"))

    def cancelled(self, mode: ProbeMode):
        key = "http_cancelled" if mode == ProbeMode.HTTP else "tcp_cancelled"
        self._info(self.messages.format(key))

    def outcome(self, outcome: ProbeOutcome, target: ResolvedTarget):
        if outcome.mode == ProbeMode.HTTP:
            self._http_outcome(outcome, target)
        else:
            self._tcp_outcome(outcome, target)

    def _error_text(self, outcome: ProbeOutcome) -> str:
        if outcome.timed_out:
            return self.messages.format("connection_timeout")
        return outcome.error or ""

    def _tcp_outcome(self, outcome: ProbeOutcome, target: ResolvedTarget):
        m = self.messages
        if not outcome.success:
            self._failure(
                m.format("tcp_failed", ip=target.ip, port=target.port, seq=outcome.seq, error=self._error_text(outcome))
            )
            if self.verbose:
                self._emit(
                    m.format("verbose_failure", elapsed=outcome.elapsed_ms, address=target.address, port=target.port)
                )
            return

        self._success(m.format("tcp_success", ip=target.ip, port=target.port, seq=outcome.seq, elapsed=outcome.elapsed_ms))
        if self.verbose and outcome.local_address:
            self._emit(m.format("verbose_connection", local=outcome.local_address, ip=target.ip, port=target.port))

    def _http_outcome(self, outcome: ProbeOutcome, target: ResolvedTarget):
        m = self.messages
        uri = target.original
        if outcome.failure is not None:
            key = _HTTP_FAILURE_KEYS[outcome.failure]
            self._failure(m.format(key, uri=uri, seq=outcome.seq, error=self._error_text(outcome)))
            return

        line = m.format(
            "http_response",
            status=outcome.status_code,
            uri=uri,
            seq=outcome.seq,
            elapsed=outcome.elapsed_ms,
            size=outcome.bytes_transferred,
            bandwidth=bandwidth_mbps(outcome.bytes_transferred, outcome.elapsed_ms),
        )
        if outcome.success:
            self._success(line)
        else:
            self._failure(line)

        if self.verbose:
            self._emit(m.format("verbose_http_details"))
            status = f"{outcome.status_code} {outcome.reason}" if outcome.reason else str(outcome.status_code)
            self._emit(m.format("verbose_http_status", status=status))
            self._emit(m.format("verbose_http_headers"))
            for name, value in sorted(outcome.headers, key=lambda item: item[0].lower()):
                if len(value) > _WRAP_HEADER_AT:
                    self._emit(f"    {name}:\n      {value}")
                else:
                    self._emit(f"    {name}: {value}")

    def statistics(self, stats: Statistics, mode: ProbeMode):
        """Print the final statistics block; the RTT line needs at least one response."""
        m = self.messages
        title = "http_stats_title" if mode == ProbeMode.HTTP else "tcp_stats_title"
        self._emit(m.format(title))

        if stats.sent == 0:
            return

        self._emit(
            m.format(
                "stats_summary",
                sent=stats.sent,
                responded=stats.responded,
                lost=stats.lost,
                loss_rate=stats.loss_rate,
            )
        )
        if stats.responded == 0:
            return

        self._emit(m.format("stats_rtt", min=stats.min_time, max=stats.max_time, avg=stats.avg_time))
        if mode == ProbeMode.HTTP:
            self._emit(
                m.format("stats_total_data", bytes=stats.total_bytes, megabytes=stats.total_bytes / 1024 / 1024)
            )
            self._emit(
                m.format(
                    "stats_bandwidth",
                    min=stats.min_bandwidth,
                    max=stats.max_bandwidth,
                    avg=stats.avg_bandwidth,
                )
            )
