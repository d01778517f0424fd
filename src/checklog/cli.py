"""checklog CLI — Nagios-compatible entry point.

    checklog -l /var/log/messages -p '[Ee]rror' -n nrpe
    checklog -l /var/log/auth.log -p 'Invalid user' -w 10 -c 50
    checklog -l /var/log/heartbeat.log -p ERROR -w 50% -D
    checklog -l /var/log/messages -m '*' -p Error -t most_recent
    checklog -l /data/logs/httpd/access -m '.%Y%m%d.log' -p Error
    checklog -l /var/log/messages -p MARK --negate -c 1

Exit codes follow the plugin API: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN.
Usage errors are UNKNOWN too, not click's usual 2.
"""
from __future__ import annotations

import encodings.aliases
import logging
import sys
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .check import LogCheck
from .config import CheckConfig, HeartbeatMode, OutputPolicy, settings
from .errors import ConfigError
from .output.report import Reporter
from .plugins.registry import default_registry
from .state import ServiceState

err_console = Console(stderr=True)

# ── Helpers ─────────────────────────────────────────────────────────────────


def _configure_logging(debug: bool) -> None:
    """Diagnostics go to stderr only; stdout carries the status line."""
    pkg_logger = logging.getLogger("checklog")
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        handler = RichHandler(console=err_console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    pkg_logger.propagate = False


def _parse_options(values: tuple[str, ...]) -> dict[str, str]:
    options: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--classifier-option")
        options[key.strip()] = value
    return options


def _write(text: str, encoding: str) -> None:
    stream = click.get_binary_stream("stdout")
    stream.write(text.encode(encoding, errors="replace"))
    stream.flush()


def _list_encodings(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    names = sorted(set(encodings.aliases.aliases.values()))
    click.echo("This plugin supports the following encodings:\n")
    click.echo(", ".join(names))
    ctx.exit(0)


def _list_classifiers(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    default_registry.discover()
    tbl = Table(title="Available classifiers", box=box.ROUNDED)
    tbl.add_column("Name")
    for name in default_registry.names():
        tbl.add_row(name)
    Console().print(tbl)
    ctx.exit(0)


class PluginCommand(click.Command):
    """Click command that always exits with a plugin API status code."""

    def main(self, args: Any = None, prog_name: str | None = None, complete_var: str | None = None,
             standalone_mode: bool = True, **extra: Any) -> Any:
        try:
            rv = super().main(
                args=args,
                prog_name=prog_name,
                complete_var=complete_var,
                standalone_mode=False,
                **extra,
            )
        except click.ClickException as exc:
            click.echo(f"UNKNOWN: {exc.format_message()}")
            sys.exit(int(ServiceState.UNKNOWN))
        except click.Abort:
            sys.exit(int(ServiceState.UNKNOWN))
        sys.exit(rv if isinstance(rv, int) else 0)


# ── Command ──────────────────────────────────────────────────────────────────


@click.command(cls=PluginCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-v", "-V", "--version", prog_name="checklog")
# Log file control
@click.option("--logfile", "-l", required=True, help="Log file, or fixed path component when using -m. A directory implies -m '*'.")
@click.option("--log-pattern", "-m", default=None, help="Glob suffix for rotated / time stamped names; supports %Y %y %m %d %H %M %S %w %j.")
@click.option("--log-select", "-t", default="last_match", show_default=True,
              type=click.Choice(["most_recent", "first_match", "last_match"], case_sensitive=False),
              help="Which file to pick when -m matches several.")
@click.option("--timestamp", default="now", show_default=True, help="Reference time for -m macros, e.g. '1 day, 6 hours ago' or epoch seconds.")
@click.option("--seekfile", "-s", default=None, help="Seek file, directory for auto-named seek files, or the null device to always read everything.")
@click.option("--seekfile-id", "-S", default="", help="Added to auto-generated seek file names to tell checks apart.")
@click.option("--freshness", default=0, type=click.IntRange(min=0), show_default=True, help="Don't overwrite the seek file unless it is at least this many seconds old.")
@click.option("--show-filename", is_flag=True, help="Append the name of the file that was read.")
# Search pattern control
@click.option("--pattern", "-p", "patterns", multiple=True, help="Regular expression to look for (repeatable).")
@click.option("--patternfile", "-P", "pattern_file", default=None, type=click.Path(dir_okay=False), help="File of regular expressions, one per line.")
@click.option("--and", "-A", "and_patterns", is_flag=True, help="All patterns must match a line (default: any).")
@click.option("--negpattern", "-n", "negpatterns", multiple=True, help="Whitelist regex: matching lines are ignored (repeatable).")
@click.option("--negpatternfile", "-f", "negpattern_file", default=None, type=click.Path(dir_okay=False), help="File of whitelist regexes, one per line.")
@click.option("--case-insensitive", "-i", is_flag=True, help="Case-insensitive matching for patterns and whitelist.")
# Character sets
@click.option("--input-enc", "--encoding", "input_encoding", default=settings.input_encoding, show_default=True, help="Encoding of log and pattern files.")
@click.option("--output-enc", "output_encoding", default=settings.output_encoding, show_default=True, help="Encoding of the plugin output.")
@click.option("--list-encodings", is_flag=True, expose_value=False, is_eager=True, callback=_list_encodings, help="List supported encodings and exit.")
@click.option("--crlf", is_flag=True, help="Translate CRLF line endings.")
# Alerting control
@click.option("--warning", "-w", default="1", show_default=True, help="WARNING threshold: count or percentage (N%).")
@click.option("--critical", "-c", default="0", show_default=True, help="CRITICAL threshold: count or percentage (N%). 0 disables.")
@click.option("--negate", is_flag=True, help="Alert if fewer than the thresholds match.")
@click.option("--ok", "always_ok", is_flag=True, help="Always return OK unless an error occurs.")
@click.option("--nodiff-warn", "--nodiff", "-d", "nodiff_warn", is_flag=True, help="WARNING if the log was not written to since the last check.")
@click.option("--nodiff-crit", "-D", "nodiff_crit", is_flag=True, help="CRITICAL if the log was not written to since the last check.")
@click.option("--missing", default=None, type=click.Choice(["OK", "WARNING", "CRITICAL", "UNKNOWN"], case_sensitive=False), help="State to return when no log file is found.")
@click.option("--missing-ok", is_flag=True, help="Same as --missing=OK.")
@click.option("--missing-msg", default="No log file found", show_default=True, help="Message used with --missing.")
@click.option("--restartcommand", "-R", "restart_command", default="", help="Prefix for CRITICAL heartbeat output, for event handlers.")
@click.option("--returnmessage", "-M", "return_message", default="", help="Suffix for CRITICAL heartbeat output.")
# Output control
@click.option("--output-all", "-a", is_flag=True, help="Output every matching line, not just the last.")
@click.option("--report-max", "-N", default=None, type=click.IntRange(min=1), help="Stop after this many matches.")
@click.option("--report-only", default=None, type=click.IntRange(min=1), help="Output this many matches and skip to the end of the file.")
@click.option("--stop-first-match", is_flag=True, help="Same as --report-max=1.")
@click.option("--report-first-only", is_flag=True, help="Same as --report-only=1.")
@click.option("--context", "-C", default=None, help="Context lines: N around, -N before, +N after the match.")
@click.option("--quiet", "-q", is_flag=True, help="Output only 'No matches found.' when OK.")
@click.option("--ultraq", is_flag=True, help="No output at all when OK.")
@click.option("--no-header", "-Q", is_flag=True, help="Omit state and counters from the output.")
@click.option("--no-perfdata", is_flag=True, help="Omit the standard performance data.")
@click.option("--prometheus", is_flag=True, help="Output Prometheus metrics instead of a status line.")
# Classifier
@click.option("--classifier", "-e", default=None, help="Named classifier applied to each matched line.")
@click.option("--classifier-option", "-o", "classifier_option", multiple=True, help="key=value option for the classifier (repeatable).")
@click.option("--list-classifiers", is_flag=True, expose_value=False, is_eager=True, callback=_list_classifiers, help="List available classifiers and exit.")
@click.option("--escalate", "escalate_on_high_result", is_flag=True, help="A classifier result above 1 forces CRITICAL.")
@click.option("--secure", is_flag=True, help="Disable classifiers.")
# Other
@click.option("--timeout", default=settings.timeout, type=click.IntRange(min=0), show_default=True, help="Give up with UNKNOWN after this many seconds.")
@click.option("--no-timeout", is_flag=True, help="Same as --timeout=0.")
@click.option("--debug", is_flag=True, help="Log what the plugin is doing to stderr.")
def main(
    patterns: tuple[str, ...],
    negpatterns: tuple[str, ...],
    classifier_option: tuple[str, ...],
    nodiff_warn: bool,
    nodiff_crit: bool,
    missing: str | None,
    missing_ok: bool,
    output_all: bool,
    report_max: int | None,
    report_only: int | None,
    stop_first_match: bool,
    report_first_only: bool,
    no_timeout: bool,
    timeout: int,
    debug: bool,
    **options: Any,
) -> int:
    """Scan a log file for regular expression matches since the last run.

    \b
    Examples:
      checklog -l /var/log/messages -p '[Ee]rror' -n nrpe
      checklog -l /var/log/auth.log -p 'Invalid user' -w 10 -c 50
      checklog -l /var/log/messages -p sudo -p root --and -a
    """
    _configure_logging(debug)

    heartbeat = None
    if nodiff_crit:
        heartbeat = HeartbeatMode.CRIT
    elif nodiff_warn:
        heartbeat = HeartbeatMode.WARN

    try:
        config = CheckConfig.build(
            patterns=patterns,
            negpatterns=negpatterns,
            classifier_options=_parse_options(classifier_option),
            heartbeat=heartbeat,
            missing="OK" if missing_ok else missing,
            output=OutputPolicy.from_flags(
                output_all=output_all,
                report_max=report_max,
                report_only=report_only,
                stop_first_match=stop_first_match,
                report_first_only=report_first_only,
            ),
            timeout=0 if no_timeout else timeout,
            **options,
        )
    except ConfigError as exc:
        click.echo(f"UNKNOWN: Error: {exc.message}")
        return int(ServiceState.UNKNOWN)

    if config.classifier and not config.secure and config.classifier not in default_registry:
        default_registry.discover()

    result = LogCheck(config).run()
    _write(Reporter(config).render(result), config.output_encoding)
    return result.exit_code


if __name__ == "__main__":
    main()
