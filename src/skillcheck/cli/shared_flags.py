"""Shared Click option decorators for the skillcheck CLI."""

import functools
import os

import click

from skillcheck.core.domain.entities import ValidationTarget


def format_option():
    """Add --format option (text|json)."""

    def decorator(f):
        return click.option(
            "--format",
            "format",
            type=click.Choice(["text", "json"], case_sensitive=False),
            default="text",
            help="Output format (text|json).",
        )(f)

    return decorator


def target_option():
    """Add --target option; unset means config file or SKILLCHECK_TARGET decides."""

    def decorator(f):
        return click.option(
            "--target",
            type=click.Choice([t.value for t in ValidationTarget], case_sensitive=False),
            default=None,
            help="Which header keys count as known (standard|claude-code|permissive).",
        )(f)

    return decorator


def recursive_option():
    """Add --recursive flag to discover skills below each directory."""

    def decorator(f):
        return click.option(
            "--recursive",
            "-r",
            is_flag=True,
            default=False,
            help="Find skill directories recursively below each argument.",
        )(f)

    return decorator


def include_timestamp_option():
    def decorator(f):
        return click.option(
            "--include-timestamp",
            is_flag=True,
            default=False,
            help="Include ISO 8601 UTC timestamp in JSON output.",
        )(f)

    return decorator


def with_log_silence():
    """Silence log events for JSON output unless verbose/debug is enabled."""

    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            previous = os.environ.get("SKILLCHECK_LOG_SILENT")
            format_value = kwargs.get("format")
            verbose_value = kwargs.get("verbose", False)
            silence_logs = False
            if os.environ.get("SKILLCHECK_DEBUG") != "1" and not verbose_value:
                if format_value == "json":
                    silence_logs = True
            changed = False
            if silence_logs and previous != "1":
                os.environ["SKILLCHECK_LOG_SILENT"] = "1"
                changed = True
            try:
                return f(*args, **kwargs)
            finally:
                if changed:
                    if previous is None:
                        os.environ.pop("SKILLCHECK_LOG_SILENT", None)
                    else:
                        os.environ["SKILLCHECK_LOG_SILENT"] = previous

        return wrapper

    return decorator


def report_output_options():
    """Composite decorator applying --format, --include-timestamp and log silencing."""

    def decorator(f):
        f = format_option()(f)
        f = include_timestamp_option()(f)
        f = with_log_silence()(f)
        return f

    return decorator
