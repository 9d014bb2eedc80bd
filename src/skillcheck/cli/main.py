import contextlib
import json
import os
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skillcheck.cli.shared_flags import (
    recursive_option,
    report_output_options,
    target_option,
)
from skillcheck.core.domain.entities import Severity, SkillReport
from skillcheck.core.services.error_codes import ErrorCode, SkillcheckError
from skillcheck.core.services.exit_codes import (
    EX_COMPLIANCE_FAIL,
    EX_SUCCESS,
    exit_code_for_diagnostics,
    exit_code_for_error,
)
from skillcheck.core.services.observability import get_current_run_id, log_operation
from skillcheck.core.services.output_formatter import (
    format_envelope,
    format_error_envelope,
    report_to_result,
)
from skillcheck.core.services.safe_fs import is_regular_dir, is_regular_file
from skillcheck.core.services.skill_config import load_skill_config
from skillcheck.core.services.skill_properties import read_properties, read_skill_text
from skillcheck.core.use_cases.discover_skills import discover_skills
from skillcheck.core.use_cases.format_skill import FormatSkillUseCase, diff_skill
from skillcheck.core.use_cases.validate_skill import ValidateSkillUseCase, validate_many

console = Console()

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def get_console() -> Console:
    """Helper to get the rich console from context if available."""
    ctx = click.get_current_context(silent=True)
    if ctx is not None and isinstance(ctx.obj, dict) and "console" in ctx.obj:
        return ctx.obj["console"]
    return console


@contextlib.contextmanager
def command_output_handler(command_name: str, format: str, run_id: str):
    """Centralized error handling and output formatting for CLI commands."""
    try:
        yield
    except SkillcheckError as e:
        if format == "json":
            click.echo(
                format_error_envelope(
                    command=command_name,
                    error_code=e.code,
                    message=e.message,
                    details=e.details,
                    run_id=run_id,
                )
            )
        else:
            get_console().print(f"[bold red]\\[ERROR {e.code.value}] {escape(e.message)}[/bold red]")
        raise SystemExit(exit_code_for_error(e.code))
    except Exception as e:
        safe_msg = "An unexpected internal error occurred."
        if format == "json":
            click.echo(
                format_error_envelope(
                    command=command_name,
                    error_code=ErrorCode.UNKNOWN_ERROR,
                    message=safe_msg,
                    details={"internal_error": str(e)},
                    run_id=run_id,
                )
            )
        else:
            get_console().print(f"[bold red]\\[ERROR UNKNOWN_ERROR] {safe_msg}[/bold red]")
        click.echo(f"INTERNAL ERROR: {e}", err=True)
        raise SystemExit(exit_code_for_error(ErrorCode.UNKNOWN_ERROR))


def resolve_skill_dirs(paths: Tuple[str, ...], recursive: bool) -> List[Path]:
    """Turn CLI arguments into skill directories.

    A path to a SKILL.md file stands for its parent directory. With
    ``recursive`` every directory below each argument that holds a
    definition is included; discovery warnings go to stderr.
    """
    resolved: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if is_regular_file(path):
            path = path.parent
        if not is_regular_dir(path):
            raise SkillcheckError(
                code=ErrorCode.DIRECTORY_NOT_FOUND,
                message=f"not a directory: '{raw}'",
                details={"path": raw},
            )
        if not recursive:
            resolved.append(path)
            continue
        found, warnings = discover_skills(path)
        for warning in warnings:
            click.echo(f"warning: {warning.path}: {warning.message}", err=True)
        resolved.extend(found)

    if not resolved:
        raise SkillcheckError(
            code=ErrorCode.SKILL_NOT_FOUND,
            message="no SKILL.md files found under the specified path(s)",
            details={"paths": list(paths)},
        )

    unique: List[Path] = []
    for path in resolved:
        if path not in unique:
            unique.append(path)
    return unique


def _print_reports(reports: List[SkillReport]) -> None:
    out = get_console()
    rows = [(report, d) for report in reports for d in report.diagnostics]

    if rows:
        table = Table(title="Skill Diagnostics")
        table.add_column("Severity")
        table.add_column("Code", style="cyan")
        table.add_column("Skill")
        table.add_column("Field")
        table.add_column("Message", overflow="fold")
        for report, d in rows:
            severity = Severity(d.severity)
            message = escape(d.message)
            if d.suggestion:
                message += f"\n[dim]{escape(d.suggestion)}[/dim]"
            table.add_row(
                f"[{_SEVERITY_STYLES[severity]}]{severity.value}[/{_SEVERITY_STYLES[severity]}]",
                str(d.code),
                escape(report.path.as_posix()),
                d.field or "",
                message,
            )
        out.print(table)

    for report in reports:
        if report.fixes_applied:
            out.print(f"Applied {report.fixes_applied} fix(es) to {escape(report.path.as_posix())}")

    failed = sum(1 for r in reports if r.has_errors)
    warned = sum(1 for r in reports if r.has_warnings and not r.has_errors)
    ok = len(reports) - failed - warned
    if failed:
        out.print(
            f"\n[bold red]{len(reports)} skill(s): {ok} ok, {failed} with errors, "
            f"{warned} with warnings only.[/bold red]"
        )
    elif warned:
        out.print(f"\n[bold yellow]{len(reports)} skill(s): {ok} ok, {warned} with warnings only.[/bold yellow]")
    else:
        out.print("[bold green]ok[/bold green]")


def _run_validation(
    command: str,
    dirs: Tuple[str, ...],
    target: Optional[str],
    structure: Optional[bool],
    lint: Optional[bool],
    apply_fixes: bool,
    recursive: bool,
    format: str,
    include_timestamp: bool,
) -> None:
    run_id = get_current_run_id()
    with command_output_handler(command, format, run_id):
        skill_dirs = resolve_skill_dirs(dirs, recursive)

        def use_case_for(directory: Path) -> ValidateSkillUseCase:
            config = load_skill_config(directory).with_overrides(
                target=target, structure=structure, lint=lint
            )
            return ValidateSkillUseCase(
                target=config.target,
                structure=config.structure,
                lint=config.lint,
                apply_fixes=apply_fixes,
            )

        with log_operation(
            operation=command,
            details={"skills": len(skill_dirs), "apply_fixes": apply_fixes},
            run_id=run_id,
        ) as ctx:
            if len(skill_dirs) == 1 and not recursive:
                reports = [use_case_for(skill_dirs[0]).execute(skill_dirs[0])]
            else:
                reports = validate_many(skill_dirs, use_case_for)
            ctx["details"]["failed"] = sum(1 for r in reports if r.has_errors)

        success = not any(r.has_errors for r in reports)
        if format == "json":
            click.echo(
                format_envelope(
                    command=command,
                    success=success,
                    results=[report_to_result(r) for r in reports],
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                )
            )
        else:
            _print_reports(reports)
        raise SystemExit(exit_code_for_diagnostics([d for r in reports for d in r.diagnostics]))


@click.group()
@click.version_option(package_name="skillcheck", prog_name="skillcheck")
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI colors in text output.")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose debug logging.")
@click.pass_context
def cli(ctx: click.Context, no_color: bool, verbose: bool):
    """Validate and format SKILL.md skill definitions."""
    if verbose:
        previous_debug = os.environ.get("SKILLCHECK_DEBUG")
        os.environ["SKILLCHECK_DEBUG"] = "1"

        def _restore_debug() -> None:
            if previous_debug is None:
                os.environ.pop("SKILLCHECK_DEBUG", None)
            else:
                os.environ["SKILLCHECK_DEBUG"] = previous_debug

        ctx.call_on_close(_restore_debug)

    ctx.ensure_object(dict)
    ctx.obj["console"] = Console(no_color=no_color)


@cli.command()
@click.argument("dirs", nargs=-1, required=True)
@target_option()
@click.option(
    "--structure/--no-structure",
    default=None,
    help="Also run directory structure checks.",
)
@click.option("--apply-fixes", is_flag=True, default=False, help="Fix what can be fixed, then re-validate.")
@recursive_option()
@report_output_options()
def validate(dirs, target, structure, apply_fixes, recursive, format, include_timestamp):
    """Validate the skills in DIRS.

    Exits 1 when any skill has an error-severity diagnostic.
    """
    _run_validation(
        "validate",
        dirs,
        target=target,
        structure=structure,
        lint=None,
        apply_fixes=apply_fixes,
        recursive=recursive,
        format=format,
        include_timestamp=include_timestamp,
    )


@cli.command()
@click.argument("dirs", nargs=-1, required=True)
@target_option()
@recursive_option()
@report_output_options()
def check(dirs, target, recursive, format, include_timestamp):
    """Validate DIRS with structure checks and lint hints enabled."""
    _run_validation(
        "check",
        dirs,
        target=target,
        structure=True,
        lint=True,
        apply_fixes=False,
        recursive=recursive,
        format=format,
        include_timestamp=include_timestamp,
    )


@cli.command("format")
@click.argument("dirs", nargs=-1, required=True)
@click.option("--check", "check_only", is_flag=True, default=False, help="Report files that would change; write nothing.")
@recursive_option()
@report_output_options()
def format_command(dirs, check_only, recursive, format, include_timestamp):
    """Rewrite SKILL.md files in DIRS into canonical form."""
    run_id = get_current_run_id()
    with command_output_handler("format", format, run_id):
        skill_dirs = resolve_skill_dirs(dirs, recursive)
        results = []
        for directory in skill_dirs:
            use_case = FormatSkillUseCase(directory)
            if check_only:
                result = use_case.execute(write=False)
                diff = (
                    diff_skill(result, read_skill_text(result.path), label=result.path.as_posix())
                    if result.changed
                    else ""
                )
            else:
                result = use_case.execute(write=True)
                diff = ""
            results.append((directory, result, diff))

        changed = [item for item in results if item[1].changed]
        success = not (check_only and changed)

        if format == "json":
            click.echo(
                format_envelope(
                    command="format",
                    success=success,
                    results=[
                        {"path": directory.as_posix(), "diagnostics": [], "changed": result.changed}
                        for directory, result, _ in results
                    ],
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                )
            )
        else:
            out = get_console()
            for directory, result, diff in results:
                if not result.changed:
                    continue
                verb = "would reformat" if check_only else "reformatted"
                out.print(f"{verb} {escape(directory.as_posix())}")
                if diff:
                    click.echo(diff, nl=False)
            if not changed:
                out.print(f"[bold green]{len(results)} skill(s) already formatted[/bold green]")
        raise SystemExit(EX_SUCCESS if success else EX_COMPLIANCE_FAIL)


@cli.command()
@click.argument("skill_dir")
def properties(skill_dir):
    """Print the typed properties of SKILL_DIR as JSON."""
    run_id = get_current_run_id()
    with command_output_handler("properties", "json", run_id):
        directory = resolve_skill_dirs((skill_dir,), recursive=False)[0]
        props = read_properties(directory)
        click.echo(json.dumps(props.to_dict(), indent=2, ensure_ascii=False, default=str))


def main():
    cli()


if __name__ == "__main__":
    main()
