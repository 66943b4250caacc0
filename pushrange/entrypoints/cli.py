"""pushrange CLI entrypoint.

Command-line interface used by repository hooks to find the commits a push
introduces and to serialize work across concurrent hook runs.
"""

from __future__ import annotations

import functools
import json
import logging
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from pushrange.domain.config import LoggingConfig, PushRangeConfig
    from pushrange.domain.entities import RefUpdateReport

from pushrange.core.errors import PushRangeCliError, lock_busy_error, repo_not_found_error
from pushrange.domain.exceptions import LockBusyError, PushRangeDomainError
from pushrange.version import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Converts domain errors and RuntimeError into PushRangeCliError, and
    shows tracebacks for unexpected errors in verbose mode.
    PushRangeCliError exceptions are re-raised to use their built-in
    formatting.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (PushRangeCliError, click.exceptions.Exit):
                raise
            except LockBusyError as e:
                lock_busy_error(e.path)
            except PushRangeDomainError as e:
                raise PushRangeCliError(e.message, hint=e.hint) from e
            except RuntimeError as e:
                raise PushRangeCliError(
                    str(e),
                    hint="Run with --verbose for more details",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise PushRangeCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(
    verbose: bool, quiet: bool, config: LoggingConfig | None = None
) -> None:
    """Configure root logging for this invocation.

    --verbose and --quiet win over the configured level. Log lines go to
    stderr so they never mix with machine-readable stdout.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    elif config is not None:
        level = getattr(logging, config.level)
    else:
        level = logging.WARNING

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config is not None and config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _load_config(git_dir: Path) -> PushRangeConfig:
    """Load configuration for the given git directory.

    Args:
        git_dir: Path to the git directory holding pushrange.toml.

    Returns:
        PushRangeConfig with merged global and local settings.
    """
    from pushrange.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(git_dir)


def _open_repo(ctx: click.Context) -> tuple[Path, PushRangeConfig]:
    """Locate the repository, load its config and apply logging settings.

    Returns:
        Tuple of (repo_path, config).

    Raises:
        PushRangeCliError: If not inside a git repository.
    """
    from pushrange.core.repo_utils import find_repo_path

    try:
        repo_path, git_dir = find_repo_path(ctx.obj.get("repo"))
    except RuntimeError:
        repo_not_found_error(ctx.obj.get("repo") or str(Path.cwd()))

    config = _load_config(git_dir)
    _configure_logging(ctx.obj["verbose"], ctx.obj["quiet"], config.logging)
    ctx.obj["git_dir"] = git_dir
    return repo_path, config


def _load_config_optional(ctx: click.Context) -> PushRangeConfig:
    """Load config for commands that also work outside a repository."""
    from pushrange.core.repo_utils import find_repo_path

    try:
        _, git_dir = find_repo_path(ctx.obj.get("repo"))
    except RuntimeError:
        from pushrange.domain.config import PushRangeConfig

        config = PushRangeConfig.default()
        _configure_logging(ctx.obj["verbose"], ctx.obj["quiet"], config.logging)
        return config

    config = _load_config(git_dir)
    _configure_logging(ctx.obj["verbose"], ctx.obj["quiet"], config.logging)
    return config


def _report_to_dict(report: RefUpdateReport) -> dict:
    """Convert a report to a JSON-serializable dictionary."""
    return {
        "ref": report.event.ref_name,
        "old": report.event.old_id,
        "new": report.event.new_id,
        "kind": report.kind.value,
        "rev": report.operative.rev_id if report.operative else None,
        "rev_type": report.operative.rev_type.value if report.operative else None,
        "description": report.description,
        "range": [str(token) for token in report.range],
        "commits": report.commits,
        "error": report.error,
    }


def _echo_report(report: RefUpdateReport) -> None:
    """Print the human-readable block for one ref update."""
    event = report.event
    if not report.success:
        click.echo(f"✗ {event.ref_name}: {report.error}", err=True)
        return

    rev_type = report.operative.rev_type.value if report.operative else "unknown"
    click.echo(f"{report.kind.value} {event.ref_name} ({rev_type} {report.description})")
    if report.commits:
        click.echo(f"  • {len(report.commits)} new commit(s)")
        for commit_id in report.commits:
            click.echo(f"    {commit_id}")
    else:
        click.echo("  • no new commits")


@click.group()
@click.version_option(version=__version__, prog_name="pushrange")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--repo",
    type=click.Path(file_okay=False),
    default=None,
    help="Repository to operate on (default: $GIT_DIR or current directory).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, repo: str | None) -> None:
    """pushrange - new-commit resolution and locking for push hooks.

    Works out which commits a ref update brings that no other branch has
    already announced.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["repo"] = repo
    _configure_logging(verbose, quiet)


@cli.command()
@click.argument("refname", type=str)
@click.argument("old", type=str)
@click.argument("new", type=str)
@click.option(
    "--commits",
    "show_commits",
    is_flag=True,
    help="Print the resolved new commits instead of the revision range.",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_cli_errors("resolve")
def resolve(
    ctx: click.Context,
    refname: str,
    old: str,
    new: str,
    show_commits: bool,
    as_json: bool,
) -> None:
    """Resolve the new commits of one ref update.

    Arguments follow the update hook: REFNAME OLD NEW. Prints the revision
    range one token per line ('^' marks exclusions), ready for
    'git rev-list --stdin'.
    """
    from pushrange.adapters.factory import UseCaseFactory
    from pushrange.domain.entities import UpdateEvent
    from pushrange.shared.range_io import format_range

    repo_path, config = _open_repo(ctx)
    event = UpdateEvent(ref_name=refname, old_id=old, new_id=new)
    resolver = UseCaseFactory().create_resolver(repo_path, config)
    resolved = resolver.resolve(event)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "ref": refname,
                    "range": [str(token) for token in resolved.range],
                    "commits": resolved.commits,
                },
                indent=2,
            )
        )
    elif show_commits:
        for commit_id in resolved.commits:
            click.echo(commit_id)
    else:
        click.echo(format_range(resolved.range), nl=False)


@cli.command()
@click.argument("old", type=str)
@click.argument("new", type=str)
@click.option(
    "--ref",
    "ref_name",
    type=str,
    default="HEAD",
    show_default=True,
    help="Ref being updated, used in error messages.",
)
@click.pass_context
@handle_cli_errors("classify")
def classify(ctx: click.Context, old: str, new: str, ref_name: str) -> None:
    """Classify an update and show the object it is about."""
    from pushrange.adapters.factory import RepositoryFactory
    from pushrange.core.classifier import classify_update, resolve_operative_revision
    from pushrange.domain.entities import UpdateEvent

    repo_path, _ = _open_repo(ctx)
    event = UpdateEvent(ref_name=ref_name, old_id=old, new_id=new)
    graph = RepositoryFactory().create_graph(repo_path)
    kind = classify_update(event.old_id, event.new_id)
    operative = resolve_operative_revision(graph, event.old_id, event.new_id)
    click.echo(f"{kind.value} {operative.rev_id} {operative.rev_type.value}")


@cli.command("describe")
@click.argument("rev", type=str)
@click.option(
    "--tags/--annotated",
    "tags_only",
    default=None,
    help="Use lightweight tags too, or annotated tags only (default: from config).",
)
@click.option(
    "--override",
    type=str,
    default=None,
    help="Describe this revision instead (e.g., a merge base).",
)
@click.pass_context
@handle_cli_errors("describe")
def describe_command(
    ctx: click.Context, rev: str, tags_only: bool | None, override: str | None
) -> None:
    """Describe REV relative to the nearest tag, falling back to the id."""
    from pushrange.adapters.factory import RepositoryFactory
    from pushrange.core.describe import describe

    repo_path, config = _open_repo(ctx)
    graph = RepositoryFactory().create_graph(repo_path)
    if tags_only is None:
        tags_only = config.describe.tags_only

    click.echo(describe(graph, rev, tags_only=tags_only, override=override))


@cli.command("post-receive")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
@handle_cli_errors("post-receive")
def post_receive(ctx: click.Context, as_json: bool) -> None:
    """Process a push: read '<old> <new> <ref>' lines from stdin.

    Every ref is processed even when another one fails; the exit code is 1
    if any ref failed.
    """
    from pushrange.adapters.factory import UseCaseFactory
    from pushrange.core.hook_usecase import PostReceiveRequest
    from pushrange.shared.update_io import parse_update_lines

    repo_path, config = _open_repo(ctx)
    updates = parse_update_lines(click.get_text_stream("stdin"))
    usecase = UseCaseFactory().create_post_receive_usecase(repo_path, config)
    response = usecase.execute(PostReceiveRequest(updates=updates))

    if response.error:
        raise PushRangeCliError(
            f"Push processing failed: {response.error}",
            hint="Check that the repository is readable by the hook user",
        )

    if as_json:
        click.echo(json.dumps([_report_to_dict(r) for r in response.reports], indent=2))
    else:
        for report in response.reports:
            _echo_report(report)

    if not response.success:
        ctx.exit(1)


@cli.group()
def lock() -> None:
    """Run work under a directory lock shared across hook processes."""
    pass


@lock.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("path", type=click.Path())
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to keep retrying a busy lock (default: from config, 0 = fail fast).",
)
@click.pass_context
@handle_cli_errors("lock run")
def lock_run(ctx: click.Context, path: str, command: tuple[str, ...], timeout: float | None) -> None:
    """Run COMMAND while holding the lock directory PATH.

    Use '--' before COMMAND when it has options of its own.
    """
    from dataclasses import replace

    from pushrange.adapters.factory import LockFactory

    config = _load_config_optional(ctx)
    if timeout is not None:
        config = replace(config, lock=replace(config.lock, retry_timeout=timeout))

    with LockFactory(config).create_lock(Path(path)):
        result = subprocess.run(list(command))

    ctx.exit(result.returncode)


@cli.group()
def counter() -> None:
    """Shared serial counters."""
    pass


@counter.command("next")
@click.argument("counter_file", type=click.Path(dir_okay=False))
@click.option(
    "--lock",
    "lock_path",
    type=click.Path(),
    default=None,
    help="Lock directory (default: COUNTER_FILE.lock).",
)
@click.pass_context
@handle_cli_errors("counter next")
def counter_next(ctx: click.Context, counter_file: str, lock_path: str | None) -> None:
    """Increment COUNTER_FILE under a lock and print the new value."""
    from pushrange.adapters.factory import LockFactory

    config = _load_config_optional(ctx)
    serial = LockFactory(config).create_serial_counter(
        Path(counter_file), Path(lock_path) if lock_path else None
    )
    click.echo(serial.next_value())


@cli.group()
def config() -> None:
    """Inspect and create configuration files."""
    pass


@config.command("show")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration for this repository."""
    import tomli_w

    from pushrange.shared.config_io import config_to_data

    _, effective = _open_repo(ctx)
    click.echo(tomli_w.dumps(config_to_data(effective)), nl=False)


@config.command("path")
@click.pass_context
@handle_cli_errors("config path")
def config_path(ctx: click.Context) -> None:
    """Show where configuration files are read from."""
    from pushrange.shared.config_io import get_global_config_path, get_local_config_path

    _open_repo(ctx)
    for label, path in (
        ("local", get_local_config_path(ctx.obj["git_dir"])),
        ("global", get_global_config_path()),
    ):
        status = "exists" if path.exists() else "not found"
        click.echo(f"{label}: {path} ({status})")


@config.command("init")
@click.option("--global", "init_global", is_flag=True, help="Write the global config file.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file.")
@click.pass_context
@handle_cli_errors("config init")
def config_init(ctx: click.Context, init_global: bool, force: bool) -> None:
    """Write a config file with the default settings."""
    from pushrange.domain.config import PushRangeConfig
    from pushrange.shared.config_io import (
        get_global_config_path,
        get_local_config_path,
        save_config,
    )

    if init_global:
        path = get_global_config_path()
    else:
        _open_repo(ctx)
        path = get_local_config_path(ctx.obj["git_dir"])

    if path.exists() and not force:
        raise PushRangeCliError(
            f"Config file already exists: {path}",
            hint="Use --force to overwrite it",
        )

    save_config(PushRangeConfig.default(), path)
    click.echo(f"✓ Wrote {path}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
