"""Click-based CLI for clsync - settings sync for Claude Code."""

from __future__ import annotations

import functools
import sys
from pathlib import Path
from typing import Callable, Optional

import click
import yaml
from pydantic import ValidationError

from clsync import __version__
from clsync.config import (
    ensure_config_exists,
    get_config_path,
    load_or_default,
    update_linked_repo,
    validate_config_file,
)
from clsync.errors import ClsyncError
from clsync.output.console import Console, create_console
from clsync.remote.github import parse_repo_reference
from clsync.sync.engine import ClsyncEngine
from clsync.sync.item import scan_items
from clsync.sync.scope import Scope


class CliState:
    """Per-invocation state shared through the click context."""

    def __init__(self, config_path: Optional[Path], verbose: bool):
        self.config_path = config_path
        self.verbose = verbose
        self._engine: Optional[ClsyncEngine] = None
        self._console: Optional[Console] = None

    @property
    def config(self):
        return self.engine.config

    @property
    def engine(self) -> ClsyncEngine:
        if self._engine is None:
            config = load_or_default(self.config_path)
            self._engine = ClsyncEngine(config, cwd=Path.cwd())
        return self._engine

    @property
    def console(self) -> Console:
        if self._console is None:
            try:
                output = load_or_default(self.config_path).output
                self._console = create_console(
                    verbose=self.verbose or output.verbose,
                    colored=output.colored,
                    log_file=output.log_file,
                )
            except (ValidationError, yaml.YAMLError, OSError):
                self._console = create_console(verbose=self.verbose)
        return self._console

    def close(self) -> None:
        if self._engine is not None:
            self._engine.close()


pass_state = click.make_pass_decorator(CliState)


def handle_errors(func: Callable) -> Callable:
    """Print engine and configuration errors and exit with status 1."""

    @functools.wraps(func)
    def wrapper(state: CliState, *args, **kwargs):
        try:
            return func(state, *args, **kwargs)
        except ClsyncError as e:
            state.console.print_exception(e)
        except ValidationError as e:
            state.console.print_error(f"Invalid configuration: {e}")
        except yaml.YAMLError as e:
            state.console.print_error(f"Invalid configuration YAML: {e}")
        except OSError as e:
            state.console.print_error(str(e))
        sys.exit(1)

    return wrapper


def scope_options(func: Callable) -> Callable:
    """Add -p/-u/-d options selecting the settings root."""
    func = click.option(
        "--dir",
        "-d",
        "directory",
        type=click.Path(file_okay=False, path_type=Path),
        help="Custom settings root",
    )(func)
    func = click.option("--user", "-u", "user", is_flag=True, help="User scope (~/.claude)")(func)
    func = click.option("--project", "-p", "project", is_flag=True, help="Project scope (./.claude)")(func)
    return func


def _scope(project: bool, user: bool, directory: Optional[Path], *, default: Optional[Scope]) -> Optional[Scope]:
    chosen = sum([project, user, directory is not None])
    if chosen > 1:
        raise click.UsageError("Use only one of --project, --user and --dir")
    if project:
        return Scope.project()
    if user:
        return Scope.user()
    if directory is not None:
        return Scope.custom(directory)
    return default


@click.group()
@click.version_option(version=__version__, prog_name="clsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="CLSYNC_CONFIG",
    help="Configuration file (default: ~/.config/clsync/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """clsync - settings sync for Claude Code.

    Stage, push, pull and move skills, agents and output-styles.

    \b
    User:     ~/.claude/{skills,agents,output-styles}
    Project:  ./.claude/{skills,agents,output-styles}
    Staging:  ~/.clsync/local/
    Caches:   ~/.clsync/repos/<owner>/<repo>/
    """
    state = CliState(config_path, verbose)
    ctx.obj = state
    ctx.call_on_close(state.close)


# ============================================================================
# Overview
# ============================================================================


@cli.command()
@pass_state
@handle_errors
def init(state: CliState) -> None:
    """Create the configuration file and the clsync home."""
    config_path, created = ensure_config_exists(state.config_path)
    if created:
        state.console.print_success(f"Created configuration: {config_path}")
    else:
        state.console.print_info(f"Configuration exists: {config_path}")

    for directory in state.engine.init():
        state.console.print_success(f"Created {directory}")

    state.console.print_success(f"clsync home ready at {state.engine.home.root}")


@cli.command()
@pass_state
@handle_errors
def status(state: CliState) -> None:
    """Show items per root, pulled repositories and interrupted moves."""
    state.console.print_status(state.engine.status())


@cli.command("list")
@scope_options
@click.option("--local", "-l", "local", is_flag=True, help="Staging area")
@click.option("--repo", "-r", "repo", default=None, help="Pulled repository cache (owner/repo)")
@pass_state
@handle_errors
def list_items(
    state: CliState,
    project: bool,
    user: bool,
    directory: Optional[Path],
    local: bool,
    repo: Optional[str],
) -> None:
    """List items in a scope, the staging area or a pulled repository."""
    engine = state.engine

    if local:
        state.console.print_items(engine.staging.list_staged(), title="local")
        return
    if repo:
        slug = parse_repo_reference(repo).slug
        state.console.print_items(engine.remote.list_repo_items(slug), title=slug)
        return

    scope = _scope(project, user, directory, default=Scope.user())
    state.console.print_items(scan_items(engine.resolve(scope)), title=scope.label)


@cli.command()
@pass_state
@handle_errors
def repos(state: CliState) -> None:
    """List pulled repositories."""
    state.console.print_repos(state.engine.remote.list_pulled_repos())


# ============================================================================
# Staging
# ============================================================================


@cli.command()
@click.argument("name", required=False)
@click.option("--all", "-a", "all_items", is_flag=True, help="Stage every item in the scope")
@scope_options
@pass_state
@handle_errors
def stage(
    state: CliState,
    name: Optional[str],
    all_items: bool,
    project: bool,
    user: bool,
    directory: Optional[Path],
) -> None:
    """Copy an item (or all items) from a scope into the staging area."""
    scope = _scope(project, user, directory, default=Scope.user())

    if all_items:
        state.console.print_stage_results(state.engine.staging.stage_all(scope), verb="Staged")
        return
    if not name:
        raise click.UsageError("Give an item NAME or --all")

    result = state.engine.staging.stage(name, scope)
    state.console.print_success(f"Staged {result.item.item_type.value} {result.item.name} from {scope.label}")


@cli.command()
@click.argument("name")
@pass_state
@handle_errors
def unstage(state: CliState, name: str) -> None:
    """Remove an item from the staging area."""
    item = state.engine.staging.unstage(name)
    state.console.print_success(f"Unstaged {item.item_type.value} {item.name}")


@cli.command()
@click.argument("name", required=False)
@click.option("--all", "-a", "all_items", is_flag=True, help="Apply every item of the source")
@click.option("--source", "-s", default=None, help="Pulled repository (owner/repo), default: staging area")
@scope_options
@pass_state
@handle_errors
def apply(
    state: CliState,
    name: Optional[str],
    all_items: bool,
    source: Optional[str],
    project: bool,
    user: bool,
    directory: Optional[Path],
) -> None:
    """Copy an item (or all items) from staging or a pulled repo into a scope."""
    scope = _scope(project, user, directory, default=Scope.user())

    if all_items:
        state.console.print_stage_results(state.engine.staging.apply_all(scope, source), verb="Applied")
        return
    if not name:
        raise click.UsageError("Give an item NAME or --all")

    result = state.engine.staging.apply(name, scope, source)
    state.console.print_success(
        f"Applied {result.item.item_type.value} {result.item.name} from {result.source} to {scope.label}"
    )


@cli.command()
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--author", default=None, help="Author recorded in clsync.json")
@click.option("--description", default=None, help="Description recorded in clsync.json")
@pass_state
@handle_errors
def export(state: CliState, output_dir: Path, author: Optional[str], description: Optional[str]) -> None:
    """Write the staged items and a clsync.json into OUTPUT_DIR."""
    result = state.engine.staging.export(output_dir, author=author, description=description)
    state.console.print_success(f"Exported {result.exported} item(s) to {result.output_dir}")


# ============================================================================
# Remote
# ============================================================================


@cli.command()
@click.argument("repo")
@click.option("--force", "-f", is_flag=True, help="Re-download files already in the cache")
@pass_state
@handle_errors
def pull(state: CliState, repo: str, force: bool) -> None:
    """Download a repository's items into the local cache."""
    result = state.engine.remote.pull(repo, force=force, on_progress=state.console.print_debug)
    state.console.print_pull_result(result)


@cli.command()
@click.argument("repo")
@pass_state
@handle_errors
def browse(state: CliState, repo: str) -> None:
    """List a repository's items without downloading them."""
    items = state.engine.remote.browse(repo)
    state.console.print_items(items, title=parse_repo_reference(repo).slug)


@cli.command()
@click.argument("name", required=False)
@click.option("--force", "-f", is_flag=True, help="Re-download files already in the cache")
@pass_state
@handle_errors
def online(state: CliState, name: Optional[str], force: bool) -> None:
    """List the online repository registry, or pull the entry NAME."""
    if name is None:
        state.console.print_registry(state.engine.remote.online_repos())
        return

    result = state.engine.remote.pull_online(name, force=force, on_progress=state.console.print_debug)
    state.console.print_pull_result(result)


@cli.command()
@click.option("--repo", "-r", default=None, help="Target repository (default: linked repo)")
@click.option("--message", "-m", default=None, help="Commit message")
@click.option("--force", "-f", is_flag=True, help="Force-push over the remote history")
@scope_options
@pass_state
@handle_errors
def push(
    state: CliState,
    repo: Optional[str],
    message: Optional[str],
    force: bool,
    project: bool,
    user: bool,
    directory: Optional[Path],
) -> None:
    """Push the staging area (or a scope) to a repository.

    Without a target repository the files are prepared in a temp directory
    for a manual push.
    """
    source = _scope(project, user, directory, default=None)
    result = state.engine.remote.push(
        source,
        repo=repo,
        message=message,
        force=force,
        on_progress=state.console.print_debug,
    )
    state.console.print_push_result(result)


@cli.command()
@click.argument("repo", required=False)
@click.option("--unlink", is_flag=True, help="Remove the linked repository")
@pass_state
@handle_errors
def link(state: CliState, repo: Optional[str], unlink: bool) -> None:
    """Link the repository push uses by default, or show the current link."""
    if unlink:
        update_linked_repo(None, state.config_path)
        state.console.print_success("Unlinked repository")
        return

    if not repo:
        linked = state.config.push.linked_repo
        if linked:
            state.console.print_info(f"Linked repository: {linked}")
        else:
            state.console.print_info("No repository linked. Use 'clsync link owner/repo'.")
        return

    slug = parse_repo_reference(repo).slug
    update_linked_repo(slug, state.config_path)
    state.console.print_success(f"Linked {slug}")


# ============================================================================
# Scopes
# ============================================================================


@cli.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing item in user scope")
@click.option("--rename", "-r", default=None, help="Name to use in user scope")
@pass_state
@handle_errors
def promote(state: CliState, name: str, force: bool, rename: Optional[str]) -> None:
    """Move an item from project scope to user scope."""
    state.console.print_move_result(state.engine.mover.promote(name, force=force, rename=rename))


@cli.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing item in project scope")
@click.option("--rename", "-r", default=None, help="Name to use in project scope")
@pass_state
@handle_errors
def demote(state: CliState, name: str, force: bool, rename: Optional[str]) -> None:
    """Move an item from user scope to project scope."""
    state.console.print_move_result(state.engine.mover.demote(name, force=force, rename=rename))


@cli.command()
@pass_state
@handle_errors
def scopes(state: CliState) -> None:
    """Show project and user items side by side."""
    state.console.print_scopes(state.engine.mover.list_both_scopes())


@cli.command()
@pass_state
@handle_errors
def reconcile(state: CliState) -> None:
    """Finish or settle promote/demote moves that were interrupted."""
    state.console.print_reconcile_results(state.engine.mover.reconcile())


# ============================================================================
# Configuration
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration file commands.

    \b
    Location: ~/.config/clsync/config.yaml
    Override with --config or the CLSYNC_CONFIG environment variable.
    """
    pass


@config.command("init")
@pass_state
@handle_errors
def config_init(state: CliState) -> None:
    """Write a default configuration file if none exists."""
    config_path, created = ensure_config_exists(state.config_path)
    if created:
        state.console.print_success(f"Created configuration: {config_path}")
    else:
        state.console.print_warning(f"Configuration already exists: {config_path}")


@config.command("show")
@pass_state
@handle_errors
def config_show(state: CliState) -> None:
    """Print the effective configuration."""
    config_path = state.config_path or get_config_path()
    state.console.print(f"[dim]# {config_path}{'' if config_path.exists() else ' (defaults)'}[/dim]")
    data = state.config.model_dump(mode="json")
    state.console.print(yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True), markup=False)


@config.command("validate")
@pass_state
@handle_errors
def config_validate(state: CliState) -> None:
    """Validate the configuration file."""
    config_path = state.config_path or get_config_path()
    valid, errors = validate_config_file(config_path)
    if valid:
        state.console.print_success(f"Configuration is valid: {config_path}")
        return

    for error in errors:
        state.console.print_error(error)
    sys.exit(1)


if __name__ == "__main__":
    cli()
