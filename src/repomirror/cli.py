"""CLI entry point for repomirror.

Commands:
- sync / sync-one: Run every configured sync job once
- sync-forever: Run the sync jobs continuously until interrupted
- pull: Pull upstream source changes and optionally sync afterwards
- push: Commit and push the target repository
- remote add / list / remove: Manage the target's remotes
- dispatch-sync: Run the sync in GitHub Actions
"""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path

import click

from repomirror.agents import AgentKind, get_agent
from repomirror.config import (
    ConfigError,
    RepoMirrorConfig,
    add_remote,
    find_config,
    is_valid_remote_url,
    load_config,
    remove_remote,
)
from repomirror.dispatch import (
    DEFAULT_WORKFLOW,
    DispatchError,
    WorkflowDispatcher,
    get_github_token,
    parse_github_repo,
)
from repomirror.logging import setup_logging
from repomirror.loop import LoopDriver, LoopSummary
from repomirror.pipeline import BatchResult, ScratchDirectory, SyncBatchError, SyncPipeline
from repomirror.remote import (
    FailureKind,
    PostPullAction,
    PullConflictError,
    RemoteDescriptor,
    RemoteError,
    RemoteSync,
    SourcePuller,
)

MAX_SUMMARY_LENGTH = 80
REACHABILITY_TIMEOUT = 10

GUIDANCE: dict[FailureKind, list[str]] = {
    FailureKind.CONFLICT: [
        "Resolve the conflicts in the source repository:",
        "  1. Edit the conflicted files",
        "  2. git add <files> && git commit",
        "  3. Re-run 'repomirror pull'",
    ],
    FailureKind.AUTHENTICATION: [
        "For HTTPS: check your GitHub token or credentials",
        "For SSH: ensure your SSH key is added to your GitHub account",
    ],
    FailureKind.REF_NOT_FOUND: [
        "The branch does not exist on the remote; check 'pull.source_branch' "
        "or 'push.default_branch' in repomirror.yaml",
    ],
    FailureKind.UNREACHABLE: [
        "Check the remote URL and your network connection",
    ],
    FailureKind.REJECTED: [
        "Push rejected; you may need to pull first",
        "Try: git pull from the target directory",
    ],
    FailureKind.TIMEOUT: [
        "The git command timed out; check your network connection",
    ],
}


def _echo_guidance(kind: FailureKind) -> None:
    for line in GUIDANCE.get(kind, []):
        click.echo(f"  {line}", err=True)


def _load(ctx: click.Context) -> RepoMirrorConfig:
    """Load configuration and start logging under the project's scratch directory."""
    try:
        config_path = ctx.obj.get("config_path") or find_config()
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    ctx.obj["config_path"] = Path(config_path)
    setup_logging(
        log_dir=os.environ.get("REPOMIRROR_LOG_DIR") or config.scratch_dir / "logs",
        level="DEBUG" if ctx.obj.get("verbose") else None,
    )
    return config


def build_pipeline(
    config: RepoMirrorConfig, cancel_event: threading.Event | None = None
) -> SyncPipeline:
    """Create the sync pipeline described by a configuration."""
    return SyncPipeline(
        ScratchDirectory(config.scratch_dir),
        plan_path=config.plan_path,
        agent_factory=get_agent,
        agent_options={AgentKind.CLAUDE_CODE.value: {"timeout": config.loop.agent_timeout}},
        cancel_event=cancel_event,
    )


def commit_message(prefix: str, instructions: str, source_hash: str | None) -> str:
    """Build the commit message for synced target changes."""
    summary = " ".join(instructions.split())
    if len(summary) >= MAX_SUMMARY_LENGTH:
        summary = "Apply code transformations"
    message = f"{prefix} {summary}"
    if source_hash:
        message += f" (source: {source_hash})"
    return message


def _commit_and_push(
    config: RepoMirrorConfig,
    targets: list[tuple[str, str]],
    dry_run: bool = False,
) -> None:
    """Commit pending target changes and push them to each (remote, branch).

    Raises:
        RemoteError: If the target is not a repository, or committing or
            pushing fails.
    """
    job = config.syncs[0]
    target = RemoteSync(job.target_repo)
    if not target.check_status().is_git_repo:
        raise RemoteError(f"Target directory {job.target_repo} is not a valid git repository")

    if target.has_changes():
        source_hash = RemoteSync(job.source_path).head_short_hash()
        message = commit_message(config.push.commit_prefix, job.instructions, source_hash)
        click.echo(f"Commit message: {message}")
        if not dry_run:
            target.commit_all(message)
    else:
        click.echo("No changes to commit")

    for remote, branch in targets:
        output = target.push(remote, branch, dry_run=dry_run)
        action = "Dry run succeeded for" if dry_run else "Pushed to"
        click.echo(f"✓ {action} {remote}/{branch}")
        if output:
            click.echo(output)


def _auto_push(config: RepoMirrorConfig) -> None:
    remotes = config.auto_push_remotes()
    if not remotes:
        click.echo("No remotes with auto_push enabled")
        return
    _commit_and_push(config, [(remote.name, remote.branch) for remote in remotes])


def _run_once(config: RepoMirrorConfig, auto_push: bool = False) -> BatchResult:
    """Run one batch and report it.

    Raises:
        SyncBatchError: If a job failed.
        RemoteError: If auto-push failed.
    """
    click.echo(f"Running {len(config.syncs)} sync job(s)...")
    result = build_pipeline(config).run_batch(config.syncs)
    click.echo(f"✓ All {result.total} sync job(s) completed")
    if auto_push:
        _auto_push(config)
    return result


def _run_forever(
    config_path: Path,
    interval: float,
    iterations: int | None = None,
    auto_push: bool = False,
) -> LoopSummary:
    """Run the loop driver, reloading configuration on every iteration."""
    cancel_event = threading.Event()

    def run_batch() -> BatchResult:
        config = load_config(config_path)
        result = build_pipeline(config, cancel_event).run_batch(config.syncs)
        if auto_push:
            _auto_push(config)
        return result

    click.echo(f"Running continuous sync every {interval:g}s (Ctrl+C to stop)")
    driver = LoopDriver(
        run_batch,
        interval=interval,
        cancel_event=cancel_event,
        max_iterations=iterations,
    )
    summary = driver.run()
    click.echo(
        f"Stopped after {len(summary.iterations)} iteration(s), {summary.failures} failed"
    )
    return summary


def _report_batch_failure(e: SyncBatchError) -> None:
    click.echo(f"✗ Sync failed: {e}", err=True)
    failed = e.result.failed_run
    if failed is not None and failed.artifacts.migration_prompt:
        click.echo(f"  Prompt: {failed.artifacts.migration_prompt}", err=True)


@click.group()
@click.version_option(package_name="repomirror")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to repomirror.yaml (auto-detected if not specified)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """repomirror - keep a target repository in sync with a source repository."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@main.command()
@click.option(
    "--auto-push",
    is_flag=True,
    help="Push to remotes with auto_push enabled after a successful sync",
)
@click.pass_context
def sync(ctx: click.Context, auto_push: bool) -> None:
    """Run every configured sync job once."""
    config = _load(ctx)
    try:
        _run_once(config, auto_push=auto_push)
    except SyncBatchError as e:
        _report_batch_failure(e)
        sys.exit(1)
    except RemoteError as e:
        click.echo(f"✗ Auto-push failed: {e}", err=True)
        _echo_guidance(e.kind)
        sys.exit(1)


main.add_command(sync, "sync-one")


@main.command("sync-forever")
@click.option("--interval", type=float, default=None, help="Seconds between iterations")
@click.option(
    "--iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many iterations (default: run until interrupted)",
)
@click.option(
    "--auto-push",
    is_flag=True,
    help="Push to remotes with auto_push enabled after each iteration",
)
@click.pass_context
def sync_forever(
    ctx: click.Context, interval: float | None, iterations: int | None, auto_push: bool
) -> None:
    """Run the sync jobs continuously until interrupted."""
    config = _load(ctx)
    if interval is None:
        interval = config.loop.interval
    if interval < 0:
        click.echo("Error: --interval must not be negative", err=True)
        sys.exit(1)
    _run_forever(ctx.obj["config_path"], interval, iterations, auto_push)


@main.command()
@click.option("--check", "check_only", is_flag=True, help="Only check for new commits")
@click.option("--source-only", is_flag=True, help="Pull without triggering a sync")
@click.option("--sync-after", is_flag=True, help="Start continuous sync after pulling")
@click.pass_context
def pull(ctx: click.Context, check_only: bool, source_only: bool, sync_after: bool) -> None:
    """Pull upstream changes into the source repository."""
    config = _load(ctx)
    config_path = ctx.obj["config_path"]
    source = config.pull_source_path

    puller = SourcePuller(
        RemoteSync(source),
        remote=config.pull.source_remote,
        branch=config.pull.source_branch,
        auto_sync=config.pull.auto_sync,
        sync_once=lambda: _run_once(config),
        sync_forever=lambda: _run_forever(config_path, config.loop.interval),
    )

    ref = f"{config.pull.source_remote}/{config.pull.source_branch}"
    click.echo(f"Checking {source} for changes from {ref}...")
    try:
        outcome = puller.run(check_only=check_only, source_only=source_only, sync_after=sync_after)
    except PullConflictError as e:
        click.echo(f"✗ {e}", err=True)
        _echo_guidance(FailureKind.CONFLICT)
        sys.exit(1)
    except RemoteError as e:
        click.echo(f"✗ {e}", err=True)
        _echo_guidance(e.kind)
        sys.exit(1)
    except SyncBatchError as e:
        _report_batch_failure(e)
        sys.exit(1)

    if outcome.status.has_uncommitted_changes:
        click.echo("Warning: source repository has uncommitted changes")

    summary = outcome.summary
    if summary is None or not summary.has_new_commits:
        click.echo("✓ Source repository is up to date")
        return

    click.echo(f"Found {summary.commit_count} new commit(s):")
    for message in summary.preview_messages:
        click.echo(f"  {message}")
    if summary.commit_count > len(summary.preview_messages):
        click.echo(f"  ... and {summary.commit_count - len(summary.preview_messages)} more")

    if check_only:
        click.echo("Run 'repomirror pull' to apply these changes")
        return

    click.echo(f"✓ Pulled changes from {ref}")
    if outcome.action is PostPullAction.NONE and not source_only:
        click.echo("Run 'repomirror sync' to sync the new changes")


@main.command()
@click.option("-r", "--remote", "remote_name", default=None, help="Remote to push to")
@click.option("-b", "--branch", default=None, help="Branch to push")
@click.option("--all", "push_all", is_flag=True, help="Push to every configured remote")
@click.option("--dry-run", is_flag=True, help="Show what would be pushed without pushing")
@click.pass_context
def push(
    ctx: click.Context,
    remote_name: str | None,
    branch: str | None,
    push_all: bool,
    dry_run: bool,
) -> None:
    """Commit and push the target repository."""
    config = _load(ctx)

    if push_all:
        if not config.remotes:
            click.echo("Error: No remotes configured", err=True)
            sys.exit(1)
        targets = [(item.name, branch or item.branch) for item in config.remotes]
    else:
        name = remote_name or config.push.default_remote
        descriptor = config.get_remote(name)
        default_branch = descriptor.branch if descriptor else config.push.default_branch
        targets = [(name, branch or default_branch)]

    try:
        _commit_and_push(config, targets, dry_run=dry_run)
    except RemoteError as e:
        click.echo(f"✗ {e}", err=True)
        _echo_guidance(e.kind)
        sys.exit(1)


@main.group()
def remote() -> None:
    """Manage remote repositories."""


@remote.command("list")
@click.pass_context
def remote_list(ctx: click.Context) -> None:
    """List configured remotes."""
    config = _load(ctx)
    if not config.remotes:
        click.echo("No remotes configured")
        click.echo("Add a remote with: repomirror remote add <name> <url>")
        return

    click.echo("Configured remotes:")
    for descriptor in config.remotes:
        _echo_remote(descriptor, default=descriptor.name == config.push.default_remote)

    click.echo("Push settings:")
    click.echo(f"  Default remote: {config.push.default_remote}")
    click.echo(f"  Default branch: {config.push.default_branch}")
    click.echo(f"  Commit prefix: {config.push.commit_prefix}")


@remote.command("add")
@click.argument("name")
@click.argument("url")
@click.argument("branch", default="main")
@click.pass_context
def remote_add(ctx: click.Context, name: str, url: str, branch: str) -> None:
    """Add a remote the target repository is pushed to."""
    config = _load(ctx)
    if not is_valid_remote_url(url):
        click.echo(f"Error: Invalid git URL: {url}", err=True)
        click.echo(
            "  Expected format: https://github.com/user/repo.git or git@github.com:user/repo.git",
            err=True,
        )
        sys.exit(1)

    existing = config.get_remote(name)
    if existing is not None:
        click.echo(f"Error: Remote '{name}' already exists", err=True)
        click.echo(f"  Current URL: {existing.url}", err=True)
        click.echo(f"  Use 'repomirror remote remove {name}' to remove it first", err=True)
        sys.exit(1)

    if RemoteSync(config.root_path, timeout=REACHABILITY_TIMEOUT).is_reachable(url):
        click.echo(f"✓ Remote {name} is accessible")
    else:
        click.echo("Warning: Could not verify remote accessibility", err=True)
        click.echo("  The remote will be added anyway; check your access and network", err=True)

    try:
        add_remote(ctx.obj["config_path"], name, url, branch)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Added remote '{name}'")
    click.echo(f"  URL: {url}")
    click.echo(f"  Branch: {branch}")
    if load_config(ctx.obj["config_path"]).push.default_remote == name:
        click.echo("  Set as default remote for push operations")


@remote.command("remove")
@click.argument("name")
@click.pass_context
def remote_remove(ctx: click.Context, name: str) -> None:
    """Remove a configured remote."""
    config = _load(ctx)
    try:
        removed, default_remote = remove_remote(ctx.obj["config_path"], name)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("  List remotes with: repomirror remote list", err=True)
        sys.exit(1)

    click.echo(f"✓ Removed remote '{name}'")
    click.echo(f"  URL: {removed.url}")
    if config.push.default_remote == name:
        if default_remote is None:
            click.echo("No default remote (no remotes remaining)")
        else:
            click.echo(f"Updated default remote to '{default_remote}'")


remote.add_command(remote_remove, "rm")


def _echo_remote(descriptor: RemoteDescriptor, default: bool) -> None:
    marker = "* " if default else "  "
    click.echo(f"{marker}{descriptor.name}")
    click.echo(f"    URL: {descriptor.url}")
    click.echo(f"    Branch: {descriptor.branch}")
    click.echo(f"    Auto-push: {'enabled' if descriptor.auto_push else 'disabled'}")


@main.command("dispatch-sync")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt")
@click.option("-q", "--quiet", is_flag=True, help="Suppress output (requires --yes)")
@click.option("--ref", default="main", show_default=True, help="Branch the workflow runs on")
@click.pass_context
def dispatch_sync(ctx: click.Context, yes: bool, quiet: bool, ref: str) -> None:
    """Run the sync in GitHub Actions."""
    if quiet and not yes:
        click.echo("Error: --quiet cannot be used without --yes", err=True)
        sys.exit(1)

    config = _load(ctx)
    workflow_path = config.root_path / ".github" / "workflows" / DEFAULT_WORKFLOW
    if not workflow_path.exists():
        click.echo(f"Error: Workflow file not found: {workflow_path}", err=True)
        sys.exit(1)

    origin = RemoteSync(config.root_path).remote_url("origin")
    repo = parse_github_repo(origin) if origin else None
    if repo is None:
        click.echo("Error: Could not determine the GitHub repository from 'origin'", err=True)
        sys.exit(1)

    token = get_github_token()
    if not token:
        click.echo("Error: Set GITHUB_TOKEN or run 'gh auth login'", err=True)
        sys.exit(1)

    if not quiet:
        click.echo(f"This will dispatch the {DEFAULT_WORKFLOW} workflow")
        click.echo(f"  Repository: {repo}")
        click.echo(f"  Ref: {ref}")
    if not yes and not click.confirm("Do you want to dispatch the workflow?", default=False):
        click.echo("Operation cancelled")
        return

    dispatcher = WorkflowDispatcher(repo, token)
    try:
        dispatcher.dispatch(DEFAULT_WORKFLOW, ref=ref)
    except DispatchError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)
    finally:
        dispatcher.close()

    if not quiet:
        click.echo("✓ Workflow dispatched")
        click.echo(f"Monitor the run at: {dispatcher.actions_url()}")


if __name__ == "__main__":
    main()
