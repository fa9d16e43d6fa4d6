"""
Walk a folder of git repositories and run a git command in each of them.

The fetch, pull and optimize scripts configure `update_repositories` with
the git command to run. A repository is only touched when it has no
uncommitted changes in tracked files, and the branch that was checked out
before is checked out again afterwards.
"""

from dataclasses import dataclass, field
from pathlib import Path

import git
from git.exc import GitCommandError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from git_common import GitOptions, get_subdirectories, is_git_repository, working_directory

__version__ = "1.0.0"


@dataclass(frozen=True)
class UpdateConfiguration:
    """What to run in every repository below `path`."""

    path: Path
    action: str  # git command run once per branch
    action_args: tuple[str, ...] = ()
    preparation_action: str | None = None  # git command run once before the branch loop
    preparation_args: tuple[str, ...] = ()
    completion_action: str | None = None  # git command run once after the branch loop
    completion_args: tuple[str, ...] = ()
    include_branches: str | None = None  # comma-separated, visited after the current branch
    scan_subdirectories: bool = False
    show_branch_name: bool = False
    mute_final_message: bool = False


@dataclass
class UpdateSummary:
    """Counters collected while walking the repositories."""

    updated: int = 0
    skipped: int = 0
    missing_branches: int = 0
    failed_actions: int = 0
    problems: list[tuple[Path, str]] = field(default_factory=list)

    def add_problem(self, path: Path, message: str) -> None:
        self.problems.append((path, message))


def build_branch_list(current: str, include_branches: str | None = None) -> list[str]:
    """
    Build the ordered list of branches to visit.

    The current branch always comes first. Entries are stripped, empty
    entries are dropped and only the first occurrence of a name is kept.

    Parameters
    ----------
    current : str
        The branch checked out in the repository.
    include_branches : str, optional
        Comma-separated names of further branches.

    Returns
    -------
    list[str]
        The branch names in visiting order.
    """
    names = f"{current},{include_branches}" if include_branches else current
    branches: list[str] = []
    for name in names.split(","):
        name = name.strip()
        if name and name not in branches:
            branches.append(name)
    return branches


def current_branch(repo: git.Git) -> str:
    """Name of the checked-out branch, raises GitCommandError on a detached HEAD."""
    return repo.symbolic_ref("--short", "HEAD").strip()


def is_on_branch(repo: git.Git, branch: str) -> bool:
    """True if `branch` is checked out. A detached HEAD counts as not on the branch."""
    try:
        return current_branch(repo) == branch
    except GitCommandError:
        return False


def has_tracked_changes(repo: git.Git) -> bool:
    """True if tracked files are modified, staged or deleted. Untracked files are ignored."""
    return bool(repo.status("-suno").strip())


def switch_branch(repo: git.Git, branch: str) -> bool:
    """
    Switch to a local branch.

    Parameters
    ----------
    repo : git.Git
        The repository to switch in.
    branch : str
        Name of the branch.

    Returns
    -------
    bool
        False if git refused the switch, e.g. because the branch does not exist locally.
    """
    try:
        repo.switch(branch, "--quiet")
    except GitCommandError:
        return False
    return True


def run_action(repo: git.Git, action: str, args: tuple[str, ...], options: GitOptions) -> bool:
    """
    Run a git command in the repository.

    A non-zero exit is reported as a warning and does not raise.

    Parameters
    ----------
    repo : git.Git
        The repository to run the command in.
    action : str
        The git subcommand, e.g. ``fetch``.
    args : tuple[str, ...]
        Further arguments for the subcommand.
    options : GitOptions
        Options for the output.

    Returns
    -------
    bool
        True if git exited with status 0.
    """
    name = Path(repo.working_dir).name
    try:
        output = getattr(repo, action)(*args)
    except GitCommandError as e:
        stderr = (e.stderr or "").strip()
        options.warn(f"git {action} failed in [bold]{name}[/bold]: {stderr or e.status}")
        return False

    if options.verbose and options.console and output:
        options.console.print(Panel(output, title=f"git {action}", expand=False))
    return True


def update_repository(
    path: Path, config: UpdateConfiguration, options: GitOptions, summary: UpdateSummary
) -> bool:
    """
    Run the configured git commands in a single repository.

    Parameters
    ----------
    path : Path
        The path to the git repository.
    config : UpdateConfiguration
        The git commands to run.
    options : GitOptions
        Options for the output.
    summary : UpdateSummary
        Collects the outcome.

    Returns
    -------
    bool
        False if the repository was skipped.
    """
    repo = git.Git(path)
    console = options.console

    with working_directory(path):
        try:
            original = current_branch(repo)
        except GitCommandError:
            options.warn(f"Skipped [bold]{path.name}[/bold]: no branch is checked out")
            summary.skipped += 1
            summary.add_problem(path, "no branch checked out")
            return False

        if has_tracked_changes(repo):
            options.warn(f"Skipped [bold]{path.name}[/bold]: uncommitted changes on [bold]{original}[/bold]")
            summary.skipped += 1
            summary.add_problem(path, f"uncommitted changes on {original}")
            return False

        options.info(f"Processing repository: [bold]{path}[/bold]")
        branches = build_branch_list(original, config.include_branches)

        if config.preparation_action:
            if not run_action(repo, config.preparation_action, config.preparation_args, options):
                summary.failed_actions += 1
                summary.add_problem(path, f"git {config.preparation_action} failed")

        try:
            for branch in branches:
                if not is_on_branch(repo, branch) and not switch_branch(repo, branch):
                    options.warn(f"Could not switch to branch [bold]{branch}[/bold] in [bold]{path.name}[/bold]")
                    summary.missing_branches += 1
                    summary.add_problem(path, f"branch {branch} not switched")
                    continue

                if config.show_branch_name and console:
                    console.print(f"[blue]→[/blue] Updating [bold]{path.name}[/bold] branch [cyan]{branch}[/cyan]")

                if not run_action(repo, config.action, config.action_args, options):
                    summary.failed_actions += 1
                    summary.add_problem(path, f"git {config.action} failed on {branch}")
        finally:
            if not is_on_branch(repo, original) and not switch_branch(repo, original):
                options.warn(f"Could not switch [bold]{path.name}[/bold] back to [bold]{original}[/bold]")
                summary.add_problem(path, f"not switched back to {original}")

        if config.completion_action:
            if not run_action(repo, config.completion_action, config.completion_args, options):
                summary.failed_actions += 1
                summary.add_problem(path, f"git {config.completion_action} failed")

    summary.updated += 1
    if console:
        console.print(f"[green]✓[/green] Updated [bold]{path.name}[/bold]")
    return True


def update_repositories(config: UpdateConfiguration, options: GitOptions | None = None) -> UpdateSummary:
    """
    Update every git repository directly below `config.path`.

    Plain directories are searched for repositories as well when
    `config.scan_subdirectories` is set. Directories are visited depth first
    in name order.

    Parameters
    ----------
    config : UpdateConfiguration
        The git commands to run.
    options : GitOptions, optional
        Options for the output, by default silent.

    Returns
    -------
    UpdateSummary
        Counters of the walk.
    """
    if options is None:
        options = GitOptions()

    summary = UpdateSummary()
    pending = list(reversed(get_subdirectories(config.path)))
    while pending:
        directory = pending.pop()
        if is_git_repository(directory):
            update_repository(directory, config, options, summary)
            continue
        if not config.scan_subdirectories:
            continue

        options.info(f"Scanning [bold]{directory}[/bold]")
        try:
            pending.extend(reversed(get_subdirectories(directory)))
        except OSError as e:
            options.warn(f"Cannot read [bold]{directory}[/bold]: {e}")

    if not config.mute_final_message and options.console:
        print_summary(summary, options.console)
    return summary


def print_summary(summary: UpdateSummary, console: Console) -> None:
    """
    Print a summary table of the update.

    Parameters
    ----------
    summary : UpdateSummary
        Counters of the walk.
    console : Console
        Rich console for formatted output.
    """
    table = Table(title="Summary")
    table.add_column("Status", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Updated", f"[green]{summary.updated}[/green]")
    table.add_row("Skipped", f"[yellow]{summary.skipped}[/yellow]")
    table.add_row("Missing branches", f"[yellow]{summary.missing_branches}[/yellow]")
    table.add_row("Failed actions", f"[red]{summary.failed_actions}[/red]")

    console.print(table)

    for path, message in summary.problems:
        console.print(f"[yellow]![/yellow] [bold]{path}[/bold]: {message}")
    console.print("[bold green]Done.[/bold green]")
