# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "click",
#     "gitpython",
#     "rich",
# ]
# ///
import shlex
import sys
from pathlib import Path

import click
from git.exc import GitCommandNotFound
from rich.console import Console
from rich.panel import Panel

from git_common import GitOptions, validate_git_params
from git_update_repos import UpdateConfiguration, UpdateSummary, __version__, update_repositories


def optimize_repositories(
    directory: Path,
    params: str = "",
    scan_subdirectories: bool = False,
    options: GitOptions | None = None,
) -> UpdateSummary:
    """Run `git gc` in every clean repository."""
    config = UpdateConfiguration(
        path=directory,
        action="gc",
        action_args=tuple(shlex.split(params)),
        scan_subdirectories=scan_subdirectories,
    )
    return update_repositories(config, options)


@click.command()
@click.option(
    "--path",
    "-p",
    "directory",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=Path.cwd,
    help="Folder containing the repositories (default: current directory)",
)
@click.option(
    "--params",
    default="",
    callback=validate_git_params,
    help="Extra arguments for git gc, e.g. '--aggressive'",
)
@click.option(
    "--scan-subdirectories",
    "-r",
    is_flag=True,
    help="Search folders that are no repository for repositories",
)
@click.option("--verbose", "-v", is_flag=True, help="Show git output")
@click.version_option(__version__)
def main(directory: Path, params: str, scan_subdirectories: bool, verbose: bool):
    """
    Run garbage collection in all git repositories in the specified directory.

    Repositories with uncommitted changes are skipped.
    """
    console = Console()
    console.print(
        Panel.fit(
            "[bold blue]Git Optimize Repositories[/bold blue]",
            subtitle=f"Directory: [cyan]{directory}[/cyan]",
        )
    )

    options = GitOptions(console=console, verbose=verbose)
    try:
        optimize_repositories(directory, params, scan_subdirectories, options)
    except GitCommandNotFound as e:
        console.print(f"[bold red]Error:[/] git could not be executed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
