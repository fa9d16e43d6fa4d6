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


def fetch_repositories(
    directory: Path,
    params: str = "",
    scan_subdirectories: bool = False,
    options: GitOptions | None = None,
) -> UpdateSummary:
    """
    Run `git fetch` on the current branch of every clean repository.

    Parameters
    ----------
    directory : Path
        The folder containing the repositories.
    params : str
        Extra arguments for git fetch, split like a shell command line.
    scan_subdirectories : bool
        Search plain folders for repositories as well.
    options : GitOptions, optional
        Options for the output.
    """
    config = UpdateConfiguration(
        path=directory,
        action="fetch",
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
    help="Extra arguments for git fetch, e.g. '--all --prune'",
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
    Fetch all git repositories in the specified directory.

    Repositories with uncommitted changes are skipped.
    """
    console = Console()
    console.print(
        Panel.fit(
            "[bold blue]Git Fetch Repositories[/bold blue]",
            subtitle=f"Directory: [cyan]{directory}[/cyan]",
        )
    )

    options = GitOptions(console=console, verbose=verbose)
    try:
        fetch_repositories(directory, params, scan_subdirectories, options)
    except GitCommandNotFound as e:
        console.print(f"[bold red]Error:[/] git could not be executed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
