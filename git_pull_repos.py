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


def pull_repositories(
    directory: Path,
    params: str = "",
    include_branches: str | None = None,
    scan_subdirectories: bool = False,
    options: GitOptions | None = None,
) -> UpdateSummary:
    """
    Fetch every clean repository once, then merge each visited branch.

    Parameters
    ----------
    directory : Path
        The folder containing the repositories.
    params : str
        Extra arguments for git merge, split like a shell command line.
    include_branches : str, optional
        Comma-separated branches merged after the current one.
    scan_subdirectories : bool
        Search plain folders for repositories as well.
    options : GitOptions, optional
        Options for the output.
    """
    config = UpdateConfiguration(
        path=directory,
        preparation_action="fetch",
        action="merge",
        action_args=tuple(shlex.split(params)),
        include_branches=include_branches,
        scan_subdirectories=scan_subdirectories,
        show_branch_name=True,
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
    help="Extra arguments for git merge, e.g. '--ff-only'",
)
@click.option(
    "--include-branches",
    "-b",
    default=None,
    help="Comma-separated local branches to update besides the current one",
)
@click.option(
    "--scan-subdirectories",
    "-r",
    is_flag=True,
    help="Search folders that are no repository for repositories",
)
@click.option("--verbose", "-v", is_flag=True, help="Show git output")
@click.version_option(__version__)
def main(directory: Path, params: str, include_branches: str | None, scan_subdirectories: bool, verbose: bool):
    """
    Pull all git repositories in the specified directory.

    Each repository is fetched once and the current branch and every branch
    given with --include-branches is merged with its upstream. The branch
    that was checked out is checked out again afterwards. Repositories with
    uncommitted changes are skipped.
    """
    console = Console()
    console.print(
        Panel.fit(
            "[bold blue]Git Pull Repositories[/bold blue]",
            subtitle=f"Directory: [cyan]{directory}[/cyan]",
        )
    )

    options = GitOptions(console=console, verbose=verbose)
    try:
        pull_repositories(directory, params, include_branches, scan_subdirectories, options)
    except GitCommandNotFound as e:
        console.print(f"[bold red]Error:[/] git could not be executed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
