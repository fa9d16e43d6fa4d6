"""
Common Git functionalities for the repository update scripts.

This module contains the options class and the directory helpers shared by
the fetch, pull and optimize scripts.
"""

import os
import shlex
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import click
from rich.console import Console


@dataclass
class GitOptions:
    """Output options for Git operations."""

    console: Optional[Console] = None  # Console object for output, None is silent
    verbose: bool = False  # Show git output of every action

    def info(self, message: str) -> None:
        if self.console and self.verbose:
            self.console.print(f"[blue]ℹ[/blue] {message}")

    def warn(self, message: str) -> None:
        if self.console:
            self.console.print(f"[yellow]![/yellow] {message}")


def is_git_repository(path: Path) -> bool:
    """
    Checks if a directory is a Git repository.

    Only a `.git` entry directly inside the directory counts. It may be a
    file, which is how worktrees and submodules link to their git directory.

    Args:
        path: Path to the directory to check

    Returns:
        True if the directory is a Git repository, otherwise False
    """
    if not path.is_dir():
        return False
    return (path / ".git").exists()


def get_subdirectories(path: Path) -> List[Path]:
    """
    Returns all subdirectories of the specified path, sorted by name.

    Args:
        path: Path where to search for subdirectories

    Returns:
        List of found subdirectories
    """
    return sorted((item for item in path.iterdir() if item.is_dir()), key=lambda item: item.name)


@contextmanager
def working_directory(path: Path) -> Iterator[Path]:
    """
    Changes into `path` and changes back on exit, also on errors.

    Args:
        path: Directory to change into

    Yields:
        The directory that was active before
    """
    original_dir = Path.cwd()
    os.chdir(path)
    try:
        yield original_dir
    finally:
        os.chdir(original_dir)


def validate_git_params(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """Click callback rejecting extra git arguments that cannot be split like a shell command line."""
    try:
        shlex.split(value)
    except ValueError as e:
        raise click.BadParameter(f"{e}: {value!r}") from e
    return value
