"""Read-only git access.

Usage:
    from relkit.git import Repository

    repo = Repository(Path("."))
    entries = repo.log("v1.2.0")
"""

from relkit.git.repository import GitError, LogEntry, Repository

__all__ = ["GitError", "LogEntry", "Repository"]
