"""Git operations on the local clone releases are built from.

Usage:
    from relsync.git import Repository

    repo = Repository(Path("workspace/repository"))
    match repo.describe(sha):
        case Ok(descriptor):
            print(descriptor)
        case Err(e):
            print(e.message)
"""

from relsync.git.repository import GitError, Repository

__all__ = ["GitError", "Repository"]
