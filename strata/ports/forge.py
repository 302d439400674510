"""Pull request source port.

strata does not speak any forge API. A host that knows about pull requests
can inject a PullRequestSource and the snapshot builder will show the result
in the document header.
"""

from pathlib import Path
from typing import Protocol

from strata.domain.entities import BranchInfo, PullRequestInfo


class PullRequestSource(Protocol):
    """Protocol for looking up the pull request of the current branch."""

    async def lookup(self, repo_root: Path, branch: BranchInfo) -> PullRequestInfo | None:
        """Find the pull request for a branch.

        Args:
            repo_root: Working tree root.
            branch: Current branch and upstream.

        Returns:
            PullRequestInfo, or None if the branch has no pull request.
        """
        ...
