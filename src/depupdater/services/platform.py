"""Platform collaborators answering "does this branch exist, and with what content"."""

import base64
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
from urllib.parse import quote

import requests

from depupdater.errors import ExternalHostError, UpdaterError
from depupdater.services.branch_update import compute_content_hash
from depupdater.services.git import GitService


@dataclass(frozen=True)
class BranchState:
    branch_name: str
    content_hash: str


class LocalGitPlatform:
    """Answers branch queries from the local repository."""

    def __init__(self, git: GitService):
        self.git = git

    def get_branch_state(self, branch_name: str, paths: Iterable[str]) -> Optional[BranchState]:
        if not self.git.branch_exists(branch_name):
            return None
        contents = {path: self.git.read_file_at(branch_name, path) for path in paths}
        return BranchState(branch_name=branch_name, content_hash=compute_content_hash(contents))


class GitHubPlatform:
    """Answers branch queries through the GitHub REST API."""

    def __init__(
        self,
        repository: str,
        logger,
        token: Optional[str] = None,
        endpoint: str = "https://api.github.com",
        timeout: float = 30.0,
    ):
        if not repository or "/" not in repository:
            raise UpdaterError(f"Invalid repository '{repository}'. Use 'owner/name'.")
        self.repository = repository
        self.logger = logger
        self.token = token
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, path: str, params: Optional[Dict[str, str]] = None):
        url = f"{self.endpoint}/repos/{self.repository}/{path}"
        self.logger.debug("GET %s", url)
        try:
            response = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalHostError("github", f"Request to {url} failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.status_code >= 500 or response.status_code == 429:
            raise ExternalHostError("github", f"{url} returned {response.status_code}", returncode=response.status_code)
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise UpdaterError(f"GitHub request failed: {exc}") from exc
        return response.json()

    def get_branch_state(self, branch_name: str, paths: Iterable[str]) -> Optional[BranchState]:
        branch = self._get(f"branches/{quote(branch_name, safe='')}")
        if branch is None:
            return None

        contents: Dict[str, Optional[str]] = {}
        for path in paths:
            data = self._get(f"contents/{quote(path)}", params={"ref": branch_name})
            if data is None:
                contents[path] = None
                continue
            contents[path] = base64.b64decode(data.get("content", "")).decode("utf-8")
        return BranchState(branch_name=branch_name, content_hash=compute_content_hash(contents))
