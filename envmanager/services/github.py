import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from envmanager.core.config import settings
from envmanager.core.exceptions import GitHubAPIError
from envmanager.core.security import seal_for_github
from envmanager.models.auth import UserResponse
from envmanager.models.github import Environment, PublicKey, Repository, Secret, Variable

logger = logging.getLogger(__name__)

PER_PAGE = 100
API_VERSION = "2022-11-28"


def scope_path(owner: str, repo: str, environment: Optional[str] = None) -> str:
    """
    Base path for variables and secrets of a repository or one of its environments.

    Repository scope lives under ``/actions``; environment scope under
    ``/environments/{name}``. Both expose the same ``variables`` and
    ``secrets`` sub-resources.
    """
    base = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
    if environment:
        return f"{base}/environments/{quote(environment, safe='')}"
    return f"{base}/actions"


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return f"GitHub API error ({response.status_code}): {body['message']}"
    return f"GitHub API error ({response.status_code}): {response.reason or 'unknown error'}"


class GitHubClient:
    """
    Thin client for the parts of the GitHub REST API this service proxies.

    One instance is bound to one Personal Access Token and should not be shared
    between users.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.timeout = timeout or settings.GITHUB_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("GitHub %s %s failed: %s", method, path, type(e).__name__)
            raise GitHubAPIError(f"Failed to reach GitHub: {type(e).__name__}")

        if not response.ok:
            logger.warning("GitHub %s %s returned %d", method, path, response.status_code)
            raise GitHubAPIError(_error_message(response), status_code=response.status_code)
        return response

    def _paginate(self, path: str, key: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect every page of a list endpoint by following ``Link: rel="next"``."""
        items: List[Dict[str, Any]] = []
        url = path
        query: Optional[Dict[str, Any]] = {"per_page": PER_PAGE, **(params or {})}
        while True:
            response = self._request("GET", url, params=query)
            data = response.json()
            items.extend(data[key] if key else data)

            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                break
            # The next link already carries the query string
            url, query = next_url, None
        return items

    def _paginate_or_empty(self, path: str, key: str) -> List[Dict[str, Any]]:
        try:
            return self._paginate(path, key)
        except GitHubAPIError as e:
            if e.status_code == 404:
                return []
            raise

    # Users and repositories

    def get_user(self) -> UserResponse:
        return UserResponse(**self._request("GET", "/user").json())

    def list_repositories(self) -> List[Repository]:
        """All repositories the token can reach, deduplicated by id."""
        raw = self._paginate(
            "/user/repos",
            params={"affiliation": "owner,collaborator,organization_member", "sort": "full_name"},
        )
        seen = set()
        repositories = []
        for item in raw:
            if item["id"] in seen:
                continue
            seen.add(item["id"])
            repositories.append(Repository(**item))
        logger.info("Fetched %d repositories (%d unique)", len(raw), len(repositories))
        return repositories

    # Environments

    def list_environments(self, owner: str, repo: str) -> List[Environment]:
        path = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/environments"
        return [Environment(**env) for env in self._paginate_or_empty(path, "environments")]

    def create_environment(self, owner: str, repo: str, name: str) -> Environment:
        path = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/environments/{quote(name, safe='')}"
        return Environment(**self._request("PUT", path, json={}).json())

    # Variables

    def list_variables(self, owner: str, repo: str, environment: Optional[str] = None,
                       missing_ok: bool = True) -> List[Variable]:
        """Variables of a scope. A 404 gives an empty list unless ``missing_ok`` is False."""
        path = f"{scope_path(owner, repo, environment)}/variables"
        items = self._paginate_or_empty(path, "variables") if missing_ok else self._paginate(path, "variables")
        return [Variable(**var) for var in items]

    def get_variable(self, owner: str, repo: str, name: str, environment: Optional[str] = None) -> Optional[Variable]:
        path = f"{scope_path(owner, repo, environment)}/variables/{quote(name, safe='')}"
        try:
            return Variable(**self._request("GET", path).json())
        except GitHubAPIError as e:
            if e.status_code == 404:
                return None
            raise

    def create_variable(self, owner: str, repo: str, name: str, value: str, environment: Optional[str] = None) -> None:
        path = f"{scope_path(owner, repo, environment)}/variables"
        self._request("POST", path, json={"name": name, "value": value})

    def update_variable(self, owner: str, repo: str, name: str, value: str, environment: Optional[str] = None) -> None:
        path = f"{scope_path(owner, repo, environment)}/variables/{quote(name, safe='')}"
        self._request("PATCH", path, json={"name": name, "value": value})

    def delete_variable(self, owner: str, repo: str, name: str, environment: Optional[str] = None) -> None:
        path = f"{scope_path(owner, repo, environment)}/variables/{quote(name, safe='')}"
        self._request("DELETE", path)

    # Secrets

    def list_secrets(self, owner: str, repo: str, environment: Optional[str] = None) -> List[Secret]:
        path = f"{scope_path(owner, repo, environment)}/secrets"
        return [Secret(**secret) for secret in self._paginate_or_empty(path, "secrets")]

    def get_public_key(self, owner: str, repo: str, environment: Optional[str] = None) -> PublicKey:
        path = f"{scope_path(owner, repo, environment)}/secrets/public-key"
        return PublicKey(**self._request("GET", path).json())

    def put_secret(self, owner: str, repo: str, name: str, value: str, environment: Optional[str] = None) -> bool:
        """
        Create or update a secret.

        The scope's public key is fetched for every write and the value is
        sealed against it before it leaves this process.

        Returns:
            True if GitHub created the secret, False if it replaced an existing one
        """
        public_key = self.get_public_key(owner, repo, environment)
        sealed = seal_for_github(public_key, value)
        path = f"{scope_path(owner, repo, environment)}/secrets/{quote(name, safe='')}"
        response = self._request("PUT", path, json=sealed.model_dump())
        return response.status_code == 201

    def delete_secret(self, owner: str, repo: str, name: str, environment: Optional[str] = None) -> None:
        path = f"{scope_path(owner, repo, environment)}/secrets/{quote(name, safe='')}"
        self._request("DELETE", path)
