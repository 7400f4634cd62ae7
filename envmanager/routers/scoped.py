from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import APIRouter, Body, Depends, Path, status

from envmanager.models.github import (
    Message,
    Secret,
    SecretCreate,
    SecretUpdate,
    Variable,
    VariableCreate,
    VariableUpdate,
)
from envmanager.services.auth import get_github_client
from envmanager.services.github import GitHubClient


@dataclass(frozen=True)
class Scope:
    """A repository, or one environment of it."""
    owner: str
    repo: str
    environment: Optional[str] = None

    @property
    def noun(self) -> str:
        return "Environment" if self.environment else "Repository"


def repository_scope(owner: str = Path(...), repo: str = Path(...)) -> Scope:
    return Scope(owner=owner, repo=repo)


def environment_scope(owner: str = Path(...), repo: str = Path(...), environment: str = Path(...)) -> Scope:
    return Scope(owner=owner, repo=repo, environment=environment)


def build_scoped_router(scope_dependency: Callable[..., Scope]) -> APIRouter:
    """
    Build the variable and secret routes for one kind of scope.

    The same handlers serve ``/repos/{owner}/{repo}`` and
    ``/repos/{owner}/{repo}/environments/{environment}``; only the scope
    dependency differs.
    """
    router = APIRouter()

    @router.get("/variables", response_model=List[Variable])
    def list_variables(
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """List all variables of the scope."""
        return client.list_variables(scope.owner, scope.repo, scope.environment)

    @router.post("/variables", response_model=Message, status_code=status.HTTP_201_CREATED)
    def create_variable(
        variable: VariableCreate = Body(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """Create a variable."""
        client.create_variable(scope.owner, scope.repo, variable.name, variable.value, scope.environment)
        return {"message": f"{scope.noun} variable created successfully"}

    @router.put("/variables/{name}", response_model=Message)
    def update_variable(
        name: str = Path(...),
        variable: VariableUpdate = Body(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """Replace the value of an existing variable."""
        client.update_variable(scope.owner, scope.repo, name, variable.value, scope.environment)
        return {"message": f"{scope.noun} variable updated successfully"}

    @router.delete("/variables/{name}", response_model=Message)
    def delete_variable(
        name: str = Path(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        client.delete_variable(scope.owner, scope.repo, name, scope.environment)
        return {"message": f"{scope.noun} variable deleted successfully"}

    @router.get("/secrets", response_model=List[Secret])
    def list_secrets(
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """List secret names and timestamps. Values are never returned by GitHub."""
        return client.list_secrets(scope.owner, scope.repo, scope.environment)

    @router.post("/secrets", response_model=Message, status_code=status.HTTP_201_CREATED)
    def create_secret(
        secret: SecretCreate = Body(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """Encrypt a value with the scope's public key and store it as a secret."""
        client.put_secret(scope.owner, scope.repo, secret.name, secret.value, scope.environment)
        return {"message": f"{scope.noun} secret created successfully"}

    @router.put("/secrets/{name}", response_model=Message)
    def update_secret(
        name: str = Path(...),
        secret: SecretUpdate = Body(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        """Encrypt a new value for an existing secret."""
        client.put_secret(scope.owner, scope.repo, name, secret.value, scope.environment)
        return {"message": f"{scope.noun} secret updated successfully"}

    @router.delete("/secrets/{name}", response_model=Message)
    def delete_secret(
        name: str = Path(...),
        scope: Scope = Depends(scope_dependency),
        client: GitHubClient = Depends(get_github_client),
    ):
        client.delete_secret(scope.owner, scope.repo, name, scope.environment)
        return {"message": f"{scope.noun} secret deleted successfully"}

    return router
