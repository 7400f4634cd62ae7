from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Path, Query, status

from envmanager.models.github import Environment, EnvironmentCreate, Pagination, Repository, RepositoryList
from envmanager.services.auth import get_github_client
from envmanager.services.github import GitHubClient

router = APIRouter()


def matches(repository: Repository, query: str) -> bool:
    """Case-insensitive substring match on name, full name, description and owner."""
    needle = query.lower()
    haystack = (
        repository.name,
        repository.full_name,
        repository.description or "",
        repository.owner.login,
    )
    return any(needle in field.lower() for field in haystack)


def paginate(repositories: List[Repository], page: int, per_page: int) -> RepositoryList:
    total_count = len(repositories)
    total_pages = (total_count + per_page - 1) // per_page
    start = (page - 1) * per_page
    return RepositoryList(
        repositories=repositories[start:start + per_page],
        pagination=Pagination(
            page=page,
            per_page=per_page,
            total_count=total_count,
            has_next=page < total_pages,
            has_prev=page > 1,
            total_pages=total_pages,
        ),
    )


@router.get("", response_model=RepositoryList)
def get_repositories(
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    q: Optional[str] = Query(None),
    client: GitHubClient = Depends(get_github_client),
):
    """
    Get a page of the repositories the token can access.

    Args:
        page: Page number, starting at 1
        per_page: Repositories per page
        q: Optional search text

    Returns:
        Repositories of the page and pagination details
    """
    repositories = client.list_repositories()
    if q:
        repositories = [r for r in repositories if matches(r, q)]
    return paginate(repositories, page, per_page)


@router.get("/{owner}/{repo}/environments", response_model=List[str])
def get_environments(
    owner: str = Path(...),
    repo: str = Path(...),
    client: GitHubClient = Depends(get_github_client),
):
    """Get the environment names of a repository."""
    return [env.name for env in client.list_environments(owner, repo)]


@router.post("/{owner}/{repo}/environments", response_model=Environment, status_code=status.HTTP_201_CREATED)
def create_environment(
    owner: str = Path(...),
    repo: str = Path(...),
    environment: EnvironmentCreate = Body(...),
    client: GitHubClient = Depends(get_github_client),
):
    """Create an environment, or return it unchanged if it exists."""
    return client.create_environment(owner, repo, environment.name)
