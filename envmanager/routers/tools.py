from typing import List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from envmanager.models.tools import (
    CompareResult,
    ExportFormat,
    ExportRequest,
    ImportRequest,
    ImportResult,
    SyncRequest,
    SyncResult,
)
from envmanager.services import tools
from envmanager.services.auth import get_github_client
from envmanager.services.github import GitHubClient

router = APIRouter()


def bad_request(e: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/sync", response_model=SyncResult)
def sync_variables(
    request: SyncRequest = Body(...),
    client: GitHubClient = Depends(get_github_client),
):
    """
    Copy variables from one repository or environment to others.

    Args:
        request: Source scope, targets and which variables to copy

    Returns:
        Number of variables written, skipped names and per-target errors
    """
    try:
        return tools.sync_variables(client, request)
    except ValueError as e:
        raise bad_request(e)


@router.post("/export")
def export_variables(
    request: ExportRequest = Body(...),
    client: GitHubClient = Depends(get_github_client),
):
    """Export variables as JSON or as .env text."""
    export = tools.export_variables(client, request)
    if request.format == ExportFormat.DOTENV:
        return PlainTextResponse(tools.render_dotenv(export))
    return export


@router.post("/import", response_model=ImportResult)
def import_variables(
    request: ImportRequest = Body(...),
    client: GitHubClient = Depends(get_github_client),
):
    """
    Import variables into one repository or environment.

    Args:
        request: Target scope, .env content and/or explicit variables

    Returns:
        Number of variables written, skipped names and errors
    """
    try:
        return tools.import_variables(client, request)
    except ValueError as e:
        raise bad_request(e)


@router.get("/compare", response_model=CompareResult)
def compare_variables(
    repos: List[str] = Query([]),
    environment: Optional[str] = Query(None),
    client: GitHubClient = Depends(get_github_client),
):
    """Compare the variables of two or more repositories."""
    try:
        return tools.compare_variables(client, repos, environment)
    except ValueError as e:
        raise bad_request(e)
