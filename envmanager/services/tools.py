import io
import logging
from typing import Dict, List, Optional, Tuple

from dotenv import dotenv_values

from envmanager.core.exceptions import GitHubAPIError
from envmanager.models.tools import (
    CompareResult,
    ExportRequest,
    ImportRequest,
    ImportResult,
    SyncRequest,
    SyncResult,
)
from envmanager.services.github import GitHubClient

logger = logging.getLogger(__name__)


def parse_repo(full_name: str) -> Tuple[str, str]:
    """Split ``owner/repo``, raising ValueError for anything else."""
    parts = full_name.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Invalid repo format '{full_name}'. Use 'owner/repo'")
    return parts[0], parts[1]


def scope_label(full_name: str, environment: Optional[str] = None) -> str:
    return f"{full_name}@{environment}" if environment else full_name


def _write_variable(client: GitHubClient, owner: str, repo: str, name: str, value: str,
                    environment: Optional[str], exists: bool) -> None:
    if exists:
        client.update_variable(owner, repo, name, value, environment)
    else:
        client.create_variable(owner, repo, name, value, environment)


def sync_variables(client: GitHubClient, request: SyncRequest) -> SyncResult:
    """
    Copy variables from a source scope to every target repository/environment.

    Targets are the cross product of ``target_repos`` and ``target_envs`` (the
    repository scope itself when no environments are given). Failures on one
    target are recorded and the run continues.
    """
    source_owner, source_repo = parse_repo(request.source_repo)
    # A missing source is an error, not an empty scope
    source = client.list_variables(source_owner, source_repo, request.source_env, missing_ok=False)
    if request.variable_names:
        wanted = set(request.variable_names)
        source = [v for v in source if v.name in wanted]

    synced_count = 0
    skipped: List[str] = []
    errors: List[str] = []

    for target_repo in request.target_repos:
        try:
            owner, repo = parse_repo(target_repo)
        except ValueError as e:
            errors.append(str(e))
            continue

        for environment in request.target_envs or [None]:
            label = scope_label(target_repo, environment)
            try:
                existing = {v.name for v in client.list_variables(owner, repo, environment)}
            except GitHubAPIError as e:
                errors.append(f"Failed to read variables of {label}: {e.message}")
                continue

            for variable in source:
                exists = variable.name in existing
                if exists and not request.overwrite:
                    skipped.append(f"{label}/{variable.name}")
                    continue
                try:
                    _write_variable(client, owner, repo, variable.name, variable.value, environment, exists)
                    synced_count += 1
                except GitHubAPIError as e:
                    errors.append(f"Failed to sync {variable.name} to {label}: {e.message}")

    logger.info(
        "Synced %d variables from %s (%d skipped, %d errors)",
        synced_count, scope_label(request.source_repo, request.source_env), len(skipped), len(errors),
    )
    return SyncResult(
        message=f"Successfully synced {synced_count} variables",
        synced_count=synced_count,
        skipped=skipped,
        errors=errors,
    )


def export_variables(client: GitHubClient, request: ExportRequest) -> Dict[str, Dict]:
    """
    Collect variables of each repository and the requested environments.

    Repositories that are malformed or cannot be read are left out of the
    result.
    """
    export: Dict[str, Dict] = {}
    for full_name in request.repos:
        try:
            owner, repo = parse_repo(full_name)
            repo_data = {
                "repository": {v.name: v.value for v in client.list_variables(owner, repo)},
                "environments": {},
            }
            for environment in request.envs:
                repo_data["environments"][environment] = {
                    v.name: v.value for v in client.list_variables(owner, repo, environment)
                }
        except (ValueError, GitHubAPIError) as e:
            logger.warning("Skipping %s in export: %s", full_name, e)
            continue
        export[full_name] = repo_data
    return export


def _quote_dotenv(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def render_dotenv(export: Dict[str, Dict]) -> str:
    """Render the output of ``export_variables`` as .env text, one section per scope."""
    sections = []
    for full_name, repo_data in export.items():
        scopes = [(full_name, repo_data.get("repository", {}))]
        for environment, variables in repo_data.get("environments", {}).items():
            scopes.append((f"{full_name} environment: {environment}", variables))
        for header, variables in scopes:
            lines = [f"# {header}"]
            lines.extend(f"{name}={_quote_dotenv(value)}" for name, value in sorted(variables.items()))
            sections.append("\n".join(lines))
    return "\n\n".join(sections) + "\n" if sections else ""


def parse_dotenv(content: str) -> Dict[str, Optional[str]]:
    """Parse .env text literally; ``${VAR}`` is never expanded from the process environment."""
    return dict(dotenv_values(stream=io.StringIO(content), interpolate=False))


def import_variables(client: GitHubClient, request: ImportRequest) -> ImportResult:
    """
    Write variables from a .env document and/or a mapping into one scope.

    Names given in ``variables`` override the same names in ``content``. Names
    that already exist are skipped unless ``overwrite`` is set.
    """
    owner, repo = parse_repo(request.repo)

    variables: Dict[str, Optional[str]] = {}
    if request.content:
        variables.update(parse_dotenv(request.content))
    variables.update(request.variables)

    existing = {v.name for v in client.list_variables(owner, repo, request.environment)}
    label = scope_label(request.repo, request.environment)

    imported_count = 0
    skipped: List[str] = []
    errors: List[str] = []
    for name, value in variables.items():
        if value is None:
            # A bare key with no '=' in the .env content
            errors.append(f"No value given for {name}")
            continue
        exists = name in existing
        if exists and not request.overwrite:
            skipped.append(name)
            continue
        try:
            _write_variable(client, owner, repo, name, value, request.environment, exists)
            imported_count += 1
        except GitHubAPIError as e:
            errors.append(f"Failed to import {name}: {e.message}")

    logger.info("Imported %d variables into %s (%d skipped, %d errors)",
                imported_count, label, len(skipped), len(errors))
    return ImportResult(
        message=f"Successfully imported {imported_count} variables",
        imported_count=imported_count,
        skipped=skipped,
        errors=errors,
    )


def compare_variables(client: GitHubClient, repos: List[str], environment: Optional[str] = None) -> CompareResult:
    """
    Compare variables of the same scope across repositories.

    ``differences`` lists every name that is missing from at least one
    repository or whose values differ; missing values are None.
    """
    if len(repos) < 2:
        raise ValueError("At least 2 repositories required for comparison")

    repositories: Dict[str, Dict[str, str]] = {}
    for full_name in repos:
        owner, repo = parse_repo(full_name)
        repositories[full_name] = {v.name: v.value for v in client.list_variables(owner, repo, environment)}

    names = sorted({name for variables in repositories.values() for name in variables})
    differences: Dict[str, Dict[str, Optional[str]]] = {}
    for name in names:
        values = {full_name: variables.get(name) for full_name, variables in repositories.items()}
        if len(set(values.values())) > 1:
            differences[name] = values

    return CompareResult(repositories=repositories, differences=differences)
