"""
Git REST API endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from git_monitor.config import Settings
from git_monitor.models.api_response import (
    ApiResponse,
    CommitRequest,
    DiffResult,
    MutationResult,
    StageRequest,
)
from git_monitor.models.git_status import CommitInfo, GitStatus
from git_monitor.services.command_runner import CommandResult
from git_monitor.services.git_repository import GitRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["git"])

DEFAULT_LOG_LIMIT = 20


def get_repository(request: Request) -> GitRepository:
    return request.app.state.repository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _internal_error(message: str, error: Exception) -> JSONResponse:
    logger.error(f"{message}: {error}", exc_info=True)
    body = ApiResponse[Any](success=False, error=f"{message}: {error}")
    return JSONResponse(status_code=500, content=body.model_dump())


async def _mutation_response(
    repository: GitRepository,
    settings: Settings,
    results: List[CommandResult],
    message: str,
) -> ApiResponse[MutationResult]:
    """
    Build the reply for a stage / unstage / commit request.

    The working tree is re-read after the mutation so the reply carries the
    fresh status. In strict mode a non-zero git exit turns the reply into a
    failure.
    """
    status = await repository.get_status()
    output = "\n".join(result.output for result in results if result.output)
    failed = [result for result in results if not result.succeeded]

    if failed and settings.strict_mutations:
        first = failed[0]
        error = first.output.strip() or f"git {first.args[0]} exited with {first.exit_code}"
        logger.warning(f"{message} failed: {error}")
        return ApiResponse[MutationResult](
            success=False,
            data=MutationResult(message=message, output=output, status=status),
            error=error,
        )

    return ApiResponse[MutationResult](
        success=True,
        data=MutationResult(message=message, output=output, status=status),
    )


@router.get("/status", response_model=ApiResponse[GitStatus])
async def get_status(repository: GitRepository = Depends(get_repository)):
    """
    Get the current working tree status.

    Returns:
        Branch, staged / unstaged / untracked files and ahead / behind counts
    """
    try:
        status = await repository.get_status()
        return ApiResponse[GitStatus](success=True, data=status)
    except Exception as e:
        return _internal_error("Error getting git status", e)


@router.get("/diff", response_model=ApiResponse[DiffResult])
async def get_diff(repository: GitRepository = Depends(get_repository)):
    """Get the unstaged diff."""
    try:
        diff = await repository.get_diff(staged=False)
        return ApiResponse[DiffResult](success=True, data=DiffResult(diff=diff))
    except Exception as e:
        return _internal_error("Error getting diff", e)


@router.get("/diff/staged", response_model=ApiResponse[DiffResult])
async def get_staged_diff(repository: GitRepository = Depends(get_repository)):
    """Get the staged diff."""
    try:
        diff = await repository.get_diff(staged=True)
        return ApiResponse[DiffResult](success=True, data=DiffResult(diff=diff))
    except Exception as e:
        return _internal_error("Error getting staged diff", e)


def parse_log_limit(limit: Optional[str] = Query(None)) -> int:
    """
    Resolve the `limit` query parameter.

    A missing or non-integer value falls back to the default.

    Raises:
        HTTPException: If the value is an integer below 1
    """
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_LOG_LIMIT

    if value < 1:
        raise HTTPException(status_code=422, detail="limit must be at least 1")
    return value


@router.get("/log", response_model=ApiResponse[List[CommitInfo]])
async def get_log(
    limit: int = Depends(parse_log_limit),
    repository: GitRepository = Depends(get_repository),
):
    """
    Get commit history.

    Args:
        limit: Maximum number of commits (default 20)

    Returns:
        Commits, newest first
    """
    try:
        commits = await repository.get_log(limit)
        return ApiResponse[List[CommitInfo]](success=True, data=commits)
    except Exception as e:
        return _internal_error("Error getting log", e)


@router.get("/branches", response_model=ApiResponse[List[str]])
async def get_branches(repository: GitRepository = Depends(get_repository)):
    """List local and remote branches."""
    try:
        branches = await repository.get_branches()
        return ApiResponse[List[str]](success=True, data=branches)
    except Exception as e:
        return _internal_error("Error listing branches", e)


@router.post("/stage", response_model=ApiResponse[MutationResult])
async def stage_files(
    request: StageRequest,
    repository: GitRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """
    Stage files, one `git add` per file in the given order.

    Args:
        request: Files to stage

    Returns:
        Mutation result with the refreshed status
    """
    try:
        logger.info(f"Staging {len(request.files)} file(s)")
        results = await repository.stage(request.files)
        return await _mutation_response(repository, settings, results, "Files staged")
    except Exception as e:
        return _internal_error("Error staging files", e)


@router.post("/unstage", response_model=ApiResponse[MutationResult])
async def unstage_files(
    request: StageRequest,
    repository: GitRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """
    Unstage files, one `git reset HEAD` per file in the given order.

    Args:
        request: Files to unstage

    Returns:
        Mutation result with the refreshed status
    """
    try:
        logger.info(f"Unstaging {len(request.files)} file(s)")
        results = await repository.unstage(request.files)
        return await _mutation_response(repository, settings, results, "Files unstaged")
    except Exception as e:
        return _internal_error("Error unstaging files", e)


@router.post("/commit", response_model=ApiResponse[MutationResult])
async def commit(
    request: CommitRequest,
    repository: GitRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """
    Commit the index.

    Args:
        request: Commit message

    Returns:
        Mutation result; `output` holds the raw `git commit` output
    """
    try:
        logger.info("Creating commit")
        result = await repository.commit(request.message)
        return await _mutation_response(repository, settings, [result], "Commit created")
    except Exception as e:
        return _internal_error("Error creating commit", e)


@router.get("/metrics", response_model=ApiResponse[Dict[str, Any]])
async def get_metrics(request: Request):
    """Git invocation counts, failures and latencies since startup."""
    summary = request.app.state.metrics.get_metrics_summary()
    return ApiResponse[Dict[str, Any]](success=True, data=summary)
