"""
Project registry endpoints.
"""

from typing import List

from fastapi import APIRouter, status

from chainfolio.api.deps import CurrentIdentity, Registry
from chainfolio.schemas.registry import (
    AuthorityResponse,
    ProjectCountResponse,
    ProjectCreate,
    ProjectResponse,
)

router = APIRouter()


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def add_project(
    data: ProjectCreate,
    caller: CurrentIdentity,
    registry: Registry,
):
    """Append a project. Only the registry authority may call this."""
    project = await registry.add_project(caller, data.title, data.content_ref)
    return ProjectResponse.model_validate(project)


@router.get("/projects", response_model=List[ProjectResponse])
async def list_projects(registry: Registry):
    """All projects in insertion order."""
    projects = await registry.get_projects()
    return [ProjectResponse.model_validate(p) for p in projects]


# Declared before /projects/{index} so "count" is not parsed as an index
@router.get("/projects/count", response_model=ProjectCountResponse)
async def count_projects(registry: Registry):
    return ProjectCountResponse(count=await registry.get_project_count())


@router.get("/projects/{index}", response_model=ProjectResponse)
async def get_project(index: int, registry: Registry):
    """Project at ``index``; 404 when out of bounds."""
    return ProjectResponse.model_validate(await registry.get_project(index))


@router.get("/authority", response_model=AuthorityResponse)
async def get_authority(registry: Registry):
    return AuthorityResponse(authority=registry.authority)
