"""Tiered resources: clients see what their package tier allows."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.errors import Forbidden, NotFound
from app.core.security import CurrentUser, require_admin, require_client
from app.models.resource import Resource, ResourceDownload
from app.models.user import RegisteredUser
from app.schemas.resourceSchema import ResourceCreate, ResourceOut, ResourceUpdate
from app.utils.responses import success_response

router = APIRouter(
    prefix="/resources",
    tags=["resources"]
)

admin_router = APIRouter(
    prefix="/admin/resources",
    tags=["admin resources"]
)


def serialize(resource) -> dict:
    return ResourceOut.model_validate(resource).model_dump(mode="json")


def client_tier(user: RegisteredUser) -> int:
    """Clients without a package see tier 1 content."""
    return user.package_tier or 1


@router.get("")
async def list_resources(
    category: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    user = await db.get(RegisteredUser, current_user.id)
    tier = client_tier(user)

    query = select(Resource).where(
        Resource.is_active == True,
        Resource.tier_required <= tier
    )
    if category:
        query = query.where(Resource.category == category)
    if type:
        query = query.where(Resource.type == type)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Resource.title.ilike(pattern), Resource.description.ilike(pattern)))

    result = await db.execute(query.order_by(Resource.category, Resource.title))
    resources = [serialize(r) for r in result.scalars().all()]
    categories = sorted({r["category"] for r in resources})
    return success_response(
        "Resources retrieved",
        resources,
        package_tier=tier,
        categories=categories,
    )


@router.post("/{resource_id}/download")
async def track_resource_download(
    resource_id: str,
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    """Record a download and hand back the URL."""
    resource = await db.get(Resource, resource_id)
    if resource is None or not resource.is_active:
        raise NotFound("Resource not found")

    user = await db.get(RegisteredUser, current_user.id)
    if resource.tier_required > client_tier(user):
        raise Forbidden("Your package does not include this resource")

    db.add(ResourceDownload(resource_id=resource.id, user_id=user.id))
    await db.execute(
        update(Resource)
        .where(Resource.id == resource.id)
        .values(download_count=Resource.download_count + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(resource)

    return success_response(
        "Download recorded",
        {"download_url": resource.download_url, "download_count": resource.download_count},
    )


@router.get("/downloads/history")
async def get_download_history(
    current_user: CurrentUser = Depends(require_client),
    db: AsyncSession = Depends(aget_db),
):
    result = await db.execute(
        select(ResourceDownload, Resource)
        .join(Resource, ResourceDownload.resource_id == Resource.id)
        .where(ResourceDownload.user_id == current_user.id)
        .order_by(ResourceDownload.downloaded_at.desc())
    )
    return success_response("Download history retrieved", [
        {
            "resource_id": resource.id,
            "title": resource.title,
            "category": resource.category,
            "downloaded_at": download.downloaded_at.isoformat(),
        }
        for download, resource in result.all()
    ])


@admin_router.post("", status_code=201)
async def create_resource(
    payload: ResourceCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    resource = Resource(**payload.model_dump(), created_by=admin.id)
    db.add(resource)
    await db.commit()
    return success_response("Resource created", serialize(resource))


@admin_router.patch("/{resource_id}")
async def update_resource(
    resource_id: str,
    payload: ResourceUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    resource = await db.get(Resource, resource_id)
    if resource is None:
        raise NotFound("Resource not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(resource, field, value)
    await db.commit()
    return success_response("Resource updated", serialize(resource))


@admin_router.delete("/{resource_id}")
async def deactivate_resource(
    resource_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(aget_db),
):
    """Soft delete: hide the resource from clients and keep its download log."""
    resource = await db.get(Resource, resource_id)
    if resource is None:
        raise NotFound("Resource not found")
    resource.is_active = False
    await db.commit()
    return success_response("Resource deactivated", serialize(resource))
