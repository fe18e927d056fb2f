"""Resource endpoints: CRUD, availability, free-resource search and daily load."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.api.errors import to_http_exception
from orderflow.core.database import get_db
from orderflow.models.resource import Resource, ResourceType
from orderflow.schemas.resource import ResourceCreate, ResourceDeleteResult, ResourceResponse
from orderflow.schemas.scheduling import DailyLoad, ResourceLoadResponse, TimeSlotResponse
from orderflow.services.availability import AvailabilityCalculator
from orderflow.services.exceptions import SchedulingError
from orderflow.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=list[ResourceResponse])
async def list_resources(
    resource_type: ResourceType | None = Query(None),
    department: str | None = Query(None),
    active: bool | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> list[Resource]:
    """List resources by name with optional type/department/active filters."""
    query = select(Resource)
    if resource_type is not None:
        query = query.where(Resource.resource_type == resource_type.value)
    if department is not None:
        query = query.where(Resource.department == department)
    if active is not None:
        query = query.where(Resource.is_active.is_(active))

    query = query.order_by(Resource.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/available", response_model=list[ResourceResponse])
async def list_available_resources(
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: AsyncSession = Depends(get_db),
) -> list[Resource]:
    """Active resources that are not fully booked anywhere in [start, end]."""
    try:
        return await AvailabilityCalculator(ScheduleStore(db)).get_available_resources(start, end)
    except SchedulingError as exc:
        raise to_http_exception(exc)


@router.get("/availability", response_model=dict[uuid.UUID, list[TimeSlotResponse]])
async def get_availability(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    resource_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> dict[uuid.UUID, list[TimeSlotResponse]]:
    """Booked time slots per resource within the window."""
    try:
        slots = await AvailabilityCalculator(ScheduleStore(db)).get_time_slots(
            start_date, end_date, resource_id=resource_id
        )
    except SchedulingError as exc:
        raise to_http_exception(exc)
    return {
        rid: [TimeSlotResponse.model_validate(slot) for slot in resource_slots]
        for rid, resource_slots in slots.items()
    }


@router.get("/type/{resource_type}", response_model=list[ResourceResponse])
async def list_resources_by_type(
    resource_type: ResourceType,
    db: AsyncSession = Depends(get_db),
) -> list[Resource]:
    result = await db.execute(
        select(Resource)
        .where(Resource.resource_type == resource_type.value)
        .order_by(Resource.name)
    )
    return list(result.scalars().all())


@router.get("/department/{department}", response_model=list[ResourceResponse])
async def list_resources_by_department(
    department: str,
    db: AsyncSession = Depends(get_db),
) -> list[Resource]:
    result = await db.execute(
        select(Resource).where(Resource.department == department).order_by(Resource.name)
    )
    return list(result.scalars().all())


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: ResourceCreate,
    db: AsyncSession = Depends(get_db),
) -> Resource:
    """Create a new resource."""
    data = payload.model_dump()
    data["resource_type"] = payload.resource_type.value
    resource = Resource(**data)
    db.add(resource)
    await db.flush()
    await db.refresh(resource)
    return resource


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Resource:
    """Get a single resource by ID."""
    resource = await ScheduleStore(db).find_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    return resource


@router.put("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: uuid.UUID,
    payload: ResourceCreate,
    db: AsyncSession = Depends(get_db),
) -> Resource:
    """Replace a resource's fields."""
    store = ScheduleStore(db)
    resource = await store.find_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")

    data = payload.model_dump()
    data["resource_type"] = payload.resource_type.value
    for field, value in data.items():
        setattr(resource, field, value)

    try:
        await store.flush()
    except SchedulingError as exc:
        raise to_http_exception(exc)
    await db.refresh(resource)
    return resource


@router.delete("/{resource_id}", response_model=ResourceDeleteResult)
async def delete_resource(
    resource_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ResourceDeleteResult:
    """Delete a resource, or deactivate it if any task still references it.

    Deactivated resources keep their assignment history but are excluded
    from availability searches and cannot receive new assignments.
    """
    store = ScheduleStore(db)
    resource = await store.find_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")

    if await store.resource_has_assignments(resource_id):
        resource.is_active = False
        deleted = False
        logger.info("Resource %s is assigned; deactivated instead of deleted", resource_id)
    else:
        await db.delete(resource)
        deleted = True
        logger.info("Resource %s deleted", resource_id)

    try:
        await store.flush()
    except SchedulingError as exc:
        raise to_http_exception(exc)
    return ResourceDeleteResult(id=resource_id, deleted=deleted, deactivated=not deleted)


@router.get("/{resource_id}/load", response_model=ResourceLoadResponse)
async def get_resource_load(
    resource_id: uuid.UUID,
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    capped: bool = Query(True, description="Clip each day at 1.0 (100%)"),
    db: AsyncSession = Depends(get_db),
) -> ResourceLoadResponse:
    """Daily load fraction of a resource against an 8-hour nominal workday."""
    try:
        load = await AvailabilityCalculator(ScheduleStore(db)).get_resource_load(
            resource_id, start_date, end_date, capped=capped
        )
    except SchedulingError as exc:
        raise to_http_exception(exc)
    return ResourceLoadResponse(
        resource_id=resource_id,
        capped=capped,
        days=[DailyLoad(day=day, load=round(value, 4)) for day, value in load.items()],
    )
