"""Properties API routes — public catalogue reads, admin CRUD, blocked dates."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_current_active_user, get_db, get_session_factory
from app.errors import NotFoundError
from app.models.property import Property
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.availability import BlockDateRequest, BlockedDateResponse, UnblockDateRequest
from app.schemas.property import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyUpdate,
)
from app.services import booking_service

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


async def _get_property_or_404(db: AsyncSession, property_id: uuid.UUID) -> Property:
    prop = await db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new property",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> PropertyResponse:
    """Add a listing to the catalogue."""
    prop = Property(**body.model_dump())
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List catalogue properties",
)
async def list_properties(
    listing_type: str | None = Query(None, alias="type", description="sale, long_term_rental or short_term_rental"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> PropertyListResponse:
    """Return paginated properties, newest first."""
    filters = []
    if listing_type is not None:
        filters.append(Property.listing_type == listing_type)

    # Total count
    count_query = select(func.count()).select_from(Property).where(*filters)
    total = (await db.execute(count_query)).scalar_one()

    # Fetch page
    items_query = select(Property).where(*filters).order_by(Property.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(items_query)
    items = list(result.scalars().all())

    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in items],
        total=total,
    )


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
)
async def get_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    """Retrieve a single property."""
    return PropertyResponse.model_validate(await _get_property_or_404(db, property_id))


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update a property",
)
async def update_property(
    property_id: uuid.UUID,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> PropertyResponse:
    """Partially update a property. Only explicitly set fields are changed."""
    prop = await _get_property_or_404(db, property_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(prop, field, value)

    db.add(prop)
    await db.flush()
    await db.refresh(prop)

    return PropertyResponse.model_validate(prop)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete a property",
)
async def delete_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a property together with its bookings, visits and blocked dates."""
    prop = await _get_property_or_404(db, property_id)

    await db.delete(prop)
    await db.flush()

    return MessageResponse(message="Property deleted")


# ---------------------------------------------------------------------------
# Unavailable dates
# ---------------------------------------------------------------------------


@router.get(
    "/{property_id}/unavailable-dates",
    response_model=list[date],
    summary="Days on which the property cannot be booked",
)
async def get_unavailable_dates(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[date]:
    """Return booked and blocked days (property and host-wide) as ISO dates."""
    return await booking_service.list_unavailable_dates(db, property_id)


@router.get(
    "/{property_id}/blocked-dates",
    response_model=list[BlockedDateResponse],
    summary="Block records for a property",
)
async def get_blocked_dates(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> list[BlockedDateResponse]:
    """Return manual and booking-derived blocks with their reasons."""
    blocks = await booking_service.list_blocks(db, property_id)
    return [BlockedDateResponse.model_validate(b) for b in blocks]


@router.post(
    "/{property_id}/unavailable-dates",
    response_model=BlockedDateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a day or a visit slot",
)
async def add_unavailable_date(
    property_id: uuid.UUID,
    body: BlockDateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> BlockedDateResponse:
    """Manually block a whole day, or a single slot when ``time`` is given."""
    block = await booking_service.block_date(session_factory, property_id, body.date, body.time, body.reason)
    return BlockedDateResponse.model_validate(block)


@router.delete(
    "/{property_id}/unavailable-dates",
    response_model=MessageResponse,
    summary="Unblock a day or a visit slot",
)
async def remove_unavailable_date(
    property_id: uuid.UUID,
    body: UnblockDateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Remove a manual block. Returns 404 if no such block exists."""
    await booking_service.unblock_date(session_factory, property_id, body.date, body.time)
    return MessageResponse(message="Unavailable date removed")
