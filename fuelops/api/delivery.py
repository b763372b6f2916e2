"""Delivery tariff API endpoints"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.api.auth import get_actor, require_permission
from fuelops.audit import Actor, EntityNotFound, EntityType, MutationInterceptor
from fuelops.audit.registry import repository_for
from fuelops.database import get_db
from fuelops.models.delivery import DeliveryCost
from fuelops.models.user import User
from fuelops.schemas.delivery import (
    DeliveryCostCreate,
    DeliveryCostUpdate,
    DeliveryCostResponse,
    DeliveryCostListResponse,
)

router = APIRouter()


@router.get("", response_model=DeliveryCostListResponse)
async def list_delivery_costs(
    carrier_name: Optional[str] = None,
    current_user: User = Depends(require_permission("delivery_cost", "view")),
    db: AsyncSession = Depends(get_db),
):
    """List live delivery tariffs"""
    query = select(DeliveryCost).where(DeliveryCost.deleted_at.is_(None))

    if carrier_name:
        query = query.where(DeliveryCost.carrier_name == carrier_name)

    query = query.order_by(DeliveryCost.carrier_name, DeliveryCost.from_location, DeliveryCost.to_location)

    result = await db.execute(query)
    tariffs = result.scalars().all()
    return DeliveryCostListResponse(items=tariffs, total=len(tariffs))


@router.get("/{tariff_id}", response_model=DeliveryCostResponse)
async def get_delivery_cost(
    tariff_id: UUID,
    current_user: User = Depends(require_permission("delivery_cost", "view")),
    db: AsyncSession = Depends(get_db),
):
    """Get a delivery tariff"""
    tariff = await repository_for(db, EntityType.DELIVERY_COST).read(tariff_id)
    if not tariff:
        raise HTTPException(status_code=404, detail="Delivery tariff not found")
    return tariff


@router.post("", response_model=DeliveryCostResponse, status_code=201)
async def create_delivery_cost(
    tariff_data: DeliveryCostCreate,
    current_user: User = Depends(require_permission("delivery_cost", "create")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Create a delivery tariff"""
    mutation = await MutationInterceptor(db).create(
        EntityType.DELIVERY_COST, tariff_data.model_dump(), actor
    )
    return mutation.entity


@router.patch("/{tariff_id}", response_model=DeliveryCostResponse)
async def update_delivery_cost(
    tariff_id: UUID,
    tariff_data: DeliveryCostUpdate,
    current_user: User = Depends(require_permission("delivery_cost", "edit")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Update a delivery tariff"""
    try:
        mutation = await MutationInterceptor(db).update(
            EntityType.DELIVERY_COST,
            tariff_id,
            tariff_data.model_dump(exclude_unset=True),
            actor,
        )
    except EntityNotFound:
        raise HTTPException(status_code=404, detail="Delivery tariff not found")
    return mutation.entity


@router.delete("/{tariff_id}", status_code=204)
async def delete_delivery_cost(
    tariff_id: UUID,
    current_user: User = Depends(require_permission("delivery_cost", "delete")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Delete a delivery tariff (soft delete)"""
    try:
        await MutationInterceptor(db).soft_delete(EntityType.DELIVERY_COST, tariff_id, actor)
    except EntityNotFound:
        raise HTTPException(status_code=404, detail="Delivery tariff not found")
