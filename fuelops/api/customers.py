"""Customer directory API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.api.auth import get_actor, require_permission
from fuelops.audit import Actor, EntityNotFound, EntityType, MutationInterceptor
from fuelops.audit.registry import repository_for
from fuelops.database import get_db
from fuelops.models.customer import Customer
from fuelops.models.user import User
from fuelops.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)

router = APIRouter()


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    module: str = Query("all"),
    current_user: User = Depends(require_permission("customers", "view")),
    db: AsyncSession = Depends(get_db),
):
    """List live customers, optionally for one module"""
    query = select(Customer).where(Customer.deleted_at.is_(None))

    if module != "all":
        query = query.where(Customer.module.in_([module, "both"]))

    query = query.order_by(func.lower(Customer.name))

    result = await db.execute(query)
    customers = result.scalars().all()
    return CustomerListResponse(items=customers, total=len(customers))


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    current_user: User = Depends(require_permission("customers", "view")),
    db: AsyncSession = Depends(get_db),
):
    """Get a customer"""
    customer = await repository_for(db, EntityType.CUSTOMER).read(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    customer_data: CustomerCreate,
    current_user: User = Depends(require_permission("customers", "create")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Create a customer"""
    mutation = await MutationInterceptor(db).create(
        EntityType.CUSTOMER, customer_data.model_dump(), actor
    )
    return mutation.entity


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    customer_data: CustomerUpdate,
    current_user: User = Depends(require_permission("customers", "edit")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Update a customer"""
    try:
        mutation = await MutationInterceptor(db).update(
            EntityType.CUSTOMER,
            customer_id,
            customer_data.model_dump(exclude_unset=True),
            actor,
        )
    except EntityNotFound:
        raise HTTPException(status_code=404, detail="Customer not found")
    return mutation.entity


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(
    customer_id: UUID,
    current_user: User = Depends(require_permission("customers", "delete")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Delete a customer (soft delete)"""
    try:
        await MutationInterceptor(db).soft_delete(EntityType.CUSTOMER, customer_id, actor)
    except EntityNotFound:
        raise HTTPException(status_code=404, detail="Customer not found")
