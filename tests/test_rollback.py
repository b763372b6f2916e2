"""Tests for the rollback engine"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from fuelops.audit import (
    AuditLogStore,
    EntityType,
    MutationInterceptor,
    RollbackEngine,
    RollbackError,
    get_history,
    rollback,
)
from fuelops.audit.registry import repository_for
from fuelops.models.audit import AuditLog, AuditOperation, Provenance


async def _reload(db, entity_type, entity_id):
    return await repository_for(db, entity_type).read(entity_id, include_deleted=True)


@pytest.mark.asyncio
async def test_rollback_create_soft_deletes(test_db, manager_actor, test_manager):
    mutation = await MutationInterceptor(test_db).create(
        EntityType.CUSTOMER, {"name": "Acme"}, manager_actor
    )
    target = mutation.entry

    result = await rollback(test_db, target.id, manager_actor)

    assert result.ok
    assert result.entry.operation == AuditOperation.DELETE.value
    assert result.entry.provenance == Provenance.ROLLBACK.value
    assert result.entry.rollback_of_id == target.id
    assert result.entry.old_data == target.new_data
    assert result.target.rolled_back_at is not None
    assert result.target.rolled_back_by_id == test_manager.id

    customer = await _reload(test_db, EntityType.CUSTOMER, mutation.entity.id)
    assert customer.deleted_at is not None


@pytest.mark.asyncio
async def test_rollback_update_restores_old_values(test_db, manager_actor, test_tariff):
    tariff_id = test_tariff.id
    mutation = await MutationInterceptor(test_db).update(
        EntityType.DELIVERY_COST, tariff_id, {"cost_per_kg": Decimal("150")}, manager_actor
    )

    result = await RollbackEngine(test_db).rollback(mutation.entry.id, manager_actor)

    assert result.ok
    assert result.entry.operation == AuditOperation.UPDATE.value
    assert result.entry.changed_fields == ["cost_per_kg"]
    assert result.entry.old_data["cost_per_kg"] == "150"
    assert result.entry.new_data["cost_per_kg"] == "100"

    tariff = await _reload(test_db, EntityType.DELIVERY_COST, tariff_id)
    assert tariff.cost_per_kg == Decimal("100")
    assert tariff.distance == Decimal("250.5")
    assert tariff.carrier_name == "TransOil"


@pytest.mark.asyncio
async def test_rollback_delete_restores(test_db, manager_actor, test_customer):
    customer_id = test_customer.id
    mutation = await MutationInterceptor(test_db).soft_delete(
        EntityType.CUSTOMER, customer_id, manager_actor
    )

    result = await rollback(test_db, mutation.entry.id, manager_actor)

    assert result.ok
    assert result.entry.operation == AuditOperation.RESTORE.value
    assert result.entry.new_data == mutation.entry.old_data
    assert result.entry.old_data is None

    customer = await _reload(test_db, EntityType.CUSTOMER, customer_id)
    assert customer.deleted_at is None
    assert customer.name == "Northern Fuel LLC"


@pytest.mark.asyncio
async def test_second_rollback_is_rejected(test_db, manager_actor, test_tariff):
    mutation = await MutationInterceptor(test_db).update(
        EntityType.DELIVERY_COST, test_tariff.id, {"cost_per_kg": Decimal("150")}, manager_actor
    )
    entry_id = mutation.entry.id

    first = await rollback(test_db, entry_id, manager_actor)
    second = await rollback(test_db, entry_id, manager_actor)

    assert first.ok
    assert second.error == RollbackError.ALREADY_ROLLED_BACK
    assert second.entry is None


@pytest.mark.asyncio
async def test_later_delete_blocks_until_undone(test_db, manager_actor, test_tariff):
    tariff_id = test_tariff.id
    interceptor = MutationInterceptor(test_db)
    update = await interceptor.update(
        EntityType.DELIVERY_COST, tariff_id, {"cost_per_kg": Decimal("150")}, manager_actor
    )
    delete = await interceptor.soft_delete(EntityType.DELIVERY_COST, tariff_id, manager_actor)
    update_id, delete_id = update.entry.id, delete.entry.id

    blocked = await rollback(test_db, update_id, manager_actor)
    assert blocked.error == RollbackError.ENTITY_DELETED
    assert blocked.target.rolled_back_at is None

    assert (await rollback(test_db, delete_id, manager_actor)).ok
    unblocked = await rollback(test_db, update_id, manager_actor)
    assert unblocked.ok

    tariff = await _reload(test_db, EntityType.DELIVERY_COST, tariff_id)
    assert tariff.deleted_at is None
    assert tariff.cost_per_kg == Decimal("100")


@pytest.mark.asyncio
async def test_restore_is_not_reversible(test_db, manager_actor, test_customer):
    mutation = await MutationInterceptor(test_db).soft_delete(
        EntityType.CUSTOMER, test_customer.id, manager_actor
    )
    restore = await rollback(test_db, mutation.entry.id, manager_actor)
    restore_id = restore.entry.id

    result = await rollback(test_db, restore_id, manager_actor)
    assert result.error == RollbackError.NOT_REVERSIBLE


@pytest.mark.asyncio
async def test_missing_entry(test_db, manager_actor):
    result = await rollback(test_db, uuid4(), manager_actor)
    assert result.error == RollbackError.NOT_FOUND
    assert result.target is None


@pytest.mark.asyncio
async def test_unregistered_entity_type_is_not_reversible(test_db, manager_actor):
    entry = AuditLog(
        entity_type="warehouses",
        entity_id=uuid4(),
        operation=AuditOperation.UPDATE.value,
        old_data={"name": "a"},
        new_data={"name": "b"},
        changed_fields=["name"],
    )
    test_db.add(entry)
    await test_db.commit()
    entry_id = entry.id

    result = await rollback(test_db, entry_id, manager_actor)
    assert result.error == RollbackError.NOT_REVERSIBLE


@pytest.mark.asyncio
async def test_create_rollback_when_already_gone(test_db, manager_actor, test_customer):
    history = await get_history(test_db, EntityType.CUSTOMER, test_customer.id)
    create_id = history[-1].id

    # Removed without going through the audited path
    test_customer.deleted_at = datetime.utcnow()
    await test_db.commit()

    result = await rollback(test_db, create_id, manager_actor)
    assert result.ok
    assert result.entry is None
    assert result.target.rolled_back_at is not None


@pytest.mark.asyncio
async def test_update_rollback_on_silently_deleted_row(test_db, manager_actor, test_customer):
    mutation = await MutationInterceptor(test_db).update(
        EntityType.CUSTOMER, test_customer.id, {"phone": "+7 000"}, manager_actor
    )
    entry_id = mutation.entry.id
    test_customer.deleted_at = datetime.utcnow()
    await test_db.commit()

    result = await rollback(test_db, entry_id, manager_actor)
    assert result.error == RollbackError.CONCURRENT_MODIFICATION
    assert result.target.rolled_back_at is None


@pytest.mark.asyncio
async def test_history_flags_and_labels(test_db, manager_actor, test_customer):
    customer_id = test_customer.id
    interceptor = MutationInterceptor(test_db)
    await interceptor.update(EntityType.CUSTOMER, customer_id, {"phone": "+7 111"}, manager_actor)
    delete = await interceptor.soft_delete(EntityType.CUSTOMER, customer_id, manager_actor)
    await rollback(test_db, delete.entry.id, manager_actor)

    history = await get_history(test_db, EntityType.CUSTOMER, customer_id)
    assert [h.operation for h in history] == ["RESTORE", "DELETE", "UPDATE", "CREATE"]

    restore, deleted, updated, created = history
    assert restore.actor_label == "Ivan Petrov (rollback of deletion)"
    assert restore.rollback_of_id == delete.entry.id
    assert restore.can_rollback is False
    assert deleted.can_rollback is False
    assert updated.entity_deleted is False
    assert updated.can_rollback is True
    assert updated.changes["phone"].new == "+7 111"
    assert created.actor_label == "Ivan Petrov"


@pytest.mark.asyncio
async def test_history_marks_entries_blocked_by_delete(test_db, manager_actor, test_customer):
    customer_id = test_customer.id
    await MutationInterceptor(test_db).soft_delete(EntityType.CUSTOMER, customer_id, manager_actor)

    newest, oldest = await get_history(test_db, EntityType.CUSTOMER, customer_id)
    assert newest.operation == "DELETE"
    assert newest.can_rollback is True
    assert oldest.entity_deleted is True
    assert oldest.can_rollback is False

    limited = await get_history(test_db, EntityType.CUSTOMER, customer_id, limit=1)
    assert [h.id for h in limited] == [newest.id]


@pytest.mark.asyncio
async def test_create_rollback_waits_for_delete_rollback(test_db, manager_actor):
    interceptor = MutationInterceptor(test_db)
    created = await interceptor.create(EntityType.CUSTOMER, {"name": "Acme"}, manager_actor)
    customer_id, create_id = created.entity.id, created.entry.id
    deleted = await interceptor.soft_delete(EntityType.CUSTOMER, customer_id, manager_actor)
    delete_id = deleted.entry.id

    assert (await rollback(test_db, create_id, manager_actor)).error == RollbackError.ENTITY_DELETED
    assert (await rollback(test_db, delete_id, manager_actor)).ok

    result = await rollback(test_db, create_id, manager_actor)
    assert result.ok
    assert result.entry.operation == AuditOperation.DELETE.value

    customer = await _reload(test_db, EntityType.CUSTOMER, customer_id)
    assert customer.deleted_at is not None


@pytest.mark.asyncio
async def test_rollback_marked_by_another_caller_applies_nothing(
    test_db, manager_actor, test_tariff, monkeypatch
):
    tariff_id = test_tariff.id
    mutation = await MutationInterceptor(test_db).update(
        EntityType.DELIVERY_COST, tariff_id, {"cost_per_kg": Decimal("150")}, manager_actor
    )
    entry_id = mutation.entry.id

    async def marked_meanwhile(self, entry):
        # Another caller wins the mark after the checks have passed
        assert await self.mark_rolled_back(entry.id, datetime.utcnow())
        return False

    monkeypatch.setattr(AuditLogStore, "has_later_delete", marked_meanwhile)
    result = await rollback(test_db, entry_id, manager_actor)
    monkeypatch.undo()

    assert result.error == RollbackError.ALREADY_ROLLED_BACK
    assert result.entry is None

    count = await test_db.execute(
        select(func.count()).select_from(AuditLog).where(AuditLog.entity_id == tariff_id)
    )
    assert count.scalar() == 2

    tariff = await _reload(test_db, EntityType.DELIVERY_COST, tariff_id)
    assert tariff.cost_per_kg == Decimal("150")
