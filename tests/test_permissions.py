"""Tests for role permissions and rollback authorization"""

from fuelops.api.auth import can_rollback
from fuelops.models.user import User, UserRole


def _user(role):
    return User(email=f"{role.value}@example.com", role=role)


def test_admin_has_every_permission():
    admin = _user(UserRole.ADMIN)
    assert admin.has_permission("audit", "view_stats")
    assert can_rollback(admin, "customers", "DELETE")


def test_manager_rollback_needs_inverse_action():
    manager = _user(UserRole.MANAGER)
    assert can_rollback(manager, "customers", "CREATE")
    assert can_rollback(manager, "delivery_cost", "UPDATE")
    assert not manager.has_permission("audit", "view_stats")


def test_viewer_cannot_rollback():
    viewer = _user(UserRole.VIEWER)
    assert viewer.has_permission("customers", "view")
    assert not can_rollback(viewer, "customers", "UPDATE")


def test_entries_without_inverse_write_are_left_to_the_engine():
    manager = _user(UserRole.MANAGER)
    assert can_rollback(manager, "customers", "RESTORE")
    assert can_rollback(manager, "warehouses", "UPDATE")
