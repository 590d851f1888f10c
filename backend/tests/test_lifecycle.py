"""
Order lifecycle tests.

Verifies:
- Status must be one of the eight pipeline stages
- With sequencing off (default) any valid stage may follow any other
- With ORDER_STATUS_ENFORCE_SEQUENCE on, stages advance one at a time
- advance_order walks the pipeline and stops at completed
"""

import pytest

from tailorshop.models import ORDER_STATUSES
from tailorshop.services import lifecycle_service, order_service, record_service
from tailorshop.services.lifecycle_service import LifecycleError
from tailorshop.validation import ConstraintViolation


@pytest.fixture
def order(db_session, anon):
    return order_service.create_order(anon, {"price": 4500})


class TestStatusSet:

    def test_pipeline_order(self):
        assert ORDER_STATUSES == (
            "confirmed", "fabric_ready", "cutting", "stitching",
            "embroidery", "quality_check", "ready", "completed",
        )

    @pytest.mark.parametrize("status", ORDER_STATUSES)
    def test_valid(self, status):
        lifecycle_service.validate_status(status)

    @pytest.mark.parametrize("status", ["shipped", "CONFIRMED", "", None])
    def test_invalid(self, status):
        with pytest.raises(ConstraintViolation) as exc:
            lifecycle_service.validate_status(status)
        assert exc.value.constraint == "orders_status_check"
        assert exc.value.kind == ConstraintViolation.CHECK

    def test_next_status(self):
        assert lifecycle_service.next_status("confirmed") == "fabric_ready"
        assert lifecycle_service.next_status("ready") == "completed"
        assert lifecycle_service.next_status("completed") is None

    def test_progress(self):
        p = lifecycle_service.progress("cutting")
        assert p["step"] == 3
        assert p["total_steps"] == 8
        assert p["label"] == "Cutting"
        assert p["is_complete"] is False
        assert [s["done"] for s in p["stages"]] == [True, True, True, False, False, False, False, False]


class TestTransitions:

    def test_unrestricted_by_default(self):
        assert lifecycle_service.can_transition("confirmed", "completed", enforce_sequence=False)
        assert lifecycle_service.can_transition("completed", "confirmed", enforce_sequence=False)

    @pytest.mark.parametrize("from_status,to_status,allowed", [
        ("confirmed", "confirmed", True),
        ("confirmed", "fabric_ready", True),
        ("cutting", "stitching", True),
        ("confirmed", "cutting", False),
        ("stitching", "cutting", False),
        ("ready", "completed", True),
        (None, "confirmed", True),
    ])
    def test_sequenced(self, from_status, to_status, allowed):
        assert lifecycle_service.can_transition(from_status, to_status, enforce_sequence=True) is allowed

    def test_invalid_target_is_a_constraint_violation(self):
        with pytest.raises(ConstraintViolation):
            lifecycle_service.can_transition("confirmed", "shipped", enforce_sequence=False)


class TestOrderUpdates:

    def test_new_orders_start_confirmed(self, order):
        assert order.status == "confirmed"

    def test_any_jump_allowed_by_default(self, db_session, admin, order):
        updated = order_service.update_order(admin, order.id, {"status": "ready"})
        assert updated.status == "ready"
        updated = order_service.update_order(admin, order.id, {"status": "cutting"})
        assert updated.status == "cutting"

    def test_invalid_status_rejected(self, db_session, admin, order):
        with pytest.raises(ConstraintViolation):
            order_service.update_order(admin, order.id, {"status": "shipped"})
        assert record_service.get_row(admin, "orders", order.id).status == "confirmed"

    def test_skip_rejected_when_sequenced(self, app, db_session, admin, order, monkeypatch):
        monkeypatch.setitem(app.config, "ORDER_STATUS_ENFORCE_SEQUENCE", True)
        with pytest.raises(LifecycleError):
            order_service.update_order(admin, order.id, {"status": "cutting"})

        updated = order_service.update_order(admin, order.id, {"status": "fabric_ready"})
        assert updated.status == "fabric_ready"

    def test_advance_walks_the_pipeline(self, db_session, admin, order):
        seen = [order.status]
        for _ in range(len(ORDER_STATUSES) - 1):
            seen.append(order_service.advance_order(admin, order.id).status)
        assert tuple(seen) == ORDER_STATUSES

        with pytest.raises(LifecycleError):
            order_service.advance_order(admin, order.id)

    def test_tracking_code_survives_updates(self, db_session, admin, order):
        code = order.tracking_id
        order_service.advance_order(admin, order.id)
        order_service.update_order(admin, order.id, {"special_instructions": "Rush the hem"})
        assert record_service.get_row(admin, "orders", order.id).tracking_id == code

    def test_tracking_code_cannot_be_rewritten(self, db_session, admin, order):
        code = order.tracking_id
        with pytest.raises(ConstraintViolation) as exc:
            record_service.update_row(admin, "orders", order.id, {"tracking_id": "RT0000000009"})
        assert exc.value.constraint == "orders_tracking_id_immutable"
        assert record_service.get_row(admin, "orders", order.id).tracking_id == code

        with pytest.raises(ConstraintViolation):
            order_service.update_order(admin, order.id, {"tracking_id": "RT0000000009", "status": "cutting"})
        assert record_service.get_row(admin, "orders", order.id).status == "confirmed"

    def test_repeating_the_tracking_code_is_allowed(self, db_session, admin, order):
        updated = record_service.update_row(admin, "orders", order.id, {
            "tracking_id": order.tracking_id, "urgent": True,
        })
        assert updated.urgent is True
