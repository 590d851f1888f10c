"""
Derived-field tests: timestamps and tracking codes.

Verifies:
- created_at / updated_at are stamped by the server on insert
- updated_at moves strictly forward on every update, whatever the writer sends
- Tracking codes are RT + 10-digit epoch seconds, unique, and never rewritten
- Same-second collisions follow TRACKING_CODE_COLLISION_POLICY
"""

from datetime import datetime, timedelta

import pytest

from tailorshop import time_utils
from tailorshop.models import Order
from tailorshop.services import derived_fields_service, record_service, tracking_service
from tailorshop.validation import ConstraintViolation


FROZEN = datetime(2026, 3, 14, 9, 26, 53, 589793)


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(time_utils, "utcnow", lambda: FROZEN)
    monkeypatch.setattr(derived_fields_service, "utcnow", lambda: FROZEN)
    return FROZEN


@pytest.fixture
def frozen_epoch(monkeypatch):
    monkeypatch.setattr(time_utils, "epoch_seconds", lambda: 1700000000)
    return 1700000000


# =============================================================================
# TIMESTAMPS
# =============================================================================


class TestAfter:

    def test_uses_now_when_clock_moved(self):
        previous = datetime(2026, 1, 1, 12, 0, 0)
        now = previous + timedelta(seconds=5)
        assert time_utils.after(previous, now=now) == now

    def test_same_instant_bumps_one_microsecond(self):
        previous = datetime(2026, 1, 1, 12, 0, 0)
        assert time_utils.after(previous, now=previous) == previous + timedelta(microseconds=1)

    def test_clock_step_backwards_still_increases(self):
        previous = datetime(2026, 1, 1, 12, 0, 0)
        now = previous - timedelta(minutes=3)
        assert time_utils.after(previous, now=now) == previous + timedelta(microseconds=1)

    def test_no_previous(self):
        now = datetime(2026, 1, 1, 12, 0, 0)
        assert time_utils.after(None, now=now) == now


class TestTimestamps:

    def test_insert_stamps_both(self, db_session, admin, frozen_clock):
        fabric = record_service.insert_row(admin, "fabrics", {
            "name": "Linen Blend", "material": "Linen", "price_per_meter": 2200, "color": "Beige",
        })
        assert fabric.created_at == frozen_clock
        assert fabric.updated_at == frozen_clock

    def test_update_is_strictly_increasing_on_a_frozen_clock(self, db_session, admin, frozen_clock):
        fabric = record_service.insert_row(admin, "fabrics", {
            "name": "Linen Blend", "material": "Linen", "price_per_meter": 2200, "color": "Beige",
        })

        first = record_service.update_row(admin, "fabrics", fabric.id, {"stock": 10}).updated_at
        second = record_service.update_row(admin, "fabrics", fabric.id, {"stock": 11}).updated_at

        assert first == frozen_clock + timedelta(microseconds=1)
        assert second == frozen_clock + timedelta(microseconds=2)

    def test_writer_supplied_updated_at_is_ignored(self, db_session, admin, fabric):
        before = fabric.updated_at
        far_future = datetime(2100, 1, 1)

        updated = record_service.update_row(admin, "fabrics", fabric.id, {
            "color": "Ivory",
            "updated_at": far_future,
        })

        assert updated.updated_at != far_future
        assert updated.updated_at > before

    def test_created_at_unchanged_by_update(self, db_session, admin, fabric):
        created = fabric.created_at
        updated = record_service.update_row(admin, "fabrics", fabric.id, {"stock": 3})
        assert updated.created_at == created

    def test_writer_cannot_forge_created_at_or_id(self, db_session, admin, fabric):
        fabric_id, created = fabric.id, fabric.created_at

        updated = record_service.update_row(admin, "fabrics", fabric_id, {
            "created_at": datetime(1999, 1, 1),
            "id": "forged-id",
            "stock": 7,
        })

        assert updated.id == fabric_id
        assert updated.created_at == created
        assert updated.stock == 7

    def test_insert_ignores_writer_supplied_id(self, db_session, admin):
        fabric = record_service.insert_row(admin, "fabrics", {
            "id": "chosen-by-writer",
            "name": "Velvet Royal", "material": "Velvet", "price_per_meter": 3500, "color": "Maroon",
        })
        assert fabric.id != "chosen-by-writer"


# =============================================================================
# TRACKING CODES
# =============================================================================


class TestTrackingCodeFormat:

    def test_epoch_seconds(self):
        assert tracking_service.format_tracking_code(1700000000) == "RT1700000000"

    def test_zero_padded(self):
        assert tracking_service.format_tracking_code(42) == "RT0000000042"

    def test_cut_to_ten_digits(self):
        assert tracking_service.format_tracking_code(12345678901) == "RT1234567890"

    @pytest.mark.parametrize("value,expected", [
        ("RT1700000000", True),
        ("RT170000000", False),
        ("rt1700000000", False),
        ("XX1700000000", False),
        (None, False),
    ])
    def test_is_tracking_code(self, value, expected):
        assert tracking_service.is_tracking_code(value) is expected


class TestTrackingCodeIssue:

    def test_issued_on_insert(self, db_session, anon, frozen_epoch):
        order = record_service.insert_row(anon, "orders", {"price": 1500})
        assert order.tracking_id == "RT1700000000"

    @pytest.mark.parametrize("blank", ["", "  "])
    def test_empty_code_is_replaced(self, db_session, anon, frozen_epoch, blank):
        order = record_service.insert_row(anon, "orders", {"price": 1500, "tracking_id": blank})
        assert order.tracking_id == "RT1700000000"

    def test_supplied_code_is_kept(self, db_session, anon):
        order = record_service.insert_row(anon, "orders", {"price": 1500, "tracking_id": "RT0000000001"})
        assert order.tracking_id == "RT0000000001"

    def test_supplied_duplicate_is_rejected(self, db_session, anon):
        record_service.insert_row(anon, "orders", {"price": 1, "tracking_id": "RT0000000001"})
        with pytest.raises(ConstraintViolation) as exc:
            record_service.insert_row(anon, "orders", {"price": 2, "tracking_id": "RT0000000001"})
        assert exc.value.constraint == "orders_tracking_id_key"
        assert exc.value.kind == ConstraintViolation.UNIQUE
        assert db_session.query(Order).count() == 1

    def test_same_second_advances(self, app, db_session, anon, frozen_epoch, monkeypatch):
        monkeypatch.setitem(app.config, "TRACKING_CODE_COLLISION_POLICY", "advance")
        first = record_service.insert_row(anon, "orders", {"price": 1})
        second = record_service.insert_row(anon, "orders", {"price": 2})
        third = record_service.insert_row(anon, "orders", {"price": 3})

        assert [first.tracking_id, second.tracking_id, third.tracking_id] == [
            "RT1700000000", "RT1700000001", "RT1700000002",
        ]

    def test_batch_insert_in_one_second_gets_distinct_codes(self, db_session, anon, frozen_epoch):
        orders = record_service.insert_rows(anon, "orders", [{"price": 1}, {"price": 2}])
        assert {o.tracking_id for o in orders} == {"RT1700000000", "RT1700000001"}

    def test_same_second_rejected_under_reject_policy(self, app, db_session, anon, frozen_epoch, monkeypatch):
        monkeypatch.setitem(app.config, "TRACKING_CODE_COLLISION_POLICY", "reject")
        record_service.insert_row(anon, "orders", {"price": 1})

        with pytest.raises(ConstraintViolation) as exc:
            record_service.insert_row(anon, "orders", {"price": 2})

        assert exc.value.constraint == "orders_tracking_id_key"
        assert db_session.query(Order).count() == 1

    def test_probe_limit(self, app, db_session, anon, frozen_epoch, monkeypatch):
        monkeypatch.setitem(app.config, "TRACKING_CODE_MAX_PROBES", 2)
        record_service.insert_row(anon, "orders", {"price": 1})
        record_service.insert_row(anon, "orders", {"price": 2})

        with pytest.raises(ConstraintViolation):
            record_service.insert_row(anon, "orders", {"price": 3})

    def test_unknown_policy_is_a_config_error(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "TRACKING_CODE_COLLISION_POLICY", "shrug")
        with pytest.raises(ValueError):
            tracking_service.collision_policy()
