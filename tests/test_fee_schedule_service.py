"""Unit tests for the fee schedule service."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from decimal import Decimal

import pytest
from app.exceptions import ValidationError
from app.models.audit_event import AuditEvent
from app.models.enums import FeeType, VehicleClass
from app.models.fee_schedule import FeeScheduleConfig
from app.services.fee_schedule_service import (
    DEFAULT_FEE_AMOUNTS, get_fee_amount, list_fee_schedule, update_fee_schedule,
)
from conftest import ACTOR


class TestGetFeeAmount:
    def test_defaults_when_never_configured(self, db):
        assert get_fee_amount(db, FeeType.TOW, VehicleClass.STANDARD) == Decimal("150.00")
        assert get_fee_amount(db, FeeType.ADMIN, VehicleClass.OVERSIZED) == Decimal("50.00")

    def test_unlisted_fee_type_is_zero(self, db):
        assert get_fee_amount(db, FeeType.ADJUSTMENT, VehicleClass.STANDARD) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_class_override_then_base(self, db):
        await update_fee_schedule(db, FeeType.TOW, Decimal("160.00"),
                                  {VehicleClass.LARGE: Decimal("250.00")}, ACTOR)

        assert get_fee_amount(db, FeeType.TOW, VehicleClass.LARGE) == Decimal("250.00")
        assert get_fee_amount(db, FeeType.TOW, VehicleClass.STANDARD) == Decimal("160.00")


class TestUpdateFeeSchedule:
    @pytest.mark.asyncio
    async def test_update_closes_previous_config(self, db):
        await update_fee_schedule(db, FeeType.GATE, Decimal("80.00"), {}, ACTOR)
        await update_fee_schedule(db, FeeType.GATE, Decimal("90.00"), {}, ACTOR)

        rows = (db.query(FeeScheduleConfig)
                .filter(FeeScheduleConfig.fee_type == FeeType.GATE.value)
                .order_by(FeeScheduleConfig.effective_from).all())
        assert len(rows) == 2
        assert rows[0].effective_to is not None
        assert rows[1].effective_to is None
        assert get_fee_amount(db, FeeType.GATE, VehicleClass.STANDARD) == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_update_is_audited(self, db):
        config = await update_fee_schedule(db, FeeType.NOTICE, Decimal("30.00"), {}, "admin")

        event = db.query(AuditEvent).filter(AuditEvent.entity_id == config.id).one()
        assert event.event_type == "FEE_SCHEDULE_UPDATED"
        assert event.actor_id == "admin"
        assert event.changes["base_amount"] == {"old": "25.00", "new": "30.00"}

    @pytest.mark.asyncio
    async def test_payment_type_not_configurable(self, db):
        with pytest.raises(ValidationError):
            await update_fee_schedule(db, FeeType.PAYMENT, Decimal("10.00"), {}, ACTOR)

    @pytest.mark.asyncio
    async def test_negative_amounts_rejected(self, db):
        with pytest.raises(ValidationError):
            await update_fee_schedule(db, FeeType.TOW, Decimal("-1.00"), {}, ACTOR)
        with pytest.raises(ValidationError):
            await update_fee_schedule(db, FeeType.TOW, Decimal("10.00"),
                                      {VehicleClass.TRAILER: Decimal("-5.00")}, ACTOR)
        assert db.query(FeeScheduleConfig).count() == 0


class TestListFeeSchedule:
    @pytest.mark.asyncio
    async def test_lists_every_configurable_type(self, db):
        await update_fee_schedule(db, FeeType.WINCH, Decimal("120.00"),
                                  {VehicleClass.OVERSIZED: Decimal("300.00")}, ACTOR)

        items = {item["fee_type"]: item for item in list_fee_schedule(db)}
        assert set(items) == set(DEFAULT_FEE_AMOUNTS)
        assert items[FeeType.WINCH]["base_amount"] == Decimal("120.00")
        assert items[FeeType.WINCH]["vehicle_class_amounts"] == {VehicleClass.OVERSIZED: Decimal("300.00")}
        assert items[FeeType.TOW]["base_amount"] == Decimal("150.00")
        assert items[FeeType.TOW]["vehicle_class_amounts"] == {}
