"""Unit tests for the case lifecycle service."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import re
from decimal import Decimal

import pytest
from app.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.agency import Agency
from app.models.audit_event import AuditEvent
from app.models.enums import CaseStatus, FeeType, VehicleClass
from app.services import case_lifecycle_service, fee_ledger_service
from app.services.fee_schedule_service import update_fee_schedule
from conftest import ACTOR, TOW_DATE, case_create, intake_case


def audit_trail(db, case_id):
    return (db.query(AuditEvent).filter(AuditEvent.entity_id == case_id)
            .order_by(AuditEvent.created_at).all())


class TestCreateCase:
    @pytest.mark.asyncio
    async def test_new_case_pending_intake_with_case_number(self, db):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(vin="1hgcm82633a004352"), ACTOR)

        assert vehicle_case.status == CaseStatus.PENDING_INTAKE.value
        assert re.match(r"^\d{2}-00001$", vehicle_case.case_number)
        assert vehicle_case.vin == "1HGCM82633A004352"
        assert vehicle_case.created_by_id == ACTOR
        assert fee_ledger_service.list_entries(db, vehicle_case.id) == []
        assert [e.event_type for e in audit_trail(db, vehicle_case.id)] == ["CREATE"]

    @pytest.mark.asyncio
    async def test_case_numbers_are_sequential(self, db):
        first = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        second = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        assert int(second.case_number[-5:]) == int(first.case_number[-5:]) + 1

    @pytest.mark.asyncio
    async def test_unknown_agency_rejected(self, db):
        with pytest.raises(NotFoundError):
            await case_lifecycle_service.create_case(
                db, case_create(towing_agency_id="11111111-1111-1111-1111-111111111111"), ACTOR)

    @pytest.mark.asyncio
    async def test_known_agency_linked(self, db):
        agency = Agency(name="Clinton Township PD", agency_type="POLICE", active=True)
        db.add(agency)
        db.commit()

        vehicle_case = await case_lifecycle_service.create_case(
            db, case_create(towing_agency_id=agency.id), ACTOR)
        assert vehicle_case.towing_agency_id == agency.id

    def test_blank_optional_fields_become_none(self):
        data = case_create(vin="", owner_name="  ")
        assert data.vin is None
        assert data.owner_name is None


class TestCompleteIntake:
    @pytest.mark.asyncio
    async def test_intake_without_hold_stores_vehicle(self, db):
        vehicle_case = await intake_case(db, yard_location="A-1")

        assert vehicle_case.status == CaseStatus.STORED.value
        assert vehicle_case.yard_location == "A-1"
        assert vehicle_case.intake_date is not None

        entries = fee_ledger_service.list_entries(db, vehicle_case.id)
        assert sorted((e.fee_type, e.amount) for e in entries) == [
            (FeeType.ADMIN.value, Decimal("50.00")),
            (FeeType.TOW.value, Decimal("150.00")),
        ]
        assert all(e.accrual_date == TOW_DATE for e in entries)
        assert fee_ledger_service.get_balance(db, vehicle_case.id) == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_intake_with_hold_goes_to_hold(self, db):
        vehicle_case = await intake_case(db, police_hold=True, police_case_number="2026-CT-00123")
        assert vehicle_case.status == CaseStatus.HOLD.value
        assert len(fee_ledger_service.list_entries(db, vehicle_case.id)) == 2

    @pytest.mark.asyncio
    async def test_second_intake_fails_and_changes_nothing(self, db):
        vehicle_case = await intake_case(db, yard_location="A-1")

        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.complete_intake(db, vehicle_case.id, "B-7", ACTOR)
        db.rollback()

        db.refresh(vehicle_case)
        assert vehicle_case.status == CaseStatus.STORED.value
        assert vehicle_case.yard_location == "A-1"
        assert len(fee_ledger_service.list_entries(db, vehicle_case.id)) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [CaseStatus.HOLD, CaseStatus.RELEASED, CaseStatus.INTAKE_COMPLETE])
    async def test_intake_requires_pending_status(self, db, status):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        await case_lifecycle_service.update_status(db, vehicle_case.id, status, ACTOR)

        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.complete_intake(db, vehicle_case.id, "A-1", ACTOR)
        db.rollback()
        assert fee_ledger_service.list_entries(db, vehicle_case.id) == []

    @pytest.mark.asyncio
    async def test_blank_yard_location_rejected(self, db):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        with pytest.raises(ValidationError):
            await case_lifecycle_service.complete_intake(db, vehicle_case.id, "  ", ACTOR)

    @pytest.mark.asyncio
    async def test_unknown_case(self, db):
        with pytest.raises(NotFoundError):
            await case_lifecycle_service.complete_intake(
                db, "00000000-0000-0000-0000-000000000000", "A-1", ACTOR)

    @pytest.mark.asyncio
    async def test_intake_uses_fee_schedule_for_vehicle_class(self, db):
        await update_fee_schedule(db, FeeType.TOW, Decimal("175.00"),
                                  {VehicleClass.OVERSIZED: Decimal("400.00")}, ACTOR)

        standard = await intake_case(db)
        oversized = await intake_case(db, vehicle_class="OVERSIZED")

        assert fee_ledger_service.get_balance(db, standard.id) == Decimal("225.00")
        assert fee_ledger_service.get_balance(db, oversized.id) == Decimal("450.00")

    @pytest.mark.asyncio
    async def test_waived_fee_still_posts_two_entries(self, db):
        await update_fee_schedule(db, FeeType.ADMIN, Decimal("0.00"), {}, ACTOR)
        await update_fee_schedule(db, FeeType.TOW, Decimal("150.00"),
                                  {VehicleClass.MOTORCYCLE: Decimal("0.00")}, ACTOR)

        standard = await intake_case(db)
        motorcycle = await intake_case(db, vehicle_class="MOTORCYCLE")

        assert standard.status == CaseStatus.STORED.value
        amounts = {e.fee_type: e.amount for e in fee_ledger_service.list_entries(db, standard.id)}
        assert amounts == {FeeType.TOW.value: Decimal("150.00"), FeeType.ADMIN.value: Decimal("0.00")}
        assert fee_ledger_service.get_balance(db, standard.id) == Decimal("150.00")

        assert len(fee_ledger_service.list_entries(db, motorcycle.id)) == 2
        assert fee_ledger_service.get_balance(db, motorcycle.id) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_intake_audited_with_old_and_new_status(self, db):
        vehicle_case = await intake_case(db, yard_location="C-3")
        event = audit_trail(db, vehicle_case.id)[-1]
        assert event.event_type == "STATUS_CHANGE"
        assert event.changes["status"] == {"old": "PENDING_INTAKE", "new": "STORED"}
        assert event.changes["yard_location"] == {"old": None, "new": "C-3"}


class TestRelease:
    @pytest.mark.asyncio
    async def test_paid_case_released(self, db):
        vehicle_case = await intake_case(db)
        await fee_ledger_service.add_payment(db, vehicle_case.id, Decimal("200.00"), "CASH", ACTOR)

        released, balance = await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)

        assert released.status == CaseStatus.RELEASED.value
        assert released.released_at is not None
        assert released.released_to == "John Doe"
        assert balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_outstanding_balance_does_not_block_release(self, db):
        vehicle_case = await intake_case(db)
        released, balance = await case_lifecycle_service.release_case(db, vehicle_case.id, "Jane Roe", ACTOR)
        assert released.status == CaseStatus.RELEASED.value
        assert balance == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_police_hold_blocks_release_regardless_of_balance(self, db):
        vehicle_case = await intake_case(db, police_hold=True, police_case_number="2026-CT-00123")
        await fee_ledger_service.add_payment(db, vehicle_case.id, Decimal("200.00"), "CASH", ACTOR)
        await case_lifecycle_service.update_status(db, vehicle_case.id, CaseStatus.RELEASE_ELIGIBLE, ACTOR)

        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)
        db.rollback()
        db.refresh(vehicle_case)
        assert vehicle_case.status == CaseStatus.RELEASE_ELIGIBLE.value
        assert vehicle_case.released_at is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [CaseStatus.PENDING_INTAKE, CaseStatus.RELEASED, CaseStatus.SOLD])
    async def test_release_only_from_stored_or_eligible(self, db, status):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        if status != CaseStatus.PENDING_INTAKE:
            await case_lifecycle_service.update_status(db, vehicle_case.id, status, ACTOR)

        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_any_to_any(self, db):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        for status in (CaseStatus.AUCTION_LISTED, CaseStatus.PENDING_INTAKE, CaseStatus.DISPOSED):
            updated = await case_lifecycle_service.update_status(db, vehicle_case.id, status, "admin")
            assert updated.status == status.value

        changes = [e.changes["status"] for e in audit_trail(db, vehicle_case.id)
                   if e.event_type == "STATUS_CHANGE"]
        assert changes == [
            {"old": "PENDING_INTAKE", "new": "AUCTION_LISTED"},
            {"old": "AUCTION_LISTED", "new": "PENDING_INTAKE"},
            {"old": "PENDING_INTAKE", "new": "DISPOSED"},
        ]
        assert updated.updated_by_id == "admin"


class TestLiftPoliceHold:
    @pytest.mark.asyncio
    async def test_hold_case_moves_to_stored_and_can_be_released(self, db):
        vehicle_case = await intake_case(db, police_hold=True, police_case_number="2026-CT-00123")

        lifted = await case_lifecycle_service.lift_police_hold(db, vehicle_case.id, ACTOR)
        assert lifted.police_hold is False
        assert lifted.status == CaseStatus.STORED.value

        released, _ = await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)
        assert released.status == CaseStatus.RELEASED.value

    @pytest.mark.asyncio
    async def test_no_hold_rejected(self, db):
        vehicle_case = await intake_case(db)
        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.lift_police_hold(db, vehicle_case.id, ACTOR)

    @pytest.mark.asyncio
    async def test_paid_hold_case_becomes_release_eligible(self, db):
        vehicle_case = await intake_case(db, police_hold=True, police_case_number="2026-CT-00123")
        _, _, paid = await fee_ledger_service.add_payment(db, vehicle_case.id, Decimal("200.00"), "CASH", ACTOR)
        assert paid.status == CaseStatus.HOLD.value

        lifted = await case_lifecycle_service.lift_police_hold(db, vehicle_case.id, ACTOR)

        assert lifted.status == CaseStatus.RELEASE_ELIGIBLE.value
        assert lifted.release_eligible_at is not None
        status_events = [e.changes["status"] for e in audit_trail(db, vehicle_case.id)
                         if e.changes and "status" in e.changes and e.event_type != "CREATE"]
        assert {"old": "HOLD", "new": "STORED"} in status_events
        assert {"old": "STORED", "new": "RELEASE_ELIGIBLE"} in status_events


class TestSearch:
    @pytest.mark.asyncio
    async def test_filters_and_balances(self, db):
        stored = await intake_case(db, make="Toyota", model="Camry", plate_number="TOY111")
        await case_lifecycle_service.create_case(db, case_create(make="Ford", plate_number="FRD222"), ACTOR)
        await fee_ledger_service.add_payment(db, stored.id, Decimal("50.00"), "CASH", ACTOR)

        rows, total, has_more = case_lifecycle_service.search_cases(db, query="camry")
        assert total == 1 and not has_more
        assert rows[0][0].id == stored.id
        assert rows[0][1] == Decimal("150.00")

        rows, total, _ = case_lifecycle_service.search_cases(db, status=CaseStatus.PENDING_INTAKE)
        assert total == 1
        assert rows[0][0].make == "Ford"
        assert rows[0][1] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_pagination_newest_first(self, db):
        created = [await case_lifecycle_service.create_case(db, case_create(), ACTOR) for _ in range(5)]
        numbers = [c.case_number for c in created]

        rows, total, has_more = case_lifecycle_service.search_cases(db, limit=2, offset=0)
        assert total == 5 and has_more
        assert [c.case_number for c, _ in rows] == numbers[::-1][:2]

        rows, _, has_more = case_lifecycle_service.search_cases(db, limit=2, offset=4)
        assert [c.case_number for c, _ in rows] == [numbers[0]]
        assert not has_more

    @pytest.mark.asyncio
    async def test_search_by_case_number(self, db):
        vehicle_case = await case_lifecycle_service.create_case(db, case_create(), ACTOR)
        rows, total, _ = case_lifecycle_service.search_cases(db, query=vehicle_case.case_number)
        assert total == 1

    @pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
    def test_bad_paging_rejected(self, db, limit, offset):
        with pytest.raises(ValidationError):
            case_lifecycle_service.search_cases(db, limit=limit, offset=offset)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_tow_in_to_release(self, db):
        vehicle_case = await intake_case(db, yard_location="A-1")
        assert vehicle_case.status == CaseStatus.STORED.value
        assert fee_ledger_service.get_balance(db, vehicle_case.id) == Decimal("200.00")

        _, balance, paid = await fee_ledger_service.add_payment(
            db, vehicle_case.id, Decimal("200.00"), "CASH", ACTOR)
        assert balance == Decimal("0.00")
        assert paid.status == CaseStatus.RELEASE_ELIGIBLE.value

        released, _ = await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)
        assert released.status == CaseStatus.RELEASED.value
        assert released.released_to == "John Doe"

        detail = case_lifecycle_service.get_case_detail(db, vehicle_case.id)
        assert detail["summary"].total_charges == Decimal("200.00")
        assert detail["summary"].total_payments == Decimal("200.00")
        assert len(detail["entries"]) == 3

    @pytest.mark.asyncio
    async def test_police_hold_case_cannot_leave(self, db):
        vehicle_case = await intake_case(db, police_hold=True, police_case_number="2026-CT-00123")
        assert vehicle_case.status == CaseStatus.HOLD.value

        with pytest.raises(InvalidStateError):
            await case_lifecycle_service.release_case(db, vehicle_case.id, "John Doe", ACTOR)
        db.rollback()
        db.refresh(vehicle_case)
        assert vehicle_case.status == CaseStatus.HOLD.value
