# Impound Lot Operations: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.agency import Agency                              # noqa
from app.models.vehicle_case import VehicleCase                   # noqa
from app.models.fee_ledger_entry import FeeLedgerEntry            # noqa
from app.models.case_number_sequence import CaseNumberSequence    # noqa
from app.models.audit_event import AuditEvent                     # noqa
from app.models.fee_schedule import FeeScheduleConfig             # noqa
