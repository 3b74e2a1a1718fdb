"""
Closed enumerations shared by models, schemas and services.
Stored in the database as their string values.
"""

import enum


class CaseStatus(str, enum.Enum):
    PENDING_INTAKE = "PENDING_INTAKE"
    INTAKE_COMPLETE = "INTAKE_COMPLETE"
    STORED = "STORED"
    HOLD = "HOLD"
    RELEASE_ELIGIBLE = "RELEASE_ELIGIBLE"
    RELEASED = "RELEASED"
    AUCTION_ELIGIBLE = "AUCTION_ELIGIBLE"
    AUCTION_LISTED = "AUCTION_LISTED"
    SOLD = "SOLD"
    DISPOSED = "DISPOSED"


# No further charges or payments once a case reaches one of these
CLOSED_STATUSES = {CaseStatus.RELEASED, CaseStatus.SOLD, CaseStatus.DISPOSED}


class FeeType(str, enum.Enum):
    TOW = "TOW"
    ADMIN = "ADMIN"
    STORAGE_DAILY = "STORAGE_DAILY"
    GATE = "GATE"
    LIEN_PROCESSING = "LIEN_PROCESSING"
    TITLE_SEARCH = "TITLE_SEARCH"
    NOTICE = "NOTICE"
    DOLLY = "DOLLY"
    WINCH = "WINCH"
    MILEAGE = "MILEAGE"
    STORAGE_OVERRIDE = "STORAGE_OVERRIDE"
    ADJUSTMENT = "ADJUSTMENT"
    PAYMENT = "PAYMENT"


class TowReason(str, enum.Enum):
    ABANDONED = "ABANDONED"
    ACCIDENT = "ACCIDENT"
    ARREST = "ARREST"
    ILLEGALLY_PARKED = "ILLEGALLY_PARKED"
    EVIDENCE = "EVIDENCE"
    PRIVATE_PROPERTY = "PRIVATE_PROPERTY"
    REPOSSESSION = "REPOSSESSION"
    OTHER = "OTHER"


class VehicleType(str, enum.Enum):
    SEDAN = "SEDAN"
    SUV = "SUV"
    TRUCK = "TRUCK"
    VAN = "VAN"
    MOTORCYCLE = "MOTORCYCLE"
    TRAILER = "TRAILER"
    RV = "RV"
    COMMERCIAL = "COMMERCIAL"
    OTHER = "OTHER"


class VehicleClass(str, enum.Enum):
    STANDARD = "STANDARD"
    LARGE = "LARGE"
    MOTORCYCLE = "MOTORCYCLE"
    OVERSIZED = "OVERSIZED"
    TRAILER = "TRAILER"


class AgencyType(str, enum.Enum):
    POLICE = "POLICE"
    SHERIFF = "SHERIFF"
    STATE_POLICE = "STATE_POLICE"
    MUNICIPAL = "MUNICIPAL"
    PRIVATE = "PRIVATE"
    OTHER = "OTHER"


class AuditEventType(str, enum.Enum):
    CREATE = "CREATE"
    STATUS_CHANGE = "STATUS_CHANGE"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    CHARGE_ADDED = "CHARGE_ADDED"
    ENTRY_VOIDED = "ENTRY_VOIDED"
    RELEASE = "RELEASE"
    HOLD_LIFTED = "HOLD_LIFTED"
    FEE_SCHEDULE_UPDATED = "FEE_SCHEDULE_UPDATED"
