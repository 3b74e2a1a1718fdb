"""
Load sample reference data: requesting agencies.
Idempotent: agencies are matched on ORIS code.
Usage: python scripts/setup/seed_data.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import SessionLocal, create_tables
from app.models.agency import Agency
from app.models.enums import AgencyType

SAMPLE_AGENCIES = [
    {"name": "Clinton Township Police Department", "oris_code": "MI0500100",
     "agency_type": AgencyType.POLICE, "contact_email": "records@clintontwp-pd.example",
     "contact_phone": "586-555-0100"},
    {"name": "Macomb County Sheriff's Office", "oris_code": "MI5000000",
     "agency_type": AgencyType.SHERIFF, "contact_email": "dispatch@macombsheriff.example",
     "contact_phone": "586-555-0150"},
    {"name": "Michigan State Police Metro North", "oris_code": "MIMSP2100",
     "agency_type": AgencyType.STATE_POLICE, "contact_email": "metronorth@msp.example",
     "contact_phone": "248-555-0175"},
    {"name": "Lakeside Mall Security", "oris_code": None,
     "agency_type": AgencyType.PRIVATE, "contact_email": "security@lakeside.example",
     "contact_phone": None},
]


def seed():
    create_tables()
    db = SessionLocal()
    try:
        created = 0
        for data in SAMPLE_AGENCIES:
            q = db.query(Agency)
            existing = (q.filter(Agency.oris_code == data["oris_code"]).first() if data["oris_code"]
                        else q.filter(Agency.name == data["name"]).first())
            if existing:
                continue
            db.add(Agency(**{**data, "agency_type": data["agency_type"].value}, active=True))
            created += 1
        db.commit()
        print(f"Agencies: {created} created, {len(SAMPLE_AGENCIES) - created} already present")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
