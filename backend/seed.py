from sqlmodel import Session, select

from constants import PRINTER_ISOLATION
from db import engine
from models import WorkSlip
from normalize import make_id, normalize_entry, now_iso


def sample_slips():
    """A handful of slips covering each area, a printer job and a multi-row report."""
    raw = [
        {
            "soNumber": "25-000001",
            "date": "2025-01-14",
            "areaInHouse": True,
            "offices": ["CICTMO", "CBO"],
            "timeStarted": "08:30",
            "timeEnded": "09:15",
            "technicalReports": [
                {"request": "Password recovery", "actionDone": "Reset Windows password", "recommendation": "Enable password hint"},
            ],
            "requesterSignature": "M. Santos",
            "technicianName": "Joyce Israel",
            "approvedBy": "CICTMO Head",
        },
        {
            "soNumber": "25-000002",
            "date": "2025-04-15",
            "areaOnSite": True,
            "offices": ["CEO – Motorpool"],
            "timeStarted": "13:00",
            "timeEnded": "15:30",
            "technicalReports": [
                {"request": "Hardware installation and checking", "actionDone": "Replaced PSU", "recommendation": "Use AVR"},
                {"request": "Network isolation installation and checking", "actionDone": "Re-crimped cable", "recommendation": ""},
            ],
            "technicianName": "Nick Palaca",
        },
        {
            "soNumber": "25-000003",
            "date": "2025-08-04",
            "areaInteragency": True,
            "offices": ["PNP", "Apokon"],
            "timeStarted": "10:00",
            "timeEnded": "11:00",
            "technicalReports": [
                {"request": PRINTER_ISOLATION, "actionDone": "Reset ink counter", "recommendation": "Replace waste pad"},
            ],
            "printerBrand": "Epson",
            "printerModel": "L3110",
            "technicianName": "Adrian Monton",
        },
        {
            # Legacy shape: single office, no technicalReports, no quarter
            "soNumber": "24-000118",
            "date": "2024-11-20",
            "areaInHouse": True,
            "office": "CTO",
            "timeStarted": "14:00",
            "timeEnded": "14:20",
            "actionDone": "Activation of operating system and MS office",
            "recommendation": "Renew license yearly",
            "technicianName": "Vence Jabilles",
        },
    ]
    return [normalize_entry({**r, "id": make_id("slip"), "createdAt": now_iso()}) for r in raw]


def seed_database():
    """Seed the database with sample data."""
    with Session(engine) as session:
        # Check if data already exists
        existing = session.exec(select(WorkSlip)).first()
        if existing:
            print("Database already has data, skipping seed.")
            return

        slips = sample_slips()
        session.add_all([WorkSlip.from_entry(s) for s in slips])
        session.commit()
        print(f"Seeded database with {len(slips)} sample work slips.")


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database()
