from datetime import date

from compliance_service.app.crud.common.sequence_crud import (
    generate_business_id,
    generate_case_number,
    generate_registration_number,
    generate_tax_id,
)


def test_case_numbers_increase_within_a_day(db):
    day = date(2025, 1, 15)
    assert generate_case_number(db, day) == "CASE-20250115-0001"
    assert generate_case_number(db, day) == "CASE-20250115-0002"
    db.commit()
    assert generate_case_number(db, day) == "CASE-20250115-0003"


def test_sequences_restart_per_date(db):
    assert generate_case_number(db, date(2025, 1, 15)) == "CASE-20250115-0001"
    assert generate_case_number(db, date(2025, 1, 16)) == "CASE-20250116-0001"
    assert generate_case_number(db, date(2025, 1, 15)) == "CASE-20250115-0002"


def test_prefixes_have_independent_counters(db):
    day = date(2025, 2, 1)
    assert generate_business_id(db, day) == "BIZ-20250201-0001"
    assert generate_tax_id(db, day) == "TAX-20250201-0001"
    assert generate_registration_number(db, day) == "REG-20250201-0001"
    assert generate_business_id(db, day) == "BIZ-20250201-0002"


def test_rolled_back_numbers_are_reissued(db):
    day = date(2025, 3, 1)
    assert generate_case_number(db, day) == "CASE-20250301-0001"
    db.rollback()
    assert generate_case_number(db, day) == "CASE-20250301-0001"


def test_numbers_unique_across_sessions(session_factory):
    day = date(2025, 4, 1)
    seen = set()
    for _ in range(5):
        session = session_factory()
        try:
            seen.add(generate_case_number(session, day))
            session.commit()
        finally:
            session.close()
    assert len(seen) == 5
    assert "CASE-20250401-0005" in seen
