from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ...models.system.sequence_counters import SequenceCounter

BUSINESS_ID_PREFIX = "BIZ"
TAX_ID_PREFIX = "TAX"
REGISTRATION_PREFIX = "REG"
CASE_NUMBER_PREFIX = "CASE"

_UPSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def next_sequence_value(db: Session, name: str, on_date: Optional[date] = None) -> int:
    """
    Increment and return the counter for (name, on_date).

    The increment is a single INSERT ... ON CONFLICT DO UPDATE, so concurrent
    writers never observe the same value. The counter row is part of the caller's
    transaction and is rolled back with it.
    """
    on_date = on_date or date.today()
    dialect = db.get_bind().dialect.name
    build_insert = _UPSERT_BUILDERS.get(dialect)
    if build_insert is None:
        raise NotImplementedError(f"Sequence upsert not supported on {dialect}")

    stmt = build_insert(SequenceCounter).values(
        name=name, sequence_date=on_date, value=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[SequenceCounter.name, SequenceCounter.sequence_date],
        set_={"value": SequenceCounter.value + 1},
    )
    db.execute(stmt)

    return db.execute(
        select(SequenceCounter.value).where(
            SequenceCounter.name == name,
            SequenceCounter.sequence_date == on_date,
        )
    ).scalar_one()


def format_sequence(prefix: str, on_date: date, value: int) -> str:
    return f"{prefix}-{on_date.strftime('%Y%m%d')}-{value:04d}"


def _generate(db: Session, prefix: str, on_date: Optional[date]) -> str:
    on_date = on_date or date.today()
    return format_sequence(prefix, on_date, next_sequence_value(db, prefix, on_date))


def generate_business_id(db: Session, on_date: Optional[date] = None) -> str:
    return _generate(db, BUSINESS_ID_PREFIX, on_date)


def generate_tax_id(db: Session, on_date: Optional[date] = None) -> str:
    return _generate(db, TAX_ID_PREFIX, on_date)


def generate_registration_number(db: Session, on_date: Optional[date] = None) -> str:
    return _generate(db, REGISTRATION_PREFIX, on_date)


def generate_case_number(db: Session, on_date: Optional[date] = None) -> str:
    return _generate(db, CASE_NUMBER_PREFIX, on_date)
