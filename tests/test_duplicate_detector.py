from compliance_service.app.crud.businesses.businesses_crud import add_business
from compliance_service.app.crud.imports.duplicate_detector import find_duplicate
from compliance_service.app.enum.import_enum import MatchType


def _seed(db, **data):
    business = add_business(db, data)
    db.commit()
    return business


def test_tax_id_match_wins(db):
    existing = _seed(db, business_name="Acme", owner_name="Ali", tax_id="T-100")

    match = find_duplicate(db, "Something Else", "Nobody", "T-100")

    assert match.business.id == existing.id
    assert match.match_type == MatchType.TAX_ID


def test_name_and_owner_match_is_trimmed_and_case_insensitive(db):
    existing = _seed(db, business_name="Acme Trading", owner_name="Ali Hassan")

    match = find_duplicate(db, "  acme TRADING ", "ALI HASSAN", None)

    assert match.business.id == existing.id
    assert match.match_type == MatchType.BOTH


def test_name_only_is_not_a_duplicate(db):
    _seed(db, business_name="Acme", owner_name="Ali")

    assert find_duplicate(db, "Acme", "Omar", None) is None
    assert find_duplicate(db, "Acme", None, None) is None
    assert find_duplicate(db, "Acme", "", "") is None


def test_unknown_tax_id_falls_through_to_name_and_owner(db):
    existing = _seed(db, business_name="Acme", owner_name="Ali", tax_id="T-1")

    match = find_duplicate(db, "Acme", "Ali", "T-999")

    assert match.business.id == existing.id
    assert match.match_type == MatchType.BOTH


def test_generated_tax_id_is_assigned(db):
    business = _seed(db, business_name="Acme", owner_name="Ali")

    assert business.tax_id.startswith("TAX-")
    assert business.registration_number.startswith("REG-")
    assert business.business_id.startswith("BIZ-")
