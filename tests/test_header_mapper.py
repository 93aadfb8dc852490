import pytest
from pydantic import ValidationError

from compliance_service.app.crud.imports.header_mapper import HeaderIndex, detect_mapping, normalize_header
from compliance_service.app.schemas.imports.imports_schemas import ColumnMapping


def test_normalize_header_collapses_case_and_whitespace():
    assert normalize_header("  Business   Name ") == "business name"
    assert normalize_header(None) == ""


def test_detect_mapping_english_headers_keep_original_text():
    mapping = detect_mapping([" Business Name ", "Owner", "TIN", "Fine", "Phone Number", "Case", "Case Date"])

    assert mapping.business_name == "Business Name"
    assert mapping.owner_name == "Owner"
    assert mapping.tax_id == "TIN"
    assert mapping.fined_amount == "Fine"
    assert mapping.contact_phone == "Phone Number"
    assert mapping.case_field == "Case"
    assert mapping.case_date == "Case Date"
    assert mapping.address is None
    assert mapping.contact_email is None


def test_detect_mapping_somali_headers():
    mapping = detect_mapping([
        "Magaca Ganacsiga", "Magaca  Shaqsiga", "Xiiska", "Account-ka",
        "Degmada", "Waaxda", "Kiiska", "Date this case was registered",
    ])

    assert mapping.business_name == "Magaca Ganacsiga"
    assert mapping.owner_name == "Magaca  Shaqsiga"
    assert mapping.tax_id == "Xiiska"
    assert mapping.fined_amount == "Account-ka"
    assert mapping.district == "Degmada"
    assert mapping.department == "Waaxda"
    assert mapping.case_field == "Kiiska"
    assert mapping.case_date == "Date this case was registered"


def test_last_matching_header_wins():
    mapping = detect_mapping(["Business", "Business Name", "Unrelated"])
    assert mapping.business_name == "Business Name"
    assert mapping.model_dump(exclude_none=True) == {"business_name": "Business Name"}


def test_column_mapping_is_closed():
    with pytest.raises(ValidationError):
        ColumnMapping(business_name="Shop", shoe_size="42")


def test_header_index_resolves_mapped_headers():
    headers = ["Shop", " Boss ", "Fine"]
    index = HeaderIndex(headers)
    mapping = ColumnMapping(business_name="Shop", owner_name="Boss")

    row = ["Acme", "Ali"]
    assert index.field(row, mapping, "business_name") == "Acme"
    assert index.field(row, mapping, "owner_name") == "Ali"
    # mapped but past the end of a short row
    assert index.cell(row, "Fine") is None
    # unmapped field
    assert index.field(row, mapping, "tax_id") is None
    assert index.as_dict(row) == {"Shop": "Acme", "Boss": "Ali", "Fine": ""}
