import re
from typing import Any, Dict, List, Optional, Sequence

from ...schemas.imports.imports_schemas import ColumnMapping

# Canonical field -> accepted header spellings (English and Somali)
HEADER_VARIATIONS: Dict[str, List[str]] = {
    "owner_name": [
        "magaca shaqsiga", "magaca shaqoiga",
        "name of incharge", "name of owner", "the name of the incharge or the owner",
        "owner name", "owner", "incharge", "name of the owner", "name of the incharge",
    ],
    "business_name": [
        "magaca ganacsiga", "business name", "ganacsiga", "business", "company name", "company",
    ],
    "tax_id": [
        "xiiska", "tax id", "tax_id", "tax number", "tin",
    ],
    "fined_amount": [
        "account", "account ka", "accoun-ka", "account-ka", "fine", "fined amount", "fined_amount",
        "amount", "penalty",
    ],
    "contact_phone": [
        "number", "their number", "phone", "contact number", "contact_phone", "telephone", "mobile",
        "phone number",
    ],
    "district": ["district", "degmada", "area", "region"],
    "department": ["department", "waaxda", "dept", "section"],
    "title": ["title", "position", "role"],
    "case_field": [
        "case", "case type", "case_type", "case description", "violation", "offense", "kiiska",
    ],
    "case_date": [
        "date this case was registered", "case date", "registration date", "date registered",
        "date", "registered date", "case registration date",
    ],
    "address": ["address", "location", "place"],
    "contact_email": ["email", "contact email", "contact_email", "e-mail"],
}

_WHITESPACE = re.compile(r"\s+")


def normalize_header(header: Any) -> str:
    return _WHITESPACE.sub(" ", str(header if header is not None else "").strip().lower())


_NORMALIZED_VARIATIONS = {
    field: {normalize_header(v) for v in variations}
    for field, variations in HEADER_VARIATIONS.items()
}


def detect_mapping(headers: Sequence[Any]) -> ColumnMapping:
    """
    Map spreadsheet headers onto canonical fields.

    Each header claims the first field whose synonym list contains it. When
    several headers match one field, the right-most header wins.
    """
    mapping: Dict[str, str] = {}
    for header in headers:
        original = str(header if header is not None else "").strip()
        normalized = normalize_header(header)
        if not normalized:
            continue
        for field, variations in _NORMALIZED_VARIATIONS.items():
            if normalized in variations:
                mapping[field] = original
                break
    return ColumnMapping(**mapping)


class HeaderIndex:
    """Resolves mapped header names to column positions in a data row."""

    def __init__(self, headers: Sequence[Any]):
        self.headers = [str(h if h is not None else "").strip() for h in headers]
        self._positions: Dict[str, int] = {}
        for idx, header in enumerate(self.headers):
            self._positions.setdefault(header, idx)

    def position(self, header: Optional[str]) -> Optional[int]:
        if not header:
            return None
        return self._positions.get(header.strip())

    def cell(self, row: Sequence[Any], header: Optional[str]) -> Any:
        idx = self.position(header)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    def field(self, row: Sequence[Any], mapping: ColumnMapping, field: str) -> Any:
        return self.cell(row, getattr(mapping, field))

    def as_dict(self, row: Sequence[Any]) -> Dict[str, Any]:
        return {
            header: (row[idx] if idx < len(row) else "")
            for idx, header in enumerate(self.headers)
        }
