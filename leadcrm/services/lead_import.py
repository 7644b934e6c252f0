"""
Spreadsheet lead import - decoding, column mapping and deduplication.
"""
import csv
import io
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from leadcrm.core.exceptions import ParseError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Header spellings accepted for each lead field, checked in order
FIELD_HEADERS: Dict[str, List[str]] = {
    "full_name": ["name", "Name", "fullName"],
    "email": ["email", "Email"],
    "phone": ["phone", "Phone"],
    "company": ["company", "Company"],
    "platform": ["platform", "Platform"],
    "preferred_call_time": [
        "preferredTime",
        "PreferredTime",
        "Preferred Time",
        "Please choose prefered time to call you by our agent!",
        "Please choose preferred time to call you by our agent!",
    ],
    "start_timeline": [
        "startTimeline",
        "StartTimeline",
        "Start Timeline",
        "how soon you are looking to start",
        "How soon you are looking to start",
    ],
    "has_website": [
        "hasWebsite",
        "HasWebsite",
        "Has Website",
        "Do you have website?",
        "Do you have a website?",
    ],
    "business_details": [
        "businessDetails",
        "BusinessDetails",
        "Business Details",
        "please share your business details!",
        "Please share your business details!",
    ],
}

TRUE_WORDS = {"yes", "y", "true"}
FALSE_WORDS = {"no", "n", "false"}


# ======================================================
# DECODING
# ======================================================

def decode_upload(filename: str, content: bytes) -> List[Row]:
    """
    Turn an uploaded spreadsheet into header-keyed rows.

    .xlsx goes through openpyxl, .xls is not supported, anything else is
    read as CSV. Raises ParseError when the file cannot be decoded.
    """
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        return _decode_xlsx(content)
    if name.endswith(".xls"):
        raise ParseError("Legacy .xls files are not supported, save as .xlsx or .csv")
    return _decode_csv(content)


def _decode_csv(content: bytes) -> List[Row]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ParseError()

    try:
        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if header is None:
            return []
        columns = [h.strip() for h in header]

        rows = []
        for values in reader:
            if not any(v.strip() for v in values):
                continue
            if len(values) != len(columns):
                raise ParseError(
                    f"Failed to parse file (CSV/Excel): line {reader.line_num} has "
                    f"{len(values)} fields, expected {len(columns)}"
                )
            rows.append({col: v.strip() for col, v in zip(columns, values)})
        return rows
    except csv.Error as e:
        raise ParseError(f"Failed to parse file (CSV/Excel): {e}")


def _cell_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _decode_xlsx(content: bytes) -> List[Row]:
    # SyntaxError covers corrupt sheet XML from both ElementTree and lxml
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError, SyntaxError):
        raise ParseError()

    try:
        if not workbook.worksheets:
            return []
        values = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(values, None)
        if header is None:
            return []
        columns = [str(h).strip() if h is not None else "" for h in header]

        rows = []
        for cells in values:
            row = {
                col: _cell_text(cell)
                for col, cell in zip(columns, cells)
                if col
            }
            if any(v not in ("", None) for v in row.values()):
                rows.append(row)
        return rows
    except (BadZipFile, KeyError, ValueError, SyntaxError):
        raise ParseError()
    finally:
        workbook.close()


# ======================================================
# FIELD MAPPING
# ======================================================

def resolve_field(row: Row, candidates: Iterable[str]) -> Any:
    """First non-blank value found under any candidate header, else ''."""
    for header in candidates:
        value = row.get(header)
        if isinstance(value, bool):
            return value
        if value is not None and str(value) != "":
            return value
    return ""


def parse_has_website(raw: Any) -> Optional[bool]:
    """yes/y/true -> True, no/n/false -> False, anything else -> None."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
    return None


def normalize_email(raw: Any) -> str:
    return str(raw or "").strip().lower()


def normalize_row(row: Row) -> Optional[dict]:
    """Map one decoded row onto lead columns; None when it has no email."""
    email = normalize_email(resolve_field(row, FIELD_HEADERS["email"]))
    if not email:
        return None

    def text(field: str) -> str:
        return str(resolve_field(row, FIELD_HEADERS[field])).strip()

    return {
        "full_name": text("full_name"),
        "email": email,
        "phone": text("phone"),
        "company": text("company"),
        "platform": text("platform"),
        "preferred_call_time": text("preferred_call_time"),
        "start_timeline": text("start_timeline"),
        "has_website": parse_has_website(resolve_field(row, FIELD_HEADERS["has_website"])),
        "business_details": text("business_details"),
        "assigned_to": None,
    }


def select_new_leads(rows: Iterable[Row], known_emails: Iterable[str]) -> List[dict]:
    """
    Keep rows that describe new leads.

    A row is dropped when it has no email, or when its email (trimmed,
    case-insensitive) is already stored or was accepted earlier in the batch.
    """
    seen: Set[str] = {normalize_email(e) for e in known_emails}
    accepted = []
    skipped = 0

    for row in rows:
        lead = normalize_row(row)
        if lead is None or lead["email"] in seen:
            skipped += 1
            continue
        seen.add(lead["email"])
        accepted.append(lead)

    logger.info(f"Lead import: {len(accepted)} new, {skipped} skipped")
    return accepted
