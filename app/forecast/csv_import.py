"""
P&L CSV import.

Parses profit-and-loss exports from accounting packages (Xero, MYOB,
QuickBooks style layouts) into accounts with monthly values keyed by
"YYYY-MM".
"""
import csv
import io
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from app.models.forecast import PLCategory


class CSVParseError(ValueError):
    """Raised when a CSV cannot be read as a P&L export."""


@dataclass
class ParsedAccount:
    name: str
    category: str
    months: Dict[str, float] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return sum(self.months.values())


@dataclass
class ParsedPL:
    months: List[str]
    accounts: List[ParsedAccount]


# =============================================================================
# Header parsing
# =============================================================================

MONTH_NAMES = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

ISO_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
SLASH_MONTH_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
NAMED_MONTH_RE = re.compile(r"^(?:\d{1,2}\s+)?([a-z]{3,9})[\s\-']*(\d{4}|\d{2})$")

ACCOUNT_HEADERS = {"account", "account name", "description", "name", "category"}


def parse_month_header(header: str) -> Optional[str]:
    """
    Map a column header to a "YYYY-MM" key.

    Accepts "Jul 2024", "Jul-24", "31 Jul 24", "2024-07" and "07/2024".
    Total and YTD columns return None.
    """
    text = (header or "").strip().lower()
    if not text or "total" in text or "ytd" in text:
        return None

    year = month = None
    match = ISO_MONTH_RE.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
    else:
        match = SLASH_MONTH_RE.match(text)
        if match:
            month, year = int(match.group(1)), int(match.group(2))
        else:
            match = NAMED_MONTH_RE.match(text)
            if match and match.group(1) in MONTH_NAMES:
                month = MONTH_NAMES[match.group(1)]
                year = int(match.group(2))
                if year < 100:
                    year += 2000

    if year is None or not 1 <= month <= 12:
        return None
    return f"{year}-{month:02d}"


# =============================================================================
# Values and categories
# =============================================================================

CURRENCY_RE = re.compile(r"[$€£¥,\s]")


def parse_amount(value: Optional[str]) -> float:
    """
    Parse an exported amount.

    Currency symbols and thousands separators are stripped, parentheses
    mean negative, and blanks, dashes or unreadable values are 0.
    """
    text = CURRENCY_RE.sub("", value or "")
    if text in ("", "-", "--"):
        return 0.0

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]

    try:
        amount = float(text)
    except ValueError:
        return 0.0
    return -amount if negative else amount


SECTION_HEADINGS = {
    "income": PLCategory.REVENUE.value,
    "revenue": PLCategory.REVENUE.value,
    "trading income": PLCategory.REVENUE.value,
    "sales": PLCategory.REVENUE.value,
    "cost of sales": PLCategory.COST_OF_SALES.value,
    "cost of goods sold": PLCategory.COST_OF_SALES.value,
    "direct costs": PLCategory.COST_OF_SALES.value,
    "operating expenses": PLCategory.OPERATING_EXPENSES.value,
    "expenses": PLCategory.OPERATING_EXPENSES.value,
    "overheads": PLCategory.OPERATING_EXPENSES.value,
    "other income": PLCategory.OTHER_INCOME.value,
    "other expenses": PLCategory.OTHER_EXPENSES.value,
}

SKIP_PREFIXES = ("total", "gross profit", "net profit", "net income", "operating profit")

CATEGORY_PATTERNS: List[Tuple[str, List[re.Pattern]]] = [
    (PLCategory.OTHER_INCOME.value, [
        re.compile(r"^other.*income"),
        re.compile(r"^interest.*(income|received)"),
    ]),
    (PLCategory.COST_OF_SALES.value, [
        re.compile(r"^cost.*sales"),
        re.compile(r"^cost.*goods"),
        re.compile(r"^cogs"),
        re.compile(r"^direct.*cost"),
        re.compile(r"^materials"),
        re.compile(r"^purchases"),
        re.compile(r"^subcontract"),
        re.compile(r"^freight.*in"),
    ]),
    (PLCategory.REVENUE.value, [
        re.compile(r"^revenue"),
        re.compile(r"^income"),
        re.compile(r"^sales"),
        re.compile(r"^service.*income"),
        re.compile(r"^consulting.*income"),
        re.compile(r"^fee.*income"),
    ]),
]


def _heading_key(name: str) -> str:
    key = name.strip().lower().rstrip(":").strip()
    if key.startswith("less "):
        key = key[5:]
    return key


def categorize_account(name: str) -> str:
    """Infer a P&L category from an account name, defaulting to Operating Expenses."""
    lower = name.strip().lower()
    for category, patterns in CATEGORY_PATTERNS:
        if any(pattern.search(lower) for pattern in patterns):
            return category
    return PLCategory.OPERATING_EXPENSES.value


# =============================================================================
# Parsing
# =============================================================================

def decode_csv_bytes(content: bytes) -> str:
    """Decode an uploaded file, tolerating a UTF-8 BOM and Latin-1 exports."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _find_header(rows: List[List[str]]) -> Tuple[int, Dict[int, str]]:
    for index, row in enumerate(rows):
        month_columns = {}
        for col, header in enumerate(row):
            key = parse_month_header(header)
            if key:
                month_columns[col] = key
        if month_columns:
            return index, month_columns
    raise CSVParseError("No month columns found. Expected headers like 'Jul 2024' or '2024-07'.")


def _account_column(header: List[str]) -> int:
    for col, value in enumerate(header):
        if value.strip().lower() in ACCOUNT_HEADERS:
            return col
    # First column often has no header
    return 0


def parse_pl_csv(text: str) -> ParsedPL:
    """
    Parse a P&L export.

    Raises:
        CSVParseError: empty file, no month columns, or no accounts
    """
    rows = [row for row in csv.reader(io.StringIO(text))]
    if not any(any(cell.strip() for cell in row) for row in rows):
        raise CSVParseError("The CSV file is empty")

    header_index, month_columns = _find_header(rows)
    account_col = _account_column(rows[header_index])
    months = sorted(set(month_columns.values()))

    accounts: Dict[str, ParsedAccount] = {}
    section: Optional[str] = None

    for row in rows[header_index + 1:]:
        if account_col >= len(row):
            continue
        name = row[account_col].strip()
        if not name:
            continue

        heading = SECTION_HEADINGS.get(_heading_key(name))
        has_values = any(
            col < len(row) and row[col].strip() for col in month_columns
        )
        if heading and not has_values:
            section = heading
            continue

        lower = name.lower()
        if lower.startswith(SKIP_PREFIXES):
            continue
        if not has_values:
            continue

        account = accounts.get(name)
        if account is None:
            account = ParsedAccount(name=name, category=section or categorize_account(name))
            accounts[name] = account

        for col, key in month_columns.items():
            if col < len(row):
                account.months[key] = account.months.get(key, 0.0) + parse_amount(row[col])

    if not accounts:
        raise CSVParseError("No accounts found in the CSV file")

    return ParsedPL(months=months, accounts=list(accounts.values()))
