"""
CSV statement parser.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Tuple

from dateutil import parser as date_parser

from ledgerline.parsers.base import BaseParser, ParseError
from ledgerline.schemas.import_file import ColumnMapping, ParsedCSV


# First header containing any of these (lower-cased) wins the field
MAPPING_PATTERNS: Dict[str, List[str]] = {
    "posted_date": ["date", "posted", "transaction date", "post date", "trans date"],
    "description": ["description", "merchant", "payee", "memo", "details"],
    "amount": ["amount", "debit", "credit", "value", "transaction amount"],
    "type": ["type", "transaction type", "debit/credit"],
    "category": ["category", "categories"],
    "transaction_id": ["id", "transaction id", "reference", "ref"],
    "account_name": ["account", "account name", "card"],
}

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_US_LONG_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_US_SHORT_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})(?!\d)")
_US_DASH_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})")
_AMOUNT_STRIP_RE = re.compile(r"[^0-9.\-]")

# Missing day or month parts resolve to the first, never to today
_FALLBACK_DEFAULT = datetime(2000, 1, 1)


class CSVParser(BaseParser):
    """Parser for CSV bank/card exports"""

    def can_parse(self, filename: str) -> bool:
        return filename.lower().endswith('.csv')

    def parse(self, text: str) -> ParsedCSV:
        """Parse CSV text into header-keyed rows"""
        lines = [line for line in text.lstrip('\ufeff').splitlines() if line.strip()]
        if not lines:
            raise ParseError('CSV file is empty')

        headers = self._parse_line(lines[0])
        rows = []

        for line in lines[1:]:
            values = self._parse_line(line)
            if len(values) != len(headers):
                continue
            rows.append(dict(zip(headers, values)))

        return ParsedCSV(headers=headers, rows=rows, total_rows=len(rows))

    def get_preview(
        self,
        text: str,
        rows: int = 5
    ) -> Tuple[List[str], List[List[str]]]:
        """Return headers and preview rows"""
        parsed = self.parse(text)
        preview_rows = [
            [row[header] for header in parsed.headers]
            for row in parsed.rows[:rows]
        ]
        return parsed.headers, preview_rows

    def _parse_line(self, line: str) -> List[str]:
        """Split one CSV line, honouring quotes and doubled quotes"""
        fields = []
        current = []
        in_quotes = False
        i = 0

        while i < len(line):
            char = line[i]
            if char == '"':
                if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = not in_quotes
            elif char == ',' and not in_quotes:
                fields.append(''.join(current).strip())
                current = []
            else:
                current.append(char)
            i += 1

        fields.append(''.join(current).strip())
        return fields


def detect_column_mapping(headers: List[str]) -> ColumnMapping:
    """Guess which header holds each logical field"""
    mapping: Dict[str, str] = {}

    for header in headers:
        lowered = header.lower()
        for field, patterns in MAPPING_PATTERNS.items():
            if field not in mapping and any(p in lowered for p in patterns):
                mapping[field] = header

    return ColumnMapping(**mapping)


def _build_date(year: int, month: int, day: int, original: str) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise ParseError(f"Invalid date format: {original}")


def parse_date(date_str: str) -> date:
    """
    Parse a statement date.

    Tries ISO, MM/DD/YYYY, MM/DD/YY and MM-DD-YYYY before falling back to
    a generic parse. Two-digit years below 50 are 20YY, otherwise 19YY.
    """
    cleaned = date_str.strip()

    match = _ISO_RE.match(cleaned)
    if match:
        return _build_date(int(match.group(1)), int(match.group(2)), int(match.group(3)), date_str)

    match = _US_LONG_RE.match(cleaned)
    if match:
        return _build_date(int(match.group(3)), int(match.group(1)), int(match.group(2)), date_str)

    match = _US_SHORT_RE.match(cleaned)
    if match:
        short_year = int(match.group(3))
        year = 2000 + short_year if short_year < 50 else 1900 + short_year
        return _build_date(year, int(match.group(1)), int(match.group(2)), date_str)

    match = _US_DASH_RE.match(cleaned)
    if match:
        return _build_date(int(match.group(3)), int(match.group(1)), int(match.group(2)), date_str)

    try:
        return date_parser.parse(cleaned, default=_FALLBACK_DEFAULT).date()
    except (ValueError, OverflowError):
        raise ParseError(f"Invalid date format: {date_str}")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount, ignoring currency symbols and thousands separators"""
    cleaned = _AMOUNT_STRIP_RE.sub('', amount_str)
    # Trailing minus, as in "15.99-"
    if cleaned.endswith('-') and not cleaned.startswith('-'):
        cleaned = '-' + cleaned[:-1]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ParseError(f"Invalid amount: {amount_str}")

    if not amount.is_finite():
        raise ParseError(f"Invalid amount: {amount_str}")
    return amount
