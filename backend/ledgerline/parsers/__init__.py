"""
Statement parsers package.
"""

from ledgerline.parsers.base import BaseParser, ParseError
from ledgerline.parsers.csv_parser import CSVParser, detect_column_mapping, parse_amount, parse_date

__all__ = ['BaseParser', 'ParseError', 'CSVParser', 'detect_column_mapping', 'parse_amount', 'parse_date']
