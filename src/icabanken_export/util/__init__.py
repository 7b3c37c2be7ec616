from .dates import month_range, parse_statement_date
from .money import parse_amount, has_direct_debit_marker

__all__ = ["month_range", "parse_statement_date", "parse_amount", "has_direct_debit_marker"]
