"""
Value Transforms Module.

This module provides the normalizers behind the canonical field
transforms and the cross-validation comparisons:
    - Date formats (calendar day, ISO output)
    - Currency/amount values

Transforms never raise: an unparseable date is returned unchanged and an
unparseable amount becomes 0.
"""

import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from invoice_fusion.utils.helpers import safe_float
from invoice_fusion.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class DateNormalizer:
    """
    Normalizes date strings to a calendar day.

    Explicit formats are tried first (US month-first before day-first),
    then dateutil's parser. Missing components are filled from a fixed
    default so the result never depends on the current date.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("01/15/2024")
        '2024-01-15'
        >>> normalizer.normalize("January 15, 2024")
        '2024-01-15'
    """

    DEFAULT_INPUT_FORMATS = [
        "%m/%d/%Y",
        "%d/%m/%Y",
        "%Y-%m-%d",
        "%B %d, %Y",
        "%b %d, %Y",
        "%d %B %Y",
        "%d %b %Y",
        "%m-%d-%Y",
        "%d-%m-%Y",
        "%d.%m.%Y",
    ]
    DEFAULT_DATETIME = datetime(2000, 1, 1)

    def __init__(
        self,
        output_format: str = "%Y-%m-%d",
        input_formats: Optional[List[str]] = None
    ) -> None:
        self.output_format = output_format
        self.input_formats = input_formats or list(self.DEFAULT_INPUT_FORMATS)

    def normalize(self, date_str: Any) -> Optional[str]:
        """
        Normalize a date to the configured output format.

        Args:
            date_str: Date string (or date/datetime) in any recognized format.

        Returns:
            Normalized date string, or None if parsing fails.
        """
        parsed = self.to_date(date_str)
        if parsed is None:
            return None
        return parsed.strftime(self.output_format)

    def to_date(self, value: Any) -> Optional[date]:
        """
        Parse a value down to calendar-day granularity.

        Args:
            value: String, date or datetime.

        Returns:
            date instance, or None if the value is not a recognizable date.
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if value is None or isinstance(value, bool):
            return None

        date_str = self._clean_date_string(str(value))
        if not date_str:
            return None

        parsed = self._try_explicit_formats(date_str)
        if parsed is None:
            parsed = self._try_dateutil_parser(date_str)

        if parsed is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None
        return parsed.date()

    def _clean_date_string(self, date_str: str) -> str:
        """Collapse whitespace and strip ordinal suffixes (1st, 2nd, ...)."""
        date_str = ' '.join(date_str.split())
        date_str = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)
        return date_str.strip()

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[datetime]:
        # Numbers alone are amounts or identifiers, not dates
        if not re.search(r'[/\-.\s:a-zA-Z]', date_str):
            return None
        try:
            return date_parser.parse(date_str, default=self.DEFAULT_DATETIME)
        except (ValueError, OverflowError):
            return None


class AmountNormalizer:
    """
    Normalizes currency/amount strings to numbers.

    Handles currency symbols and codes, thousand separators and
    European decimal commas.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("$1,234.56")
        '1234.56'
        >>> normalizer.to_float("€ 1.234,56")
        1234.56
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₿', '฿', '₫', '₴', '₦']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'CNY', 'RUB', 'CHF', 'NZD']

    def normalize(self, amount_str: Any) -> Optional[str]:
        """
        Normalize an amount to a two-decimal string.

        Args:
            amount_str: Input amount (e.g., "$1,234.56").

        Returns:
            Normalized amount string (e.g., "1234.56") or None.
        """
        value = self.to_float(amount_str)
        if value is None:
            return None
        return f"{value:.2f}"

    def to_float(self, amount_str: Any) -> Optional[float]:
        """
        Convert an amount to float.

        Args:
            amount_str: Amount string or number.

        Returns:
            Float value or None if the input is not an amount.
        """
        if isinstance(amount_str, bool) or amount_str is None:
            return None
        if isinstance(amount_str, (int, float)):
            return safe_float(amount_str, None)

        cleaned = self._clean_amount_string(str(amount_str))
        if not cleaned:
            return None

        cleaned = self._handle_european_format(cleaned)
        cleaned = cleaned.replace(',', '')

        try:
            return float(cleaned)
        except ValueError:
            logger.debug(f"Could not parse amount: {amount_str}")
            return None

    def _clean_amount_string(self, amount_str: str) -> str:
        """Remove currency markers and keep only digits, separators and minus."""
        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        amount_str = re.sub(r'[^\d,.\-]', '', amount_str)

        return amount_str.strip()

    def _handle_european_format(self, amount_str: str) -> str:
        """
        Convert European format (comma decimal) to US format (dot decimal).

        A single comma after the last dot, followed by at most two digits,
        is treated as the decimal separator.
        """
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '')
                    amount_str = amount_str.replace(',', '.')

        return amount_str


_date_normalizer = DateNormalizer()
_amount_normalizer = AmountNormalizer()


def parse_date(value: Any) -> Any:
    """
    Date field transform: ISO calendar day, or the input unchanged.

    Example:
        >>> parse_date("01/15/2024")
        '2024-01-15'
        >>> parse_date("upon receipt")
        'upon receipt'
    """
    normalized = _date_normalizer.normalize(value)
    return normalized if normalized is not None else value


def parse_amount(value: Any) -> float:
    """
    Amount field transform: float value, or 0 when unparseable.

    Example:
        >>> parse_amount("$1,234.56")
        1234.56
        >>> parse_amount("n/a")
        0.0
    """
    parsed = _amount_normalizer.to_float(value)
    return parsed if parsed is not None else 0.0


def to_calendar_day(value: Any) -> Optional[date]:
    """Parse a value to a date, or None."""
    return _date_normalizer.to_date(value)


def to_amount(value: Any) -> Optional[float]:
    """Parse a value to a float amount, or None."""
    return _amount_normalizer.to_float(value)


TRANSFORMS: Dict[str, Callable[[Any], Any]] = {
    'date': parse_date,
    'amount': parse_amount,
}
