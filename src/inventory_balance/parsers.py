"""
Reusable parsers for the identifiers and dates found in inventory exports.

These parsers handle the messy reality of spreadsheet data:
- Multiple date formats from different ERP/POS exports
- Product and location codes typed with stray spaces, case and hyphens
"""

from datetime import date, datetime
import numpy as np
import pandas as pd

MISSING_KEY = "N/A"


def normalize_key(value) -> str:
    """
    Canonical form of a product or location identifier used for joining.

    Uppercases, strips every hyphen and then trims. Missing or blank values
    map to "N/A". Applying it twice gives the same result as once.
    """
    if value is None:
        return MISSING_KEY
    try:
        if pd.isna(value):
            return MISSING_KEY
    except (TypeError, ValueError):
        # pd.isna on list-like values returns an array
        pass

    result = str(value).upper().replace("-", "").strip()
    return result or MISSING_KEY


class KeyNormalizer:
    """
    Builds identity keys from normalized product codes and locations.

    When `ignore_location` is set every location collapses into one key per
    product, so multi-location datasets can be compared as a single store.
    """

    def __init__(self, ignore_location: bool = False):
        self.ignore_location = ignore_location

    def normalize(self, value) -> str:
        return normalize_key(value)

    def key(self, product_code: str, location: str) -> str:
        if self.ignore_location:
            return product_code
        return f"{product_code}-{location}"

    def normalize_series(self, series: pd.Series) -> pd.Series:
        """Normalize an entire pandas Series of codes."""
        return series.apply(normalize_key)


class DateParser:
    """
    Robust date parser that handles multiple formats commonly found in exports.

    Native datetime values (from Excel readers) pass through. Text is tried
    against DATE_FORMATS first and then against pandas' own inference.
    Anything else yields None, the invalid-date marker.
    """

    # Ordered by specificity; ambiguous slash dates read month-first
    DATE_FORMATS = [
        "%Y-%m-%d",      # ISO: 2024-07-25
        "%Y-%m-%d %H:%M:%S",
        "%m/%d/%Y",      # US: 05/27/2024
        "%d/%m/%Y",      # 25/08/2024
        "%d-%m-%Y",      # 25-08-2024
        "%d/%m/%y",      # 25/08/24
        "%Y/%m/%d",      # 2024/07/25
    ]

    def __init__(self, custom_formats: list[str] | None = None, dayfirst: bool = False):
        """
        Args:
            custom_formats: Additional date formats to try (prepended to defaults)
            dayfirst: Read ambiguous slash dates like 05/06/2024 as 5 June
        """
        formats = list(self.DATE_FORMATS)
        if dayfirst:
            formats.remove("%m/%d/%Y")
            formats.insert(formats.index("%d/%m/%y") + 1, "%m/%d/%Y")
        self.dayfirst = dayfirst
        self.formats = (custom_formats or []) + formats
        self._cache: dict[str, datetime | None] = {}

    def parse(self, value) -> datetime | None:
        """Parse a single raw value into a naive datetime."""
        if value is None or value is pd.NaT or isinstance(value, bool):
            return None

        if isinstance(value, pd.Timestamp):
            return naive_datetime(value.to_pydatetime())
        if isinstance(value, datetime):
            return naive_datetime(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            return None

        text = str(value).strip()
        if not text:
            return None

        if text in self._cache:
            return self._cache[text]

        result = None
        for fmt in self.formats:
            try:
                result = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

        if result is None:
            parsed = pd.to_datetime(text, errors="coerce", dayfirst=self.dayfirst)
            if not pd.isna(parsed):
                result = naive_datetime(parsed.to_pydatetime())

        self._cache[text] = result
        return result

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of dates."""
        return series.apply(self.parse)


def naive_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def to_number(value) -> float:
    """Coerce a raw cell to float; missing, non-numeric or infinite becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
    try:
        number = pd.to_numeric(value, errors="coerce")
        if pd.isna(number) or not np.isfinite(number):
            return 0.0
        return float(number)
    except (TypeError, ValueError):
        return 0.0
