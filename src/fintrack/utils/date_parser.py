"""Date parsing utilities.

Bank exports disagree on date layout, so parsing is driven by an ordered
format table. A format only matches when rendering the parsed date back
through the same format reproduces the input, which stops ``13/25/2024`` or
an ambiguous permutation from being coerced into a plausible wrong date.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from dateutil import parser as date_parser

from fintrack.domain.errors import UnparseableDateError

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b\d{4}\b")


@dataclass(frozen=True)
class DateFormat:
    """One entry of the format table.

    Attributes:
        name: Human readable token form, usable as a schema hint
        pattern: ``strptime`` pattern
        padded: False when day and month may appear without a leading zero
    """

    name: str
    pattern: str
    padded: bool = True

    @property
    def is_textual(self) -> bool:
        return "%B" in self.pattern or "%b" in self.pattern

    def render(self, value: datetime) -> str:
        if self.padded:
            return value.strftime(self.pattern)
        pattern = self.pattern.replace("%d", str(value.day)).replace("%m", str(value.month))
        return value.strftime(pattern)

    def matches(self, value: datetime, original: str) -> bool:
        """Check that ``value`` rendered through this format reproduces ``original``."""
        if self.is_textual:
            return _collapse(self.render(value)).lower() == _collapse(original).lower()
        if self.padded:
            return value.strftime(self.pattern) == original
        return original in (self.render(value), value.strftime(self.pattern))


# Ordered most specific first; day-first before month-first.
DATE_FORMATS: tuple[DateFormat, ...] = (
    DateFormat("YYYY-MM-DD", "%Y-%m-%d"),
    DateFormat("DD/MM/YYYY", "%d/%m/%Y"),
    DateFormat("MM/DD/YYYY", "%m/%d/%Y"),
    DateFormat("DD-MM-YYYY", "%d-%m-%Y"),
    DateFormat("MM-DD-YYYY", "%m-%d-%Y"),
    DateFormat("YYYY/MM/DD", "%Y/%m/%d"),
    DateFormat("DD.MM.YYYY", "%d.%m.%Y"),
    DateFormat("D/M/YYYY", "%d/%m/%Y", padded=False),
    DateFormat("D-M-YYYY", "%d-%m-%Y", padded=False),
    DateFormat("D.M.YYYY", "%d.%m.%Y", padded=False),
    DateFormat("DD/MM/YY", "%d/%m/%y"),
    DateFormat("MM/DD/YY", "%m/%d/%y"),
    DateFormat("DD-MM-YY", "%d-%m-%y"),
    DateFormat("MM-DD-YY", "%m-%d-%y"),
    DateFormat("YYYY-MM-DD HH:MM:SS", "%Y-%m-%d %H:%M:%S"),
    DateFormat("DD/MM/YYYY HH:MM:SS", "%d/%m/%Y %H:%M:%S"),
    DateFormat("MM/DD/YYYY HH:MM:SS", "%m/%d/%Y %H:%M:%S"),
    DateFormat("D MMMM YYYY", "%d %B %Y", padded=False),
    DateFormat("DD MMMM YYYY", "%d %B %Y"),
    DateFormat("D MMM YYYY", "%d %b %Y", padded=False),
    DateFormat("DD MMM YYYY", "%d %b %Y"),
    DateFormat("MMMM D, YYYY", "%B %d, %Y", padded=False),
    DateFormat("MMMM DD, YYYY", "%B %d, %Y"),
    DateFormat("MMM D, YYYY", "%b %d, %Y", padded=False),
    DateFormat("MMM DD, YYYY", "%b %d, %Y"),
    DateFormat("D MMMM, YYYY", "%d %B, %Y", padded=False),
    DateFormat("DD MMMM, YYYY", "%d %B, %Y"),
    DateFormat("D MMM, YYYY", "%d %b, %Y", padded=False),
    DateFormat("DD MMM, YYYY", "%d %b, %Y"),
)


def _collapse(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip())


def normalize_date_string(date_str: str) -> str:
    """Collapse whitespace and drop ordinal suffixes ("11th" -> "11")."""
    return _ORDINAL_RE.sub(r"\1", _collapse(date_str))


class DateParser:
    """Parse bank statement dates into ``date`` objects.

    Args:
        formats: Ordered format table; defaults to ``DATE_FORMATS``
    """

    def __init__(self, formats: Sequence[DateFormat] = DATE_FORMATS):
        self.formats = tuple(formats)

    def supported_formats(self) -> list[str]:
        return [fmt.name for fmt in self.formats]

    def resolve_format(self, hint: str) -> DateFormat:
        """Look up a hint by table name or pattern, else treat it as a raw pattern."""
        for fmt in self.formats:
            if hint == fmt.name:
                return fmt
        for fmt in self.formats:
            if hint == fmt.pattern and fmt.padded:
                return fmt
        return DateFormat(hint, hint)

    def parse(self, date_str: str, hint_format: Optional[str] = None) -> date:
        """Parse a date string.

        Args:
            date_str: Raw date text from the CSV cell
            hint_format: Optional format name or ``strptime`` pattern to try first

        Returns:
            Parsed date

        Raises:
            UnparseableDateError: If no format matches and lenient parsing fails
        """
        if date_str is None or not date_str.strip():
            raise UnparseableDateError(date_str or "")

        normalized = normalize_date_string(date_str)

        if hint_format:
            parsed = self._try_format(self.resolve_format(hint_format), normalized)
            if parsed is not None:
                return parsed

        for fmt in self.formats:
            parsed = self._try_format(fmt, normalized)
            if parsed is not None:
                return parsed

        # Lenient parsing only when a year is clearly present
        if _YEAR_RE.search(normalized):
            try:
                parsed_dt = date_parser.parse(normalized)
            except (ValueError, OverflowError) as e:
                logger.debug("Lenient parse of %r failed: %s", normalized, e)
            else:
                logger.debug("Parsed %r with lenient fallback", normalized)
                return parsed_dt.date()

        raise UnparseableDateError(date_str)

    def parse_iso(self, date_str: str, hint_format: Optional[str] = None) -> str:
        """Parse a date string and return it as ``YYYY-MM-DD``."""
        return self.parse(date_str, hint_format).isoformat()

    def is_valid(self, date_str: str, hint_format: Optional[str] = None) -> bool:
        """Check whether a date string parses.

        With a hint, only that format is considered.
        """
        if hint_format:
            if not date_str or not date_str.strip():
                return False
            return self._try_format(self.resolve_format(hint_format), normalize_date_string(date_str)) is not None
        try:
            self.parse(date_str)
        except UnparseableDateError:
            return False
        return True

    def detect_format(self, samples: Iterable[str]) -> Optional[str]:
        """Return the format name matching the most samples.

        Each sample votes for the first format it matches. Ties go to the
        format listed first in the table.
        """
        counts: Counter[str] = Counter()
        for sample in samples:
            if sample is None or not sample.strip():
                continue
            normalized = normalize_date_string(sample)
            for fmt in self.formats:
                if self._try_format(fmt, normalized) is not None:
                    counts[fmt.name] += 1
                    break

        if not counts:
            return None

        best = max(counts.values())
        for fmt in self.formats:
            if counts.get(fmt.name) == best:
                return fmt.name
        return None

    @staticmethod
    def _try_format(fmt: DateFormat, value: str) -> Optional[date]:
        try:
            parsed = datetime.strptime(value, fmt.pattern)
        except ValueError:
            return None
        if not fmt.matches(parsed, value):
            return None
        return parsed.date()


_default_parser = DateParser()


def parse_date(date_str: str, hint_format: Optional[str] = None) -> date:
    """Parse a date string with the default format table.

    Raises:
        UnparseableDateError: If the date cannot be parsed
    """
    return _default_parser.parse(date_str, hint_format)


def detect_date_format(samples: Iterable[str]) -> Optional[str]:
    """Detect the dominant date format among samples with the default table."""
    return _default_parser.detect_format(samples)
