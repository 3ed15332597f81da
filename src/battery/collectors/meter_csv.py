"""Smart-meter interval data importer.

Imports the retailer's daily CSV export, one row per day and flow:
DATE, CON/GEN, 00:00 - 00:30, 00:30 - 01:00, ..., 23:30 - 00:00
DATE is DD/MM/YYYY and CON/GEN is either 'Generation' or 'Consumption'.
"""

import csv
import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

from ..analysis.merge import merge_rows
from ..errors import MeterDataError
from ..models import FLOW_TYPES, DayRecord, MeterRow
from ..slots import SLOT_KEYS, slot_label

logger = logging.getLogger(__name__)

DATE_COLUMN = "DATE"
FLOW_COLUMN = "CON/GEN"
DATE_FORMAT = "%d/%m/%Y"


def parse_date(value: str, line_number: int, date_format: str = DATE_FORMAT) -> date:
    """Parse the DATE column."""
    try:
        return datetime.strptime(value.strip(), date_format).date()
    except (AttributeError, ValueError):
        raise MeterDataError(f"Line {line_number}: invalid date {value!r}") from None


def parse_value(value: str, line_number: int, day: date, label: str) -> float:
    """Parse one slot reading in kWh. Blank or non-numeric values are errors."""
    try:
        kwh = float(value)
    except (TypeError, ValueError):
        raise MeterDataError(
            f"Line {line_number} ({day.isoformat()}): invalid value {value!r} for slot {label}"
        ) from None
    if not math.isfinite(kwh) or kwh < 0:
        raise MeterDataError(
            f"Line {line_number} ({day.isoformat()}): invalid value {value!r} for slot {label}"
        )
    return kwh


def parse_row(raw: dict, line_number: int, date_format: str = DATE_FORMAT) -> MeterRow:
    """Convert one csv.DictReader row into a MeterRow."""
    if DATE_COLUMN not in raw or FLOW_COLUMN not in raw:
        raise MeterDataError(f"Line {line_number}: missing {DATE_COLUMN} or {FLOW_COLUMN} column")

    day = parse_date(raw[DATE_COLUMN], line_number, date_format)

    flow = (raw[FLOW_COLUMN] or "").strip()
    if flow not in FLOW_TYPES:
        raise MeterDataError(
            f"Line {line_number} ({day.isoformat()}): unknown flow type {raw[FLOW_COLUMN]!r}"
        )

    values = {}
    for key in SLOT_KEYS:
        label = slot_label(key)
        if label not in raw:
            raise MeterDataError(f"Line {line_number} ({day.isoformat()}): missing column {label!r}")
        values[key] = parse_value(raw[label], line_number, day, label)

    return MeterRow(date=day, flow=flow, values=values)


def parse_rows(rows: Iterable[dict], date_format: str = DATE_FORMAT) -> list[MeterRow]:
    """Parse DictReader rows. Line numbers count the header as line 1."""
    return [parse_row(raw, line_number, date_format) for line_number, raw in enumerate(rows, start=2)]


def parse_csv(csv_path: Path, date_format: str = DATE_FORMAT) -> list[MeterRow]:
    """Parse a meter CSV export file."""
    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        rows = parse_rows(reader, date_format)
    logger.info("Parsed %d rows from %s", len(rows), csv_path)
    return rows


def load_days(csv_path: Path, date_format: str = DATE_FORMAT) -> list[DayRecord]:
    """Parse a meter CSV and merge it into one DayRecord per date, oldest first."""
    return merge_rows(parse_csv(csv_path, date_format))
