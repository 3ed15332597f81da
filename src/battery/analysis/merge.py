"""Merge per-flow meter rows into one record per calendar date.

Meter exports report generation and consumption as separate rows for the
same day. Merging sums every row for a date slot by slot, so the result
does not depend on row order.
"""

import logging
import math
from collections import defaultdict
from typing import Iterable

from ..errors import MeterDataError
from ..models import GENERATION, CONSUMPTION, DayRecord, MeterRow, WindowReading
from ..slots import SLOT_KEYS, empty_day

logger = logging.getLogger(__name__)


def _is_valid_kwh(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def reading_from_row(row: MeterRow) -> DayRecord:
    """Build a DayRecord holding a single row's values in its flow channel."""
    if row.flow not in (GENERATION, CONSUMPTION):
        raise MeterDataError(f"Unknown flow type {row.flow!r} for {row.date.isoformat()}")

    windows = empty_day()
    for key in SLOT_KEYS:
        try:
            value = row.values[key]
        except KeyError:
            raise MeterDataError(
                f"Missing slot {key} in {row.flow} row for {row.date.isoformat()}"
            ) from None
        if not _is_valid_kwh(value):
            raise MeterDataError(
                f"Invalid value {value!r} at slot {key} in {row.flow} row for {row.date.isoformat()}"
            )
        if row.flow == GENERATION:
            windows[key] = WindowReading(generation=value)
        else:
            windows[key] = WindowReading(consumption=value)

    return DayRecord(date=row.date, windows=windows)


def merge_day_records(records: Iterable[DayRecord]) -> list[DayRecord]:
    """Sum records sharing a date. Returns one record per date, oldest first."""
    by_date: dict = defaultdict(list)
    for record in records:
        by_date[record.date].append(record)

    merged = []
    for day in sorted(by_date):
        same_day = by_date[day]
        windows = {
            key: WindowReading(
                consumption=math.fsum(r.windows[key].consumption for r in same_day),
                generation=math.fsum(r.windows[key].generation for r in same_day),
            )
            for key in SLOT_KEYS
        }
        if len(same_day) > 2:
            logger.debug("Merged %d rows for %s", len(same_day), day.isoformat())
        merged.append(DayRecord(date=day, windows=windows))

    return merged


def merge_rows(rows: Iterable[MeterRow]) -> list[DayRecord]:
    """Merge raw meter rows into DayRecords, one per distinct date."""
    records = [reading_from_row(row) for row in rows]
    merged = merge_day_records(records)
    logger.info("Merged %d meter rows into %d days", len(records), len(merged))
    return merged
