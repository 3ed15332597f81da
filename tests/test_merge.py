import itertools
import math
from datetime import date

import pytest

from battery.analysis.merge import merge_day_records, merge_rows, reading_from_row
from battery.errors import MeterDataError
from battery.models import CONSUMPTION, GENERATION, MeterRow
from battery.slots import SLOT_KEYS, slot_key


def meter_row(day, flow, sparse):
    return MeterRow(date=day, flow=flow, values={key: sparse.get(key, 0.0) for key in SLOT_KEYS})


def test_reading_from_row_uses_flow_channel():
    row = meter_row(date(2021, 3, 1), GENERATION, {slot_key(12, 0): 1.5})
    record = reading_from_row(row)

    assert record.windows[slot_key(12, 0)].generation == 1.5
    assert record.windows[slot_key(12, 0)].consumption == 0.0
    assert record.total_generation == 1.5
    assert record.total_consumption == 0.0


def test_merge_generation_and_consumption_rows():
    """Separate flow rows for one date become one record with both channels."""
    day = date(2021, 3, 1)
    rows = [
        meter_row(day, CONSUMPTION, {0: 0.4, 30: 0.6}),
        meter_row(day, GENERATION, {slot_key(12, 0): 2.0}),
    ]

    merged = merge_rows(rows)

    assert len(merged) == 1
    assert merged[0].date == day
    assert merged[0].windows[0].consumption == 0.4
    assert merged[0].windows[30].consumption == 0.6
    assert merged[0].windows[slot_key(12, 0)].generation == 2.0
    assert merged[0].total_consumption == pytest.approx(1.0)


def test_duplicate_rows_are_summed():
    day = date(2021, 3, 1)
    rows = [meter_row(day, CONSUMPTION, {0: 0.5}), meter_row(day, CONSUMPTION, {0: 0.25})]

    merged = merge_rows(rows)

    assert len(merged) == 1
    assert merged[0].windows[0].consumption == 0.75


def test_merge_is_order_independent():
    """Any permutation of the input rows gives identical per-date totals."""
    rows = [
        meter_row(date(2021, 3, 2), CONSUMPTION, {0: 0.1, 60: 0.7}),
        meter_row(date(2021, 3, 1), GENERATION, {600: 0.3}),
        meter_row(date(2021, 3, 1), CONSUMPTION, {0: 0.2}),
        meter_row(date(2021, 3, 1), CONSUMPTION, {0: 0.1, 600: 0.3}),
        meter_row(date(2021, 3, 2), GENERATION, {600: 1.1}),
    ]

    expected = merge_rows(rows)
    for permutation in itertools.permutations(rows):
        assert merge_rows(permutation) == expected


def test_merge_returns_one_record_per_date_sorted():
    rows = [
        meter_row(date(2021, 3, 3), CONSUMPTION, {}),
        meter_row(date(2021, 3, 1), CONSUMPTION, {}),
        meter_row(date(2021, 3, 3), GENERATION, {}),
        meter_row(date(2021, 3, 2), GENERATION, {}),
    ]

    merged = merge_rows(rows)

    assert [r.date for r in merged] == [date(2021, 3, 1), date(2021, 3, 2), date(2021, 3, 3)]


def test_merge_does_not_alias_inputs(make_day):
    record = make_day(date(2021, 3, 1), consumption={0: 1.0})

    merged = merge_day_records([record])

    assert merged[0] == record
    assert merged[0] is not record
    assert merged[0].windows is not record.windows


def test_merging_merged_records_is_stable(make_day):
    records = merge_day_records([
        make_day(date(2021, 3, 1), consumption={0: 1.0}),
        make_day(date(2021, 3, 1), generation={0: 2.0}),
    ])

    assert merge_day_records(records) == records


def test_unknown_flow_rejected():
    with pytest.raises(MeterDataError, match="Unknown flow type"):
        reading_from_row(meter_row(date(2021, 3, 1), "Export", {}))


def test_missing_slot_rejected():
    row = MeterRow(date=date(2021, 3, 1), flow=CONSUMPTION, values={0: 1.0})
    with pytest.raises(MeterDataError, match="Missing slot 30"):
        reading_from_row(row)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -0.1, "0.5", None])
def test_invalid_values_rejected(bad):
    row = meter_row(date(2021, 3, 1), CONSUMPTION, {slot_key(8, 0): bad})
    with pytest.raises(MeterDataError, match="slot 480"):
        reading_from_row(row)
