import csv
from datetime import date

import pytest

from battery.collectors.meter_csv import DATE_COLUMN, FLOW_COLUMN
from battery.models import DayRecord, WindowReading
from battery.slots import SLOT_KEYS, slot_label


def build_day(day: date, consumption: dict | None = None, generation: dict | None = None) -> DayRecord:
    consumption = consumption or {}
    generation = generation or {}
    return DayRecord(
        date=day,
        windows={
            key: WindowReading(
                consumption=consumption.get(key, 0.0),
                generation=generation.get(key, 0.0),
            )
            for key in SLOT_KEYS
        },
    )


@pytest.fixture
def make_day():
    """Factory for DayRecords given sparse {slot: kWh} dicts."""
    return build_day


@pytest.fixture
def write_meter_csv(tmp_path):
    """Write meter export rows of (DD/MM/YYYY, flow, {slot: value}) to a CSV file."""

    def _write(rows, name="meter.csv"):
        path = tmp_path / name
        fieldnames = [DATE_COLUMN, FLOW_COLUMN] + [slot_label(key) for key in SLOT_KEYS]
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for day, flow, values in rows:
                row = {DATE_COLUMN: day, FLOW_COLUMN: flow}
                for key in SLOT_KEYS:
                    row[slot_label(key)] = values.get(key, "0")
                writer.writerow(row)
        return path

    return _write
