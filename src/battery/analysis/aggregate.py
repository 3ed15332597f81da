"""Fold simulated days into monthly and yearly cost/energy buckets."""

import logging
from typing import Iterable

from ..models import AggregateBucket, AggregateResults, SimulatedDay, TariffConfig
from ..slots import SLOT_KEYS
from ..tariffs import validate_tariff

logger = logging.getLogger(__name__)


def month_key(day: SimulatedDay) -> str:
    return day.date.strftime("%Y-%m")


def year_key(day: SimulatedDay) -> str:
    return day.date.strftime("%Y")


def _bucket(buckets: dict[str, AggregateBucket], key: str) -> AggregateBucket:
    if key not in buckets:
        buckets[key] = AggregateBucket(key=key)
    return buckets[key]


def aggregate(days: Iterable[SimulatedDay], tariff: TariffConfig) -> AggregateResults:
    """Sum cost, earnings, energy and battery usage per month and per year.

    Battery output counts every increase in charge between consecutive
    slots. The previous charge is tracked across the whole series (starting
    from an empty battery), so a day's first slot is compared against the
    prior day's last slot even when they fall in different buckets.
    """
    validate_tariff(tariff)

    results = AggregateResults()
    previous_charge = 0.0

    for day in sorted(days, key=lambda d: d.date):
        consumed = cost = generated = earnings = battery_output = 0.0

        for key in SLOT_KEYS:
            window = day.windows[key]
            consumed += window.consumption
            generated += window.generation
            cost += window.consumption * tariff.price_per_slot[key]
            earnings += window.generation * tariff.feed_in_tariff

            delta = window.battery_charge - previous_charge
            if delta > 0:
                battery_output += delta
            previous_charge = window.battery_charge

        for bucket in (
            _bucket(results.per_month, month_key(day)),
            _bucket(results.per_year, year_key(day)),
        ):
            bucket.consumed_energy += consumed
            bucket.consumption_cost += cost
            bucket.generated_energy += generated
            bucket.generation_earnings += earnings
            bucket.total_battery_output += battery_output
            if day.reached_full_charge:
                bucket.days_reached_full_charge += 1

    logger.debug(
        "Aggregated %d months / %d years under %s",
        len(results.per_month),
        len(results.per_year),
        tariff.name,
    )
    return results
