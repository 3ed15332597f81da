"""Greedy battery simulation over merged meter days.

Algorithm, per half-hour slot:
1. Consumption is served from the battery before falling back to the grid.
2. Generation charges the battery until full; the rest is exported.
The order of these two steps is a policy (see ChargeOrder) and changes the
numbers materially. The charge left after the 23:30 slot carries into
00:00 of the next day with no reset.
"""

import logging
import math
from enum import Enum
from typing import Iterable

from ..errors import ConfigurationError, SimulationError
from ..models import DayRecord, SimulatedDay, SimulatedWindow
from ..slots import LAST_SLOT, SLOT_KEYS

logger = logging.getLogger(__name__)

# kWh - float rounding means charge may never exactly equal capacity
FULL_CHARGE_EPSILON = 0.005


class ChargeOrder(str, Enum):
    """Which side of a slot touches the battery first."""

    CONSUMPTION_FIRST = "consumption-first"
    GENERATION_FIRST = "generation-first"


def discharge_for_consumption(charge: float, consumption: float) -> tuple[float, float]:
    """Draw consumption from the battery.

    Returns (new charge, consumption still to be bought from the grid).
    """
    drawn = min(charge, consumption)
    return charge - drawn, consumption - drawn


def charge_from_generation(
    charge: float, capacity: float, generation: float
) -> tuple[float, float]:
    """Push generation into the battery.

    Returns (new charge, generation still exported to the grid).
    """
    absorbed = max(0.0, min(capacity - charge, generation))
    # charge + (capacity - charge) can round one ulp above capacity
    return min(capacity, charge + absorbed), generation - absorbed


def is_at_max_charge(charge: float, capacity: float, epsilon: float = FULL_CHARGE_EPSILON) -> bool:
    """True when charge is within epsilon of a non-zero capacity."""
    return capacity > 0 and charge >= capacity - epsilon


def validate_capacity(capacity: float) -> None:
    """Reject capacities that cannot be simulated."""
    if isinstance(capacity, bool) or not isinstance(capacity, (int, float)):
        raise ConfigurationError(f"Battery capacity must be a number, got {capacity!r}")
    if not math.isfinite(capacity) or capacity < 0:
        raise ConfigurationError(f"Battery capacity must be >= 0 kWh, got {capacity}")


def validate_initial_charge(charge: float, capacity: float) -> None:
    """Reject a starting charge outside [0, capacity]."""
    if isinstance(charge, bool) or not isinstance(charge, (int, float)):
        raise ConfigurationError(f"Initial charge must be a number, got {charge!r}")
    if not math.isfinite(charge) or not 0 <= charge <= capacity:
        raise ConfigurationError(
            f"Initial charge must be between 0 and {capacity} kWh, got {charge}"
        )


def simulate_day(
    day: DayRecord,
    initial_charge: float,
    capacity: float,
    order: ChargeOrder = ChargeOrder.CONSUMPTION_FIRST,
    epsilon: float = FULL_CHARGE_EPSILON,
) -> tuple[SimulatedDay, float]:
    """Simulate one day starting from initial_charge.

    Returns the simulated day and the charge after the last slot, which is
    the starting charge for the following day.
    """
    validate_capacity(capacity)
    validate_initial_charge(initial_charge, capacity)
    order = ChargeOrder(order)
    charge = initial_charge
    windows = {}

    for key in SLOT_KEYS:
        reading = day.windows[key]

        if order is ChargeOrder.CONSUMPTION_FIRST:
            charge, consumption = discharge_for_consumption(charge, reading.consumption)
            charge, generation = charge_from_generation(charge, capacity, reading.generation)
        else:
            charge, generation = charge_from_generation(charge, capacity, reading.generation)
            charge, consumption = discharge_for_consumption(charge, reading.consumption)

        windows[key] = SimulatedWindow(
            consumption=consumption,
            generation=generation,
            battery_charge=charge,
            at_max_charge=is_at_max_charge(charge, capacity, epsilon),
        )

    return SimulatedDay(date=day.date, windows=windows), windows[LAST_SLOT].battery_charge


def simulate_battery(
    days: Iterable[DayRecord],
    capacity: float,
    order: ChargeOrder = ChargeOrder.CONSUMPTION_FIRST,
    epsilon: float = FULL_CHARGE_EPSILON,
) -> list[SimulatedDay]:
    """Simulate a battery of the given capacity (kWh) across consecutive days.

    Days must be in strictly ascending date order because each day starts
    with the charge the previous day ended on. The battery starts empty.
    """
    validate_capacity(capacity)
    order = ChargeOrder(order)

    simulated = []
    charge = 0.0
    previous = None
    for day in days:
        if previous is not None and day.date <= previous:
            raise SimulationError(
                f"Days must be in ascending date order: {day.date.isoformat()} "
                f"follows {previous.isoformat()}"
            )
        result, charge = simulate_day(day, charge, capacity, order, epsilon)
        simulated.append(result)
        previous = day.date

    logger.debug(
        "Simulated %d days with %.2f kWh battery (%s), final charge %.3f kWh",
        len(simulated),
        capacity,
        order.value,
        charge,
    )
    return simulated
