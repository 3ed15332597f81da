"""Data models for meter readings, simulated days and cost aggregates."""

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

GENERATION = "Generation"
CONSUMPTION = "Consumption"
FLOW_TYPES = (GENERATION, CONSUMPTION)


@dataclass(frozen=True)
class WindowReading:
    """Raw energy for one half-hour slot."""

    consumption: float = 0.0  # kWh
    generation: float = 0.0  # kWh


@dataclass(frozen=True)
class SimulatedWindow:
    """A half-hour slot after the battery has been applied."""

    consumption: float  # kWh drawn from the grid
    generation: float  # kWh exported to the grid
    battery_charge: float  # kWh held at the end of the slot
    at_max_charge: bool


@dataclass(frozen=True)
class MeterRow:
    """One row of a meter export: a single flow for a single day."""

    date: date
    flow: str  # 'Generation' or 'Consumption'
    values: Mapping[int, float]  # slot key -> kWh


@dataclass(frozen=True)
class DayRecord:
    """Merged consumption and generation for one calendar date."""

    date: date
    windows: Mapping[int, WindowReading]

    @property
    def total_consumption(self) -> float:
        return sum(w.consumption for w in self.windows.values())

    @property
    def total_generation(self) -> float:
        return sum(w.generation for w in self.windows.values())


@dataclass(frozen=True)
class SimulatedDay:
    """One calendar date after battery simulation."""

    date: date
    windows: Mapping[int, SimulatedWindow]

    @property
    def reached_full_charge(self) -> bool:
        return any(w.at_max_charge for w in self.windows.values())


@dataclass(frozen=True)
class TariffRate:
    """A rate period within a time-of-use plan."""

    start_time: str  # HH:MM format
    end_time: str  # HH:MM format
    rate_cents_per_kwh: float


@dataclass(frozen=True)
class TariffConfig:
    """An electricity plan: a price per half-hour slot and a flat feed-in rate."""

    name: str
    feed_in_tariff: float  # cents/kWh
    price_per_slot: Mapping[int, float]  # slot key -> cents/kWh


@dataclass
class AggregateBucket:
    """Summed energy and cost for a month ('YYYY-MM') or year ('YYYY')."""

    key: str
    consumed_energy: float = 0.0  # kWh
    consumption_cost: float = 0.0  # cents
    generated_energy: float = 0.0  # kWh
    generation_earnings: float = 0.0  # cents
    total_battery_output: float = 0.0  # kWh pushed into the battery
    days_reached_full_charge: int = 0


@dataclass
class AggregateResults:
    """Monthly and yearly buckets for one simulated scenario."""

    per_month: dict[str, AggregateBucket] = field(default_factory=dict)
    per_year: dict[str, AggregateBucket] = field(default_factory=dict)
