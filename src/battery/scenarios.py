"""Scenario configuration: which plans and battery sizes to compare.

Reads config/scenarios.yaml (see get_config_path for the search order).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .analysis.aggregate import aggregate
from .analysis.simulation import ChargeOrder, simulate_battery, validate_capacity
from .errors import ConfigurationError
from .models import AggregateResults, DayRecord, TariffConfig
from .tariffs import config_entries, read_yaml_config, tariff_from_dict, validate_tariff

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BATTERY_SIM_CONFIG"

# One Tesla Powerwall
POWERWALL_KWH = 13.5


@dataclass(frozen=True)
class BatteryScenario:
    """A named battery size."""

    name: str
    capacity_kwh: float


@dataclass(frozen=True)
class Comparison:
    """Savings of candidate over baseline, each a 'plan / battery' reference."""

    title: str
    baseline: str
    candidate: str


@dataclass
class ScenarioConfig:
    plans: list[TariffConfig] = field(default_factory=list)
    batteries: list[BatteryScenario] = field(default_factory=list)
    comparisons: list[Comparison] = field(default_factory=list)
    charge_order: ChargeOrder = ChargeOrder.CONSUMPTION_FIRST

    def plan(self, name: str) -> TariffConfig:
        for plan in self.plans:
            if plan.name == name:
                return plan
        raise ConfigurationError(f"Unknown tariff plan: {name}")

    def battery(self, name: str) -> BatteryScenario:
        for battery in self.batteries:
            if battery.name == name:
                return battery
        raise ConfigurationError(f"Unknown battery: {name}")


DEFAULT_BATTERIES = [
    BatteryScenario("No Battery", 0.0),
    BatteryScenario("One Battery", POWERWALL_KWH),
    BatteryScenario("Two Batteries", POWERWALL_KWH * 2),
]


def scenario_name(plan: str, battery: str) -> str:
    return f"{plan} / {battery}"


def split_scenario_name(name: str) -> tuple[str, str]:
    """Split 'Plan / Battery' into its two references."""
    if not isinstance(name, str):
        raise ConfigurationError(f"Expected 'plan / battery', got {name!r}")
    plan, sep, battery = name.partition(" / ")
    if not sep or not plan or not battery:
        raise ConfigurationError(f"Expected 'plan / battery', got {name!r}")
    return plan, battery


def get_config_path(config_path: Path | None = None) -> Path:
    """Find the scenarios.yaml config file."""
    if config_path is not None:
        return config_path
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])

    candidates = [
        Path.cwd() / "config" / "scenarios.yaml",
        Path(__file__).parent.parent.parent / "config" / "scenarios.yaml",
        Path.home() / ".config" / "home-battery" / "scenarios.yaml",
    ]
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError("Could not find config/scenarios.yaml")


def check_unique_names(kind: str, names: list[str]) -> None:
    """Scenario results are keyed by name, so names must not repeat."""
    seen = set()
    for name in names:
        if name in seen:
            raise ConfigurationError(f"Duplicate {kind} name: {name}")
        seen.add(name)


def parse_scenarios(data: dict) -> ScenarioConfig:
    """Build and validate a ScenarioConfig from parsed YAML."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Scenario config must be a mapping, got {type(data).__name__}")

    try:
        order = ChargeOrder(data.get("charge_order", ChargeOrder.CONSUMPTION_FIRST.value))
    except ValueError:
        raise ConfigurationError(f"Unknown charge_order: {data.get('charge_order')!r}") from None

    try:
        batteries = [
            BatteryScenario(name=b["name"], capacity_kwh=b["capacity_kwh"])
            for b in config_entries(data, "batteries")
        ] or list(DEFAULT_BATTERIES)
        comparisons = [
            Comparison(title=c["title"], baseline=c["baseline"], candidate=c["candidate"])
            for c in config_entries(data, "comparisons")
        ]
    except KeyError as e:
        raise ConfigurationError(f"Scenario config entry is missing {e.args[0]!r}") from None

    config = ScenarioConfig(
        plans=[tariff_from_dict(p) for p in config_entries(data, "plans")],
        batteries=batteries,
        comparisons=comparisons,
        charge_order=order,
    )

    check_unique_names("plan", [p.name for p in config.plans])
    check_unique_names("battery", [b.name for b in config.batteries])
    for battery in config.batteries:
        validate_capacity(battery.capacity_kwh)
    for comparison in config.comparisons:
        for name in (comparison.baseline, comparison.candidate):
            plan, battery = split_scenario_name(name)
            config.plan(plan)
            config.battery(battery)

    return config


def load_scenarios(config_path: Path | None = None) -> ScenarioConfig:
    """Load scenario configuration from YAML."""
    path = get_config_path(config_path)
    config = parse_scenarios(read_yaml_config(path))
    logger.info(
        "Loaded %d plan(s), %d battery size(s) from %s",
        len(config.plans),
        len(config.batteries),
        path,
    )
    return config


def run_scenarios(
    days: list[DayRecord],
    plans: list[TariffConfig],
    batteries: list[BatteryScenario],
    order: ChargeOrder = ChargeOrder.CONSUMPTION_FIRST,
) -> dict[str, AggregateResults]:
    """Simulate every battery size once, then aggregate it under every plan.

    Returns results keyed by 'plan / battery'. Each run starts from an empty
    battery and its own buckets; nothing is shared between scenarios.
    """
    check_unique_names("plan", [p.name for p in plans])
    check_unique_names("battery", [b.name for b in batteries])
    for plan in plans:
        validate_tariff(plan)
    for battery in batteries:
        validate_capacity(battery.capacity_kwh)

    results = {}
    for battery in batteries:
        simulated = simulate_battery(days, battery.capacity_kwh, order)
        for plan in plans:
            results[scenario_name(plan.name, battery.name)] = aggregate(simulated, plan)
    return results
