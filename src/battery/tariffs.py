"""Tariff plan loading and per-slot price tables."""

import logging
import math
from datetime import time
from pathlib import Path

import yaml

from .errors import ConfigurationError
from .models import TariffConfig, TariffRate
from .slots import SLOT_KEYS, slot_time

logger = logging.getLogger(__name__)


def parse_time(time_str: str) -> time:
    """Parse HH:MM string to time object."""
    try:
        parts = time_str.split(":")
        return time(int(parts[0]), int(parts[1]))
    except (AttributeError, IndexError, ValueError):
        raise ConfigurationError(f"Invalid time {time_str!r}, expected HH:MM") from None


def time_in_range(check_time: time, start: time, end: time) -> bool:
    """Check if a time falls within a range (handles overnight ranges)."""
    if start <= end:
        return start <= check_time < end
    else:
        # Overnight range (e.g., 22:00 to 07:00)
        return check_time >= start or check_time < end


def constant_price_per_slot(price: float) -> dict[int, float]:
    """The same price in every slot."""
    return {key: price for key in SLOT_KEYS}


def price_per_slot_from_rates(
    rates: list[TariffRate], default_rate: float | None = None
) -> dict[int, float]:
    """Build a slot price table from time-of-use periods.

    The first period containing a slot's start time wins. Slots outside
    every period take default_rate; without one, a gap is an error.
    """
    periods = [(parse_time(r.start_time), parse_time(r.end_time), r) for r in rates]

    prices = {}
    for key in SLOT_KEYS:
        start_of_slot = slot_time(key)
        for start, end, rate in periods:
            if time_in_range(start_of_slot, start, end):
                prices[key] = rate.rate_cents_per_kwh
                break
        else:
            if default_rate is None:
                raise ConfigurationError(
                    f"No rate covers {start_of_slot.strftime('%H:%M')} and no default rate set"
                )
            prices[key] = default_rate
    return prices


def _is_price(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def validate_tariff(tariff: TariffConfig) -> None:
    """Check that a tariff prices every slot before it is used."""
    if not _is_price(tariff.feed_in_tariff):
        raise ConfigurationError(
            f"Feed-in tariff for {tariff.name} must be a number, got {tariff.feed_in_tariff!r}"
        )
    missing = [key for key in SLOT_KEYS if key not in tariff.price_per_slot]
    if missing:
        raise ConfigurationError(
            f"Tariff {tariff.name} has no price for {len(missing)} slot(s), first missing: {missing[0]}"
        )
    for key in SLOT_KEYS:
        if not _is_price(tariff.price_per_slot[key]):
            raise ConfigurationError(
                f"Tariff {tariff.name} has invalid price {tariff.price_per_slot[key]!r} for slot {key}"
            )


def read_yaml_config(config_path: Path) -> dict:
    """Read a YAML config file whose top level must be a mapping."""
    with open(config_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {config_path}: {e}") from None

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping, got {type(data).__name__}")
    return data


def config_entries(data: dict, section: str) -> list[dict]:
    """The list of mappings under a config section, e.g. `plans:`."""
    entries = data.get(section) or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ConfigurationError(f"'{section}' must be a list of mappings")
    return entries


def tariff_from_dict(data: dict) -> TariffConfig:
    """Build a TariffConfig from one `plans:` entry of the scenario YAML."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Tariff plan must be a mapping, got {data!r}")
    try:
        name = data["name"]
        feed_in = data["feed_in"]
        rates = [
            TariffRate(
                start_time=r["start"],
                end_time=r["end"],
                rate_cents_per_kwh=r["rate"],
            )
            for r in config_entries(data, "rates")
        ]
    except KeyError as e:
        raise ConfigurationError(f"Tariff plan is missing {e.args[0]!r}") from None

    tariff = TariffConfig(
        name=name,
        feed_in_tariff=feed_in,
        price_per_slot=price_per_slot_from_rates(rates, data.get("default_rate")),
    )
    validate_tariff(tariff)
    return tariff


def load_tariffs_from_yaml(config_path: Path) -> list[TariffConfig]:
    """Load tariff plans from a YAML config file."""
    data = read_yaml_config(config_path)
    tariffs = [tariff_from_dict(t) for t in config_entries(data, "plans")]
    logger.debug("Loaded %d tariff plan(s) from %s", len(tariffs), config_path)
    return tariffs
