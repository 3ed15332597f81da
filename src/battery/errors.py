"""Exceptions raised by the battery simulator."""


class BatterySimError(Exception):
    """Base exception for battery simulation errors."""
    pass


class MeterDataError(BatterySimError, ValueError):
    """A meter row could not be parsed (bad date, flow tag or slot value)."""
    pass


class ConfigurationError(BatterySimError, ValueError):
    """Invalid scenario configuration: capacity, tariff or comparison."""
    pass


class SimulationError(BatterySimError):
    """Day records were not supplied in strictly ascending date order."""
    pass
