import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from battery.cli import cli
from battery.slots import slot_key

CONFIG_PATH = Path(__file__).parent.parent / "config" / "scenarios.yaml"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def meter_file(write_meter_csv):
    return write_meter_csv([
        ("30/06/2021", "Consumption", {slot_key(19, 0): "3.0"}),
        ("30/06/2021", "Generation", {slot_key(12, 0): "5.0"}),
        ("01/07/2021", "Consumption", {slot_key(19, 0): "3.0"}),
        ("01/07/2021", "Generation", {slot_key(12, 0): "5.0"}),
    ])


def test_plans(runner):
    result = runner.invoke(cli, ["--config", str(CONFIG_PATH), "plans"])

    assert result.exit_code == 0
    assert "Powershop" in result.output
    assert "Red Saver" in result.output


def test_days(runner, meter_file):
    result = runner.invoke(cli, ["days", "--csv", str(meter_file)])

    assert result.exit_code == 0
    assert "2021-06-30" in result.output
    assert "2021-07-01" in result.output


def test_simulate_json(runner, meter_file):
    result = runner.invoke(
        cli,
        ["--config", str(CONFIG_PATH), "simulate", "--csv", str(meter_file),
         "--plan", "Origin", "--capacity", "0", "--capacity", "10", "--json"],
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert set(data) == {"Origin / 0 kWh", "Origin / 10 kWh"}

    no_battery = data["Origin / 0 kWh"]
    assert no_battery["per_month"]["2021-06"]["consumed_kwh"] == 3.0
    assert no_battery["per_year"]["2021"]["generated_kwh"] == 10.0
    assert no_battery["per_year"]["2021"]["net_cost_dollars"] == round((6 * 29.24 - 10 * 5) / 100, 2)

    battery = data["Origin / 10 kWh"]
    assert battery["per_year"]["2021"]["consumed_kwh"] == 0.0
    assert battery["per_year"]["2021"]["battery_output_kwh"] == 10.0


def test_simulate_text(runner, meter_file):
    result = runner.invoke(
        cli,
        ["--config", str(CONFIG_PATH), "simulate", "--csv", str(meter_file),
         "--plan", "Powershop", "--text"],
    )

    assert result.exit_code == 0
    assert "## Results: Powershop / No Battery" in result.output
    assert "## Results: Powershop / Two Batteries" in result.output
    assert "days reached max battery" in result.output


def test_simulate_unknown_plan(runner, meter_file):
    result = runner.invoke(
        cli,
        ["--config", str(CONFIG_PATH), "simulate", "--csv", str(meter_file), "--plan", "Nope"],
    )

    assert result.exit_code == 1
    assert "Unknown tariff plan: Nope" in result.output


def test_simulate_negative_capacity(runner, meter_file):
    result = runner.invoke(
        cli,
        ["--config", str(CONFIG_PATH), "simulate", "--csv", str(meter_file), "--capacity=-1"],
    )

    assert result.exit_code == 1
    assert "Battery capacity" in result.output


def test_simulate_bad_meter_data(runner, write_meter_csv):
    path = write_meter_csv([("01/07/2021", "Consumption", {0: "oops"})])

    result = runner.invoke(cli, ["--config", str(CONFIG_PATH), "simulate", "--csv", str(path)])

    assert result.exit_code == 1
    assert "Error" in result.output


def test_compare_json(runner, meter_file):
    result = runner.invoke(
        cli, ["--config", str(CONFIG_PATH), "compare", "--csv", str(meter_file), "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert len(data) == 11

    savings = data["Powershop - No to One Battery"]["per_year"]["2021"]
    assert savings["savings_dollars"] == round(savings["baseline_net_dollars"] - savings["candidate_net_dollars"], 2)
    assert savings["candidate_net_dollars"] == 0.0


def test_compare_text(runner, meter_file):
    result = runner.invoke(cli, ["--config", str(CONFIG_PATH), "compare", "--csv", str(meter_file)])

    assert result.exit_code == 0
    assert "## Comparison: Origin One Battery - Origin Two Batteries" in result.output
    assert "savings" in result.output


def test_simulate_repeated_options(runner, meter_file):
    """Repeating --capacity or --plan runs that scenario once."""
    result = runner.invoke(
        cli,
        ["--config", str(CONFIG_PATH), "simulate", "--csv", str(meter_file),
         "--plan", "Origin", "--plan", "Origin",
         "--capacity", "13.5", "--capacity", "13.5", "--json"],
    )

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert list(data) == ["Origin / 13.5 kWh"]


def test_malformed_config(runner, meter_file, tmp_path):
    """A broken config file is reported as an error, not a traceback."""
    config = tmp_path / "scenarios.yaml"
    config.write_text("plans:\n  - Flat\n")

    result = runner.invoke(
        cli, ["--config", str(config), "simulate", "--csv", str(meter_file)]
    )

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "'plans' must be a list of mappings" in result.output
