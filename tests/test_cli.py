"""
Tests for the command line interface.
"""

from pathlib import Path

import pendulum
import pytest
from typer.testing import CliRunner

from bookingslots import __version__
from bookingslots.cli.app import app

runner = CliRunner()

DATA_YAML = """
schedules:
  - id: "every-day"
    timezone: "UTC"
    availability:
{availability}
event_types:
  - id: "intro"
    owner_id: "alice"
    duration: 60
    schedule_id: "every-day"
  - id: "support"
    owner_id: "alice"
    duration: 60
    schedule_id: "every-day"
    team_id: "sales"
    scheduling_type: "ROUND_ROBIN"
teams:
  - id: "sales"
    members:
      - {{user_id: "bob", accepted: true}}
      - {{user_id: "alice", accepted: true}}
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    availability = "\n".join(
        f'      - {{day: {day}, start_time: "09:00", end_time: "17:00"}}' for day in range(7)
    )
    (tmp_path / "data.yaml").write_text(DATA_YAML.format(availability=availability), encoding="utf-8")

    path = tmp_path / "config.yaml"
    path.write_text('timezone: "UTC"\ndata_file: "data.yaml"\n', encoding="utf-8")
    return path


@pytest.fixture
def target_day() -> str:
    return pendulum.now("UTC").add(days=3).to_date_string()


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_lists_slots(self, config_path, target_day):
        result = runner.invoke(
            app,
            ["slots", "intro", "--start", target_day, "--end", target_day, "--config", str(config_path)],
        )

        assert result.exit_code == 0, result.output
        assert "8 available slot(s)" in result.output
        assert "09:00" in result.output

    def test_unknown_event_has_no_slots(self, config_path, target_day):
        result = runner.invoke(
            app,
            ["slots", "nope", "--start", target_day, "--end", target_day, "--config", str(config_path)],
        )

        assert result.exit_code == 0
        assert "No available slots" in result.output

    def test_invalid_timezone(self, config_path, target_day):
        result = runner.invoke(
            app,
            ["slots", "intro", "--start", target_day, "--tz", "Invalid/Zone", "--config", str(config_path)],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["slots", "intro", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestAssignCommand:
    """Tests for the assign command."""

    def test_assigns_member(self, config_path, target_day):
        result = runner.invoke(
            app,
            ["assign", "support", f"{target_day}T10:00:00Z", "--config", str(config_path)],
        )

        assert result.exit_code == 0, result.output
        assert "alice" in result.output

    def test_nobody_available(self, config_path, target_day):
        result = runner.invoke(
            app,
            ["assign", "support", f"{target_day}T20:00:00Z", "--config", str(config_path)],
        )

        assert result.exit_code == 2
        assert "No team member" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
