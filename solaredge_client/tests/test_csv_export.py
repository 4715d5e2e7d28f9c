# solaredge_client/tests/test_csv_export.py

import csv
from datetime import date

import pytest

from solaredge_client.config import ExportConfig, SolarEdgeAPIConfig
from solaredge_client.errors import ValidationError
from solaredge_client.logging import ConsoleLog, get_logger
from solaredge_client.services.csv_export import EnergyExporter, export_filename, safe_name
from solaredge_client.services.se_api_client import SolarEdgeAPIClient
from solaredge_client.tests.fake_session import API_KEY, BASE_URL, FakeSession, energy_values


ConsoleLog(level="INFO", quiet=True).setup()
LOG = get_logger("csv-export-test")


def _exporter(responses, tmp_path, **cfg_overrides):
    session = FakeSession(responses)
    client = SolarEdgeAPIClient(
        SolarEdgeAPIConfig(api_key=API_KEY, base_url=BASE_URL), LOG, session=session
    )
    cfg = ExportConfig(output_dir=str(tmp_path), **cfg_overrides)
    return EnergyExporter(client, cfg, LOG), session


def _read_rows(path):
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


def test_export_filename_template():
    assert export_filename("1", "Example_Site", "2024", "MONTH") == "2024 - Example_Site (1) - MONTH.csv"
    assert safe_name("My Roof/East") == "My_RoofEast"


def test_year_of_monthly_energy(tmp_path):
    # The vendor includes the window end (2025-01-01); the export must not.
    dates = [f"2024-{m:02d}-01" for m in range(1, 13)] + ["2025-01-01"]
    values = energy_values(dates)
    values[3]["value"] = None
    responses = {
        f"{BASE_URL}/site/1/details": (200, {"details": {"id": 1, "name": "Example Site"}}),
        f"{BASE_URL}/site/1/energy": (
            200,
            {"energy": {"timeUnit": "MONTH", "unit": "Wh", "values": values}},
        ),
    }
    exporter, session = _exporter(responses, tmp_path)

    path = exporter.export_site_energy("1", date(2024, 1, 1), time_unit="MONTH", period_length="Year")

    assert path.name == "2024 - Example_Site (1) - MONTH.csv"
    rows = _read_rows(path)
    assert len(rows) == 12
    assert rows[0]["date"] == "2024-01-01"
    assert rows[-1]["date"] == "2024-12-01"
    assert rows[3]["value"] == "0.0"
    assert rows[0]["unit"] == "Wh"
    assert len(session.calls) == 2


def test_hourly_export_is_chunked_by_month(tmp_path):
    responses = {
        f"{BASE_URL}/site/7/energy": (
            200,
            {"energy": {"timeUnit": "HOUR", "unit": "Wh", "values": []}},
        ),
    }
    exporter, session = _exporter(responses, tmp_path)

    path = exporter.export_site_energy(
        "7", date(2024, 6, 15), time_unit="HOUR", period_length="Year", name="Barn"
    )

    assert path.name == "2024 - Barn (7) - HOUR.csv"
    assert len(session.calls) == 12
    assert "startDate=2024-01-01&endDate=2024-02-01" in session.calls[0]["params"]
    assert "startDate=2024-12-01&endDate=2025-01-01" in session.calls[-1]["params"]


def test_energy_details_export_writes_meter_rows(tmp_path):
    responses = {
        f"{BASE_URL}/site/3/energyDetails": (
            200,
            {
                "energyDetails": {
                    "timeUnit": "DAY",
                    "unit": "Wh",
                    "meters": [
                        {"type": "Production", "values": energy_values(["2024-03-01", "2024-04-01"])},
                        {"type": "FeedIn", "values": energy_values(["2024-03-01"], value=None)},
                    ],
                }
            },
        ),
    }
    exporter, _ = _exporter(responses, tmp_path)

    path = exporter.export_site_energy_details(
        "3", date(2024, 3, 9), time_unit="DAY", period_length="Month", name="Shed"
    )

    assert path.name == "2024-03 - Shed (3) - DAY.csv"
    rows = _read_rows(path)
    assert [(r["meter"], r["date"], r["value"]) for r in rows] == [
        ("Production", "2024-03-01", "100.0"),
        ("FeedIn", "2024-03-01", "0.0"),
    ]


def test_invalid_inputs_fail_before_any_request(tmp_path):
    exporter, session = _exporter({}, tmp_path)
    with pytest.raises(ValidationError):
        exporter.export_site_energy("x1", date(2024, 1, 1))
    with pytest.raises(ValidationError):
        exporter.export_site_energy("1", date(2024, 1, 1), time_unit="FORTNIGHT")
    with pytest.raises(ValidationError):
        exporter.export_site_energy("1", date(2024, 1, 1), period_length="Decade")
    assert session.calls == []
