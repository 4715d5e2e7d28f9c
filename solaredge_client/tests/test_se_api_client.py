# solaredge_client/tests/test_se_api_client.py

import json
from datetime import date, datetime

import pytest
import requests

from solaredge_client.config import SolarEdgeAPIConfig
from solaredge_client.errors import ErrorPolicy, SchemaError, TransportError, ValidationError, WindowError
from solaredge_client.logging import ConsoleLog, StructuredLog, get_logger
from solaredge_client.request_builder import energy_query, plain_query
from solaredge_client.services.se_api_client import SolarEdgeAPIClient
from solaredge_client.tests.fake_session import API_KEY, BASE_URL, FakeSession, energy_values


ConsoleLog(level="INFO", quiet=True).setup()
LOG = get_logger("se-api-test")


def _cfg(**overrides):
    cfg = SolarEdgeAPIConfig(
        api_key=API_KEY.lower(),
        base_url=BASE_URL,
        timeout=5,
    )
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def _client(responses, **overrides):
    session = FakeSession(responses)
    return SolarEdgeAPIClient(_cfg(**overrides), LOG, session=session), session


def _energy_payload(dates):
    return {"energy": {"timeUnit": "MONTH", "unit": "Wh", "values": energy_values(dates)}}


def test_invalid_api_key_rejected_before_any_request():
    session = FakeSession({})
    with pytest.raises(ValidationError):
        SolarEdgeAPIClient(_cfg(api_key="short"), LOG, session=session)
    assert session.calls == []


def test_site_energy_request_and_record():
    dates = [f"2024-{m:02d}-01" for m in range(1, 13)] + ["2025-01-01"]
    client, session = _client({f"{BASE_URL}/site/1/energy": (200, _energy_payload(dates))})

    record = client.site_energy("1", date(2024, 1, 1), date(2025, 1, 1), "MONTH")

    assert len(record.series) == 12
    assert record.series[-1].date == datetime(2024, 12, 1)
    call = session.calls[0]
    assert call["url"] == f"{BASE_URL}/site/1/energy"
    assert call["params"] == (
        f"api_key={API_KEY}&timeUnit=MONTH&startDate=2024-01-01&endDate=2025-01-01"
    )
    assert call["timeout"] == 5


def test_window_violation_issues_no_request():
    client, session = _client({})
    with pytest.raises(WindowError):
        client.site_energy("1", date(2024, 1, 1), date(2024, 3, 1), "HOUR")
    with pytest.raises(ValidationError):
        client.site_energy("abc", date(2024, 1, 1), date(2024, 1, 2))
    assert session.calls == []


def test_http_error_raises_transport_error():
    client, _ = _client({f"{BASE_URL}/site/1/details": (403, {})})
    with pytest.raises(TransportError) as excinfo:
        client.site_details("1")
    assert excinfo.value.status == 403


def test_network_failure_raises_transport_error():
    client, _ = _client({f"{BASE_URL}/site/1/details": (requests.ConnectionError("boom"), None)})
    with pytest.raises(TransportError):
        client.site_details("1")


def test_non_json_and_vendor_errors_raise_transport_error():
    client, _ = _client({
        f"{BASE_URL}/site/1/details": (200, ValueError("not json")),
        f"{BASE_URL}/site/2/details": (200, {"errors": {"error": [{"message": "Invalid site"}]}}),
    })
    with pytest.raises(TransportError):
        client.site_details("1")
    with pytest.raises(TransportError):
        client.site_details("2")


def test_unexpected_shape_raises_schema_error():
    client, _ = _client({f"{BASE_URL}/site/1/overview": (200, {"unexpected": {}})})
    with pytest.raises(SchemaError):
        client.site_overview("1")


def test_multi_site_overview_is_strict():
    body = {
        "sitesOverviews": {
            "count": 2,
            "siteEnergyList": [
                {"siteId": 1, "siteOverview": {"currentPower": {"power": 10.0}}},
                {"siteId": 2, "siteOverview": {"currentPower": {"power": 20.0}}},
            ],
        }
    }
    client, session = _client({f"{BASE_URL}/sites/1,2/overview": (200, body)})

    records = client.sites_overview(["1", "2"])
    assert [r.site_id for r in records] == ["1", "2"]
    assert records[1].payload["currentPower"]["power"] == 20.0

    with pytest.raises(ValidationError):
        client.sites_overview(["1", "bad", "2"])
    assert len(session.calls) == 1


def test_fetch_each_logs_and_continues_on_invalid_site(caplog):
    client, session = _client({
        f"{BASE_URL}/site/1/energy": (200, _energy_payload(["2024-01-01"])),
        f"{BASE_URL}/site/3/energy": (200, _energy_payload(["2024-01-01", "2024-02-01"])),
    })
    query = energy_query(date(2024, 1, 1), date(2025, 1, 1), "MONTH")

    with caplog.at_level("WARNING", logger="solaredge_client.se-api-test"):
        records = client.fetch_each(query, ["1", "x2", "3"], on_error=ErrorPolicy.LOG)

    assert [r.site_id for r in records] == ["1", "3"]
    assert len(session.calls) == 2
    assert any("x2" in rec.getMessage() for rec in caplog.records)


def test_fetch_each_raise_policy_stops():
    client, session = _client({f"{BASE_URL}/site/1/energy": (200, _energy_payload(["2024-01-01"]))})
    query = energy_query(date(2024, 1, 1), date(2025, 1, 1), "MONTH")
    with pytest.raises(ValidationError):
        client.fetch_each(query, ["1", "bad", "3"], on_error=ErrorPolicy.RAISE)
    assert len(session.calls) == 1


def test_fetch_each_callback_and_suppress():
    client, _ = _client({f"{BASE_URL}/site/4/overview": (200, {"overview": {"lastUpdateTime": "x"}})})
    seen = []

    records = client.fetch_each(
        plain_query("site_overview"), ["-4", "4"], on_error=lambda site, exc: seen.append(site)
    )
    assert seen == ["-4"]
    assert [r.site_id for r in records] == ["4"]

    records = client.fetch_each(plain_query("site_overview"), ["", "4"], on_error=ErrorPolicy.SUPPRESS)
    assert len(records) == 1


def test_fetch_each_defaults_to_configured_policy():
    client, _ = _client({}, batch_errors=ErrorPolicy.RAISE)
    query = energy_query(date(2024, 1, 1), date(2024, 1, 2))
    with pytest.raises(ValidationError):
        client.fetch_each(query, ["nope"])


def test_equipment_data_path_uses_validated_serial():
    body = {"data": {"count": 1, "telemetries": [{"date": "2024-06-01 10:00:00", "totalActivePower": 10}]}}
    client, session = _client({f"{BASE_URL}/site/9/equipment/7F1A2B3C-00/data": (200, body)})

    record = client.equipment_data("9", "7f1a2b3c-00", datetime(2024, 6, 1), datetime(2024, 6, 2))
    assert record.kind == "equipmentData"
    assert record.payload["telemetries"][0]["totalActivePower"] == 10
    with pytest.raises(ValidationError):
        client.equipment_data("9", "7f1a2b3c-01", datetime(2024, 6, 1), datetime(2024, 6, 2))
    assert len(session.calls) == 1


def test_api_version_record():
    client, _ = _client({f"{BASE_URL}/version/current": (200, {"version": {"release": "1.0.0"}})})
    record = client.api_current_version()
    assert record.site_id is None
    assert record.payload["release"] == "1.0.0"


def test_api_supported_versions_record():
    body = {"supported": [{"release": "0.5.13"}, {"release": "1.0.0"}]}
    client, _ = _client({f"{BASE_URL}/version/supported": (200, body)})
    record = client.api_supported_versions()
    assert record.site_id is None
    assert record.kind == "apiSupportedVersions"
    assert [v["release"] for v in record.payload["versions"]] == ["0.5.13", "1.0.0"]


def test_fetch_each_accepts_policy_names(caplog):
    client, session = _client({f"{BASE_URL}/site/4/overview": (200, {"overview": {"lastUpdateTime": "x"}})})

    with caplog.at_level("WARNING", logger="solaredge_client.se-api-test"):
        records = client.fetch_each(plain_query("site_overview"), ["x4", "4"], on_error="log")

    assert [r.site_id for r in records] == ["4"]
    assert any("x4" in rec.getMessage() for rec in caplog.records)
    with pytest.raises(ValueError):
        client.fetch_each(plain_query("site_overview"), ["x4"], on_error="ignore")
    with pytest.raises(TypeError):
        client.fetch_each(plain_query("site_overview"), ["x4"], on_error=42)
    assert len(session.calls) == 1


def test_structured_log_records_requests(tmp_path):
    log_path = tmp_path / "requests.jsonl"
    session = FakeSession({
        f"{BASE_URL}/site/1/details": (200, {"details": {"id": 1, "name": "Roof"}}),
        f"{BASE_URL}/site/2/details": (500, {}),
    })
    client = SolarEdgeAPIClient(
        _cfg(), LOG, session=session, structured_log=StructuredLog(str(log_path), enabled=True)
    )

    client.site_details("1")
    with pytest.raises(TransportError):
        client.site_details("2")

    lines = [json.loads(line) for line in log_path.read_text().splitlines()]
    assert [entry["path"] for entry in lines] == ["/site/1/details", "/site/2/details"]
    assert lines[0]["record_count"] == 1
    assert lines[1]["status"] == 500
    assert "api_key" not in lines[0]["parameters"]
