# solaredge_client/services/normalizer.py
"""Reshape vendor JSON bodies into NormalizedRecord objects."""

from __future__ import annotations

import copy
from datetime import datetime
from itertools import takewhile
from typing import Any, Iterable, Mapping, Optional, Sequence

from solaredge_client.endpoints import SERIES_METERS, SERIES_VALUES, Endpoint
from solaredge_client.errors import SchemaError
from solaredge_client.models.record import MeterSeries, NormalizedRecord, ValuePoint
from solaredge_client.request_builder import Query

_POINT_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def parse_point_date(raw: Any) -> datetime:
    if isinstance(raw, str):
        for fmt in _POINT_FORMATS:
            try:
                return datetime.strptime(raw.strip(), fmt)
            except ValueError:
                continue
    raise SchemaError(f"Unrecognized series date {raw!r}")


def parse_point_value(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise SchemaError(f"Non-numeric series value {raw!r}") from None


def unwrap_envelope(endpoint: Endpoint, body: Any) -> dict:
    if not isinstance(body, dict):
        raise SchemaError(f"{endpoint.name}: expected a JSON object, got {type(body).__name__}")
    for key in endpoint.envelope:
        if key in body:
            return body[key]
    raise SchemaError(
        f"{endpoint.name}: response is missing '{endpoint.envelope[0]}' "
        f"(found: {', '.join(sorted(body)) or 'nothing'})"
    )


def trim_series(entries: Sequence[Any], window_end: Optional[datetime]) -> tuple[list, tuple[ValuePoint, ...]]:
    """Drop every trailing point dated at or after window_end.

    Returns the kept raw entries alongside their parsed points.
    """
    parsed = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            raise SchemaError(f"Series entry is not an object: {entry!r}")
        point = ValuePoint(
            date=parse_point_date(entry.get("date")),
            value=parse_point_value(entry.get("value")),
        )
        parsed.append((entry, point))

    if window_end is not None:
        parsed = list(takewhile(lambda pair: pair[1].date < window_end, parsed))

    return [raw for raw, _ in parsed], tuple(point for _, point in parsed)


def _series_list(payload: Mapping[str, Any], key: str, endpoint: Endpoint) -> list:
    entries = payload.get(key)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise SchemaError(f"{endpoint.name}: '{key}' is not a list")
    return entries


def _build_record(
    endpoint: Endpoint,
    site_id: Optional[str],
    payload: Any,
    parameters: Mapping[str, str],
    window_end: Optional[datetime],
) -> NormalizedRecord:
    if isinstance(payload, list) and endpoint.list_payload_key is not None:
        payload = {endpoint.list_payload_key: payload}
    if not isinstance(payload, dict):
        raise SchemaError(f"{endpoint.name}: payload is not an object")
    payload = copy.deepcopy(payload)
    boundary = window_end if endpoint.trims_end else None

    series = None
    meters = None
    if endpoint.series == SERIES_VALUES:
        kept, series = trim_series(_series_list(payload, "values", endpoint), boundary)
        payload["values"] = kept
    elif endpoint.series == SERIES_METERS:
        meter_list = []
        kept_meters = []
        for meter in _series_list(payload, "meters", endpoint):
            if not isinstance(meter, dict):
                raise SchemaError(f"{endpoint.name}: meter entry is not an object")
            kept, points = trim_series(_series_list(meter, "values", endpoint), boundary)
            kept_meters.append({**meter, "values": kept})
            meter_list.append(
                MeterSeries(
                    kind=meter.get("type") or meter.get("meterType") or "Unknown",
                    values=points,
                    serial=meter.get("meterSerialNumber"),
                )
            )
        payload["meters"] = kept_meters
        meters = tuple(meter_list)

    return NormalizedRecord(
        kind=endpoint.kind,
        site_id=site_id,
        payload=payload,
        parameters=parameters,
        time_unit=payload.get("timeUnit") or parameters.get("timeUnit"),
        unit=payload.get("unit"),
        series=series,
        meters=meters,
    )


def normalize(query: Query, body: Any, site_ids: Iterable[str] = ()) -> list[NormalizedRecord]:
    """Return one record per site present in the response body."""
    endpoint = query.endpoint
    envelope = unwrap_envelope(endpoint, body)
    site_ids = list(site_ids)

    if not endpoint.batch:
        site_id = site_ids[0] if site_ids else None
        return [_build_record(endpoint, site_id, envelope, query.params, query.window_end)]

    if not isinstance(envelope, dict):
        raise SchemaError(f"{endpoint.name}: envelope is not an object")
    entries = envelope.get(endpoint.list_key)
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise SchemaError(f"{endpoint.name}: '{endpoint.list_key}' is not a list")

    shared = {
        key: value
        for key, value in envelope.items()
        if key not in (endpoint.list_key, "count")
    }

    records = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get(endpoint.site_key) is None:
            raise SchemaError(f"{endpoint.name}: entry without '{endpoint.site_key}'")
        site_id = str(entry[endpoint.site_key])
        if endpoint.entry_key is None:
            payload = entry
        else:
            if endpoint.entry_key not in entry:
                raise SchemaError(f"{endpoint.name}: entry for site {site_id} has no '{endpoint.entry_key}'")
            payload = entry[endpoint.entry_key]
            if not isinstance(payload, dict):
                raise SchemaError(f"{endpoint.name}: '{endpoint.entry_key}' is not an object")
        records.append(
            _build_record(endpoint, site_id, {**shared, **payload}, query.params, query.window_end)
        )
    return records
