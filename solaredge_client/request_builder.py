# solaredge_client/request_builder.py
"""Validated query shaping and request path construction.

Query functions run at request setup: they validate every caller value,
check the endpoint's window ceiling and return an immutable Query. Site ids
and serials are validated separately in build_request, so a batch caller can
contain per-site failures while shared parameters fail fast.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import quote

from solaredge_client.endpoints import (
    METER_KINDS,
    SITE_STATUSES,
    SORT_ORDERS,
    SORT_PROPERTIES,
    SYSTEM_UNITS,
    Endpoint,
    get_endpoint,
)
from solaredge_client.errors import ValidationError
from solaredge_client.time_units import DAY, ceiling_for_time_unit, normalize_time_unit
from solaredge_client.validators import (
    validate_choice,
    validate_choices,
    validate_date_only,
    validate_datetime,
    validate_range,
    validate_serial,
    validate_site_id,
    validate_site_ids,
)
from solaredge_client.windows import validate_window

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

SiteIds = Union[str, int, Iterable[Union[str, int]]]


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_datetime(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


@dataclass(frozen=True)
class Query:
    endpoint: Endpoint
    params: Mapping[str, str] = field(default_factory=dict)
    # Exclusive upper bound used to trim trailing series points.
    window_end: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True)
class PreparedRequest:
    path: str
    params: Mapping[str, str]
    site_ids: tuple[str, ...] = ()
    serial: Optional[str] = None

    def query_string(self, api_key: str) -> str:
        return encode_query(api_key, self.params)


def encode_query(api_key: str, params: Mapping[str, str]) -> str:
    """Serialize api_key first, then every parameter in insertion order."""
    parts = [f"api_key={quote(api_key, safe='')}"]
    for key, value in params.items():
        parts.append(f"{quote(key, safe='')}={quote(str(value), safe='')}")
    return "&".join(parts)


def build_request(
    query: Query,
    site_ids: Optional[SiteIds] = None,
    serial: Optional[str] = None,
) -> PreparedRequest:
    endpoint = query.endpoint
    ids: list[str] = []

    if endpoint.needs_site:
        if site_ids is None:
            raise ValidationError("site_id", f"{endpoint.name} requires a site id")
        if endpoint.multi_site:
            ids = validate_site_ids(site_ids)
        else:
            if not isinstance(site_ids, (str, int)):
                raise ValidationError("site_id", f"{endpoint.name} takes exactly one site id")
            ids = [validate_site_id(site_ids)]
    elif site_ids is not None:
        raise ValidationError("site_id", f"{endpoint.name} does not take a site id")

    serial_norm = None
    if endpoint.needs_serial:
        if serial is None:
            raise ValidationError("serial", f"{endpoint.name} requires an equipment serial")
        serial_norm = validate_serial(serial)

    path = endpoint.path.format(site=",".join(ids), serial=serial_norm)
    return PreparedRequest(
        path=path,
        params=query.params,
        site_ids=tuple(ids),
        serial=serial_norm,
    )


# ----------------------------------------------------------------------
# Query shaping
# ----------------------------------------------------------------------
def plain_query(name: str) -> Query:
    return Query(get_endpoint(name))


def _date_window(endpoint: Endpoint, start: Any, end: Any, time_unit: Optional[str] = None):
    start_d = validate_date_only(start, "start_date")
    end_d = validate_date_only(end, "end_date")
    period = ceiling_for_time_unit(time_unit) if endpoint.window_by_time_unit else endpoint.window
    validate_window(start_d, end_d, period, name="start_date/end_date")
    return start_d, end_d


def _time_window(endpoint: Endpoint, start: Any, end: Any, time_unit: Optional[str] = None):
    start_t = validate_datetime(start, "start_time")
    end_t = validate_datetime(end, "end_time")
    period = ceiling_for_time_unit(time_unit) if endpoint.window_by_time_unit else endpoint.window
    validate_window(start_t, end_t, period, name="start_time/end_time")
    return start_t, end_t


def site_list_query(
    size: int = 100,
    start_index: int = 0,
    search_text: Optional[str] = None,
    sort_property: Optional[str] = None,
    sort_order: Optional[str] = None,
    status: Optional[Union[str, Iterable[str]]] = None,
) -> Query:
    params = {
        "size": str(validate_range(size, "size", 1, 100)),
        "startIndex": str(validate_range(start_index, "start_index", 0, 2**31 - 1)),
    }
    if search_text:
        params["searchText"] = str(search_text)
    if sort_property is not None:
        params["sortProperty"] = validate_choice(sort_property, "sort_property", SORT_PROPERTIES)
    if sort_order is not None:
        params["sortOrder"] = validate_choice(sort_order, "sort_order", SORT_ORDERS)
    if status is not None:
        params["status"] = validate_choices(status, "status", SITE_STATUSES)
    return Query(get_endpoint("site_list"), params)


def energy_query(start: Any, end: Any, time_unit: str = DAY, multi_site: bool = False) -> Query:
    endpoint = get_endpoint("sites_energy" if multi_site else "site_energy")
    unit = normalize_time_unit(time_unit)
    start_d, end_d = _date_window(endpoint, start, end, unit)
    params = {
        "timeUnit": unit,
        "startDate": format_date(start_d),
        "endDate": format_date(end_d),
    }
    return Query(endpoint, params, window_end=datetime.combine(end_d, time(0, 0)))


def time_frame_energy_query(start: Any, end: Any, multi_site: bool = False) -> Query:
    endpoint = get_endpoint("sites_time_frame_energy" if multi_site else "site_time_frame_energy")
    start_d, end_d = _date_window(endpoint, start, end)
    params = {"startDate": format_date(start_d), "endDate": format_date(end_d)}
    return Query(endpoint, params)


def power_query(start: Any, end: Any) -> Query:
    endpoint = get_endpoint("site_power")
    start_t, end_t = _time_window(endpoint, start, end)
    params = {"startTime": format_datetime(start_t), "endTime": format_datetime(end_t)}
    return Query(endpoint, params)


def _meters_param(meters) -> Optional[str]:
    if meters is None:
        return None
    return validate_choices(meters, "meters", METER_KINDS)


def power_details_query(start: Any, end: Any, meters=None) -> Query:
    endpoint = get_endpoint("site_power_details")
    start_t, end_t = _time_window(endpoint, start, end)
    params = {"startTime": format_datetime(start_t), "endTime": format_datetime(end_t)}
    if (meter_param := _meters_param(meters)) is not None:
        params["meters"] = meter_param
    return Query(endpoint, params)


def _meter_energy_query(name: str, start: Any, end: Any, time_unit: str, meters) -> Query:
    endpoint = get_endpoint(name)
    unit = normalize_time_unit(time_unit)
    start_t, end_t = _time_window(endpoint, start, end, unit)
    params = {
        "timeUnit": unit,
        "startTime": format_datetime(start_t),
        "endTime": format_datetime(end_t),
    }
    if (meter_param := _meters_param(meters)) is not None:
        params["meters"] = meter_param
    return Query(endpoint, params, window_end=end_t)


def energy_details_query(start: Any, end: Any, time_unit: str = DAY, meters=None) -> Query:
    return _meter_energy_query("site_energy_details", start, end, time_unit, meters)


def meters_query(start: Any, end: Any, time_unit: str = DAY, meters=None) -> Query:
    return _meter_energy_query("site_meters", start, end, time_unit, meters)


def storage_query(start: Any, end: Any, serials=None) -> Query:
    endpoint = get_endpoint("site_storage_data")
    start_t, end_t = _time_window(endpoint, start, end)
    params = {"startTime": format_datetime(start_t), "endTime": format_datetime(end_t)}
    if serials is not None:
        if isinstance(serials, str):
            serials = [serials]
        params["serials"] = ",".join(validate_serial(s, "serials") for s in serials)
    return Query(endpoint, params)


def env_benefits_query(system_units: Optional[str] = None) -> Query:
    params = {}
    if system_units is not None:
        params["systemUnits"] = validate_choice(system_units, "system_units", SYSTEM_UNITS)
    return Query(get_endpoint("site_env_benefits"), params)


def equipment_data_query(start: Any, end: Any) -> Query:
    endpoint = get_endpoint("equipment_data")
    start_t, end_t = _time_window(endpoint, start, end)
    params = {"startTime": format_datetime(start_t), "endTime": format_datetime(end_t)}
    return Query(endpoint, params)
