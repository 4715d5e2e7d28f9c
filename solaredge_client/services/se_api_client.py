from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

import requests

from solaredge_client.config import AppConfig, SolarEdgeAPIConfig
from solaredge_client.errors import (
    ErrorHandler,
    SchemaError,
    TransportError,
    ValidationError,
    report,
)
from solaredge_client.logging import RequestLogEntry, StructuredLog
from solaredge_client.models.record import NormalizedRecord
from solaredge_client.request_builder import (
    PreparedRequest,
    Query,
    SiteIds,
    build_request,
    energy_details_query,
    energy_query,
    env_benefits_query,
    equipment_data_query,
    meters_query,
    plain_query,
    power_details_query,
    power_query,
    site_list_query,
    storage_query,
    time_frame_energy_query,
)
from solaredge_client.services.normalizer import normalize
from solaredge_client.time_units import DAY
from solaredge_client.validators import validate_api_key


class SolarEdgeAPIClient:
    """SolarEdge Monitoring API wrapper returning normalized records.

    Every public call validates its inputs before any request is issued.
    """

    API_BASE_DEFAULT = "https://monitoringapi.solaredge.com"

    def __init__(
        self,
        cfg: SolarEdgeAPIConfig,
        log,
        session: Optional[requests.Session] = None,
        structured_log: Optional[StructuredLog] = None,
    ):
        self.cfg = cfg
        self.log = log
        self.api_key = validate_api_key(cfg.api_key)
        self.session = session or requests.Session()
        self.structured_log = structured_log
        self.base_url = (cfg.base_url or self.API_BASE_DEFAULT).rstrip("/")

    @classmethod
    def from_config(cls, app_cfg: AppConfig, log, session: Optional[requests.Session] = None):
        structured = StructuredLog(
            app_cfg.logging.structured_path,
            enabled=app_cfg.logging.structured_enabled,
        )
        return cls(app_cfg.solaredge_api, log, session=session, structured_log=structured)

    # ------------------------------------------------------------------
    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _log_request(self, query: Query, request: PreparedRequest, status, count, error) -> None:
        if self.structured_log is None:
            return
        self.structured_log.write(
            RequestLogEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                endpoint=query.endpoint.name,
                path=request.path,
                parameters=dict(request.params),
                status=status,
                record_count=count,
                error=error,
            )
        )

    def _get(self, path: str, query_string: str) -> Any:
        url = self._build_url(path)
        self.log.debug("SolarEdge API GET %s", path)

        try:
            resp = self.session.get(url, params=query_string, timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            self.log.warning("SolarEdge API request failed for %s: %s", path, exc)
            raise TransportError(path, f"request failed: {exc}") from exc

        if resp.status_code != 200:
            self.log.warning("SolarEdge API %s returned HTTP %s", path, resp.status_code)
            raise TransportError(path, f"HTTP {resp.status_code}", status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            self.log.warning("SolarEdge API %s returned non-JSON payload", path)
            raise TransportError(path, "non-JSON payload", status=resp.status_code) from exc

        if isinstance(data, dict) and data.get("errors"):
            self.log.warning("SolarEdge API %s reported errors: %s", path, data["errors"])
            raise TransportError(path, f"vendor errors: {data['errors']}", status=resp.status_code)

        return data

    def _execute(self, query: Query, request: PreparedRequest) -> List[NormalizedRecord]:
        try:
            body = self._get(request.path, request.query_string(self.api_key))
            records = normalize(query, body, request.site_ids)
        except TransportError as exc:
            self._log_request(query, request, exc.status, None, str(exc))
            raise
        except SchemaError as exc:
            self.log.warning("SolarEdge API %s returned an unexpected shape: %s", request.path, exc)
            self._log_request(query, request, 200, None, str(exc))
            raise
        self._log_request(query, request, 200, len(records), None)
        return records

    # ------------------------------------------------------------------
    # Generic entry points
    # ------------------------------------------------------------------
    def fetch_all(
        self,
        query: Query,
        site_id: Optional[SiteIds] = None,
        serial: Optional[str] = None,
    ) -> List[NormalizedRecord]:
        request = build_request(query, site_id, serial)
        return self._execute(query, request)

    def fetch(
        self,
        query: Query,
        site_id: Optional[SiteIds] = None,
        serial: Optional[str] = None,
    ) -> NormalizedRecord:
        records = self.fetch_all(query, site_id, serial)
        if len(records) != 1:
            raise SchemaError(f"{query.endpoint.name}: expected one record, got {len(records)}")
        return records[0]

    def fetch_sites(self, query: Query, site_ids: SiteIds) -> List[NormalizedRecord]:
        """Multi-site request; any invalid id aborts before the request."""
        if not query.endpoint.multi_site:
            raise ValidationError("site_ids", f"{query.endpoint.name} is a single-site endpoint")
        if not isinstance(site_ids, (str, int)):
            site_ids = list(site_ids)
        return self.fetch_all(query, site_ids)

    def fetch_each(
        self,
        query: Query,
        site_ids: Iterable[Any],
        on_error: Optional[ErrorHandler] = None,
        serial: Optional[str] = None,
    ) -> List[NormalizedRecord]:
        """One request per site; invalid sites are reported, siblings continue."""
        handler = on_error if on_error is not None else self.cfg.batch_errors
        records: List[NormalizedRecord] = []
        for raw_site in site_ids:
            try:
                request = build_request(query, raw_site, serial)
            except ValidationError as exc:
                report(handler, str(raw_site), exc, self.log)
                continue
            records.extend(self._execute(query, request))
        return records

    # ------------------------------------------------------------------
    # API info and site listing
    # ------------------------------------------------------------------
    def api_current_version(self) -> NormalizedRecord:
        return self.fetch(plain_query("current_version"))

    def api_supported_versions(self) -> NormalizedRecord:
        return self.fetch(plain_query("supported_versions"))

    def site_list(
        self,
        size: int = 100,
        start_index: int = 0,
        search_text: Optional[str] = None,
        sort_property: Optional[str] = None,
        sort_order: Optional[str] = None,
        status=None,
    ) -> List[NormalizedRecord]:
        query = site_list_query(size, start_index, search_text, sort_property, sort_order, status)
        return self.fetch_all(query)

    # ------------------------------------------------------------------
    # Site metadata
    # ------------------------------------------------------------------
    def site_details(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_details"), site_id)

    def sites_details(self, site_ids) -> List[NormalizedRecord]:
        return self.fetch_sites(plain_query("sites_details"), site_ids)

    def site_data_period(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_data_period"), site_id)

    def sites_data_period(self, site_ids) -> List[NormalizedRecord]:
        return self.fetch_sites(plain_query("sites_data_period"), site_ids)

    def site_overview(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_overview"), site_id)

    def sites_overview(self, site_ids) -> List[NormalizedRecord]:
        return self.fetch_sites(plain_query("sites_overview"), site_ids)

    def site_power_flow(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_power_flow"), site_id)

    def site_env_benefits(self, site_id, system_units: Optional[str] = None) -> NormalizedRecord:
        return self.fetch(env_benefits_query(system_units), site_id)

    def site_inventory(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_inventory"), site_id)

    def site_sensors(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("site_sensors"), site_id)

    # ------------------------------------------------------------------
    # Energy and power series
    # ------------------------------------------------------------------
    def site_energy(self, site_id, start, end, time_unit: str = DAY) -> NormalizedRecord:
        return self.fetch(energy_query(start, end, time_unit), site_id)

    def sites_energy(self, site_ids, start, end, time_unit: str = DAY) -> List[NormalizedRecord]:
        return self.fetch_sites(energy_query(start, end, time_unit, multi_site=True), site_ids)

    def site_time_frame_energy(self, site_id, start, end) -> NormalizedRecord:
        return self.fetch(time_frame_energy_query(start, end), site_id)

    def sites_time_frame_energy(self, site_ids, start, end) -> List[NormalizedRecord]:
        return self.fetch_sites(time_frame_energy_query(start, end, multi_site=True), site_ids)

    def site_power(self, site_id, start, end) -> NormalizedRecord:
        return self.fetch(power_query(start, end), site_id)

    def site_power_details(self, site_id, start, end, meters=None) -> NormalizedRecord:
        return self.fetch(power_details_query(start, end, meters), site_id)

    def site_energy_details(self, site_id, start, end, time_unit: str = DAY, meters=None) -> NormalizedRecord:
        return self.fetch(energy_details_query(start, end, time_unit, meters), site_id)

    def site_meters(self, site_id, start, end, time_unit: str = DAY, meters=None) -> NormalizedRecord:
        return self.fetch(meters_query(start, end, time_unit, meters), site_id)

    def site_storage_data(self, site_id, start, end, serials=None) -> NormalizedRecord:
        return self.fetch(storage_query(start, end, serials), site_id)

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------
    def equipment_list(self, site_id) -> NormalizedRecord:
        return self.fetch(plain_query("equipment_list"), site_id)

    def equipment_data(self, site_id, serial: str, start, end) -> NormalizedRecord:
        return self.fetch(equipment_data_query(start, end), site_id, serial)

    def equipment_change_log(self, site_id, serial: str) -> NormalizedRecord:
        return self.fetch(plain_query("equipment_change_log"), site_id, serial)
