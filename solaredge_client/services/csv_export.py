# solaredge_client/services/csv_export.py

from __future__ import annotations

import csv
import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, Optional

from solaredge_client.config import ExportConfig
from solaredge_client.models.record import NormalizedRecord, ValuePoint
from solaredge_client.request_builder import Query, energy_details_query, energy_query
from solaredge_client.services.se_api_client import SolarEdgeAPIClient
from solaredge_client.time_units import ceiling_for_time_unit, normalize_time_unit
from solaredge_client.validators import validate_site_id
from solaredge_client.windows import period_label, period_window, split_window

CSV_FIELDS = ["siteId", "meter", "date", "dateTime", "value", "unit"]

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|]+')


def safe_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("", str(name).strip())
    return re.sub(r"\s+", "_", cleaned)


def export_filename(site_id: str, name: str, label: str, time_unit: str) -> str:
    """e.g. "2024 - Example_Site (1) - MONTH.csv"."""
    return f"{label} - {safe_name(name)} ({site_id}) - {time_unit}.csv"


def _point_row(site_id, meter, point: ValuePoint, unit) -> dict:
    value = 0.0 if point.value is None else point.value
    return {
        "siteId": site_id or "",
        "meter": meter or "",
        "date": point.date.strftime("%Y-%m-%d"),
        "dateTime": point.date.strftime("%Y-%m-%d %H:%M:%S"),
        "value": value,
        "unit": unit or "",
    }


def series_rows(record: NormalizedRecord) -> list[dict]:
    rows = []
    for point in record.series or ():
        rows.append(_point_row(record.site_id, None, point, record.unit))
    for meter in record.meters or ():
        for point in meter.values:
            rows.append(_point_row(record.site_id, meter.kind, point, record.unit))
    return rows


def write_series_csv(records: Iterable[NormalizedRecord], path: Path | str) -> int:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with target.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for record in records:
            rows = series_rows(record)
            writer.writerows(rows)
            count += len(rows)
    return count


class EnergyExporter:
    """Writes one site's energy series for a calendar period to CSV.

    Periods longer than the endpoint's window ceiling are fetched in
    consecutive chunks; each chunk is trimmed at its own end so boundary
    points are never duplicated.
    """

    def __init__(self, client: SolarEdgeAPIClient, cfg: ExportConfig, log):
        self.client = client
        self.cfg = cfg
        self.log = log

    # ------------------------------------------------------------------
    def _resolve_name(self, site_id: str, name: Optional[str]) -> str:
        if name:
            return name
        details = self.client.site_details(site_id)
        return details.payload.get("name") or site_id

    def _export(
        self,
        site_id: str,
        queries: list[Query],
        start: date,
        period_length: str,
        time_unit: str,
        name: Optional[str],
        output_dir: Optional[str],
    ) -> Path:
        display_name = self._resolve_name(site_id, name)
        records = [self.client.fetch(query, site_id) for query in queries]

        filename = export_filename(site_id, display_name, period_label(start, period_length), time_unit)
        target = Path(output_dir or self.cfg.output_dir).expanduser() / filename
        rows = write_series_csv(records, target)
        self.log.info("Exported %s rows for site %s to %s", rows, site_id, target)
        return target

    # ------------------------------------------------------------------
    def export_site_energy(
        self,
        site_id,
        anchor: date,
        time_unit: Optional[str] = None,
        period_length: Optional[str] = None,
        name: Optional[str] = None,
        output_dir: Optional[str] = None,
    ) -> Path:
        site = validate_site_id(site_id)
        unit = normalize_time_unit(time_unit or self.cfg.time_unit)
        length = period_length or self.cfg.period_length
        start, end = period_window(anchor, length)

        queries = [
            energy_query(chunk_start, chunk_end, unit)
            for chunk_start, chunk_end in split_window(start, end, ceiling_for_time_unit(unit))
        ]
        return self._export(site, queries, start, length, unit, name, output_dir)

    def export_site_energy_details(
        self,
        site_id,
        anchor: date,
        time_unit: Optional[str] = None,
        period_length: Optional[str] = None,
        meters=None,
        name: Optional[str] = None,
        output_dir: Optional[str] = None,
    ) -> Path:
        site = validate_site_id(site_id)
        unit = normalize_time_unit(time_unit or self.cfg.time_unit)
        length = period_length or self.cfg.period_length
        start, end = period_window(anchor, length)
        start_t = datetime.combine(start, time(0, 0))
        end_t = datetime.combine(end, time(0, 0))

        queries = [
            energy_details_query(chunk_start, chunk_end, unit, meters)
            for chunk_start, chunk_end in split_window(start_t, end_t, ceiling_for_time_unit(unit))
        ]
        return self._export(site, queries, start, length, unit, name, output_dir)
