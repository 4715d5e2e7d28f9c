# solaredge_client/services/output_formatter.py

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from solaredge_client.models.record import NormalizedRecord, ValuePoint

VALUE_WIDTH = 14
DATE_WIDTH = 19


def _display_value(value: Optional[float]) -> float:
    # Missing vendor values render as zero.
    return 0.0 if value is None else value


def _format_scalar(value: Any) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def _series_lines(points: Iterable[ValuePoint], unit: Optional[str]) -> list[str]:
    unit_txt = f" ({unit})" if unit else ""
    lines = [f"{'Date':<{DATE_WIDTH}}  {'Value' + unit_txt:>{VALUE_WIDTH}}"]
    for point in points:
        lines.append(
            f"{point.date.strftime('%Y-%m-%d %H:%M:%S'):<{DATE_WIDTH}}  "
            f"{_display_value(point.value):>{VALUE_WIDTH}.3f}"
        )
    return lines


def format_record(record: NormalizedRecord) -> list[str]:
    lines = []
    if record.site_id is not None:
        lines.append(f"Site: {record.site_id}")
    lines.append(f"Record: {record.kind}")
    for key, value in record.parameters.items():
        lines.append(f"{key}: {value}")

    if record.series is not None:
        if record.time_unit:
            lines.append(f"Time unit: {record.time_unit}")
        lines.extend(_series_lines(record.series, record.unit))
        return lines

    if record.meters is not None:
        if record.time_unit:
            lines.append(f"Time unit: {record.time_unit}")
        for meter in record.meters:
            serial_txt = f" [{meter.serial}]" if meter.serial else ""
            lines.append(f"Meter: {meter.kind}{serial_txt}")
            lines.extend(_series_lines(meter.values, record.unit))
        return lines

    for key, value in record.payload.items():
        lines.append(f"{key}: {_format_scalar(value)}")
    return lines


def render_records(records: Iterable[NormalizedRecord]) -> str:
    blocks = ["\n".join(format_record(record)) for record in records]
    return "\n\n".join(blocks)


def emit_human(records: Iterable[NormalizedRecord]) -> None:
    text = render_records(records)
    if text:
        print(text)


def emit_json(records: Iterable[NormalizedRecord]) -> None:
    payload = [record.as_dict() for record in records]
    print(json.dumps(payload, indent=2, default=str))
