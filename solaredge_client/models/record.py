# solaredge_client/models/record.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class ValuePoint:
    date: datetime
    value: Optional[float]   # None when the vendor omitted the value


@dataclass(frozen=True)
class MeterSeries:
    kind: str
    values: tuple[ValuePoint, ...]
    serial: Optional[str] = None


@dataclass(frozen=True)
class NormalizedRecord:
    kind: str                       # normalized payload field, e.g. "siteEnergy"
    site_id: Optional[str]          # None only for API info records
    payload: Mapping[str, Any]
    parameters: Mapping[str, str] = field(default_factory=dict)
    time_unit: Optional[str] = None
    unit: Optional[str] = None
    series: Optional[tuple[ValuePoint, ...]] = None
    meters: Optional[tuple[MeterSeries, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.site_id is not None:
            out["siteId"] = self.site_id
        out[self.kind] = dict(self.payload)
        out.update(self.parameters)
        return out
