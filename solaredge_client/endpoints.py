# solaredge_client/endpoints.py
"""Static per-endpoint policy: paths, envelopes, window ceilings, trimming."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from solaredge_client.windows import PeriodClass

METER_KINDS = ("Production", "Consumption", "SelfConsumption", "FeedIn", "Purchased")
SYSTEM_UNITS = ("Metrics", "Imperial")
SITE_STATUSES = ("Active", "Pending", "Disabled", "All")
SORT_ORDERS = ("ASC", "DESC")
SORT_PROPERTIES = (
    "Name",
    "Country",
    "State",
    "City",
    "Address",
    "Zip",
    "Status",
    "PeakPower",
    "InstallationDate",
    "Amount",
    "MaxSeverity",
    "CreationTime",
)

SERIES_VALUES = "values"
SERIES_METERS = "meters"


@dataclass(frozen=True)
class Endpoint:
    name: str
    path: str
    envelope: tuple[str, ...]
    kind: str
    # Batch envelopes: key of the entry list, and the per-entry payload key
    # (None when the entry itself is the payload).
    list_key: Optional[str] = None
    entry_key: Optional[str] = None
    site_key: str = "siteId"
    multi_site: bool = False
    # Fixed ceiling, or per-granularity ceiling when window_by_time_unit.
    window: Optional[PeriodClass] = None
    window_by_time_unit: bool = False
    trims_end: bool = False
    series: Optional[str] = None
    # Key a bare-list envelope is stored under, for endpoints that return one.
    list_payload_key: Optional[str] = None

    @property
    def needs_site(self) -> bool:
        return "{site}" in self.path

    @property
    def needs_serial(self) -> bool:
        return "{serial}" in self.path

    @property
    def batch(self) -> bool:
        return self.list_key is not None


_ENDPOINTS = (
    Endpoint("current_version", "/version/current", ("version",), "apiVersion"),
    Endpoint(
        "supported_versions", "/version/supported", ("supported",), "apiSupportedVersions",
        list_payload_key="versions",
    ),
    Endpoint("site_list", "/sites/list", ("sites",), "siteDetails", list_key="site", site_key="id"),
    Endpoint("site_details", "/site/{site}/details", ("details",), "siteDetails"),
    Endpoint(
        "sites_details", "/sites/{site}/details", ("sites",), "siteDetails",
        list_key="site", site_key="id", multi_site=True,
    ),
    Endpoint("site_data_period", "/site/{site}/dataPeriod", ("dataPeriod",), "siteDataPeriod"),
    Endpoint(
        "sites_data_period", "/sites/{site}/dataPeriod", ("datePeriodList", "dataPeriodList"),
        "siteDataPeriod", list_key="siteEnergyList", entry_key="dataPeriod", multi_site=True,
    ),
    Endpoint(
        "site_energy", "/site/{site}/energy", ("energy",), "siteEnergy",
        window_by_time_unit=True, trims_end=True, series=SERIES_VALUES,
    ),
    Endpoint(
        "sites_energy", "/sites/{site}/energy", ("sitesEnergy",), "siteEnergy",
        list_key="siteEnergyList", entry_key="energyValues", multi_site=True,
        window_by_time_unit=True, trims_end=True, series=SERIES_VALUES,
    ),
    Endpoint(
        "site_time_frame_energy", "/site/{site}/timeFrameEnergy", ("timeFrameEnergy",),
        "siteTimeFrameEnergy",
    ),
    Endpoint(
        "sites_time_frame_energy", "/sites/{site}/timeFrameEnergy", ("timeFrameEnergyList",),
        "siteTimeFrameEnergy", list_key="timeFrameEnergyList", entry_key="timeFrameEnergy",
        multi_site=True,
    ),
    Endpoint(
        "site_power", "/site/{site}/power", ("power",), "sitePower",
        window=PeriodClass.MONTH, series=SERIES_VALUES,
    ),
    Endpoint("site_overview", "/site/{site}/overview", ("overview",), "siteOverview"),
    Endpoint(
        "sites_overview", "/sites/{site}/overview", ("sitesOverviews",), "siteOverview",
        list_key="siteEnergyList", entry_key="siteOverview", multi_site=True,
    ),
    Endpoint(
        "site_power_details", "/site/{site}/powerDetails", ("powerDetails",), "sitePowerDetails",
        window=PeriodClass.MONTH, series=SERIES_METERS,
    ),
    Endpoint(
        "site_energy_details", "/site/{site}/energyDetails", ("energyDetails",), "siteEnergyDetails",
        window_by_time_unit=True, trims_end=True, series=SERIES_METERS,
    ),
    Endpoint(
        "site_meters", "/site/{site}/meters", ("meterEnergyDetails",), "siteMeters",
        window_by_time_unit=True, trims_end=True, series=SERIES_METERS,
    ),
    Endpoint(
        "site_power_flow", "/site/{site}/currentPowerFlow", ("siteCurrentPowerFlow",),
        "sitePowerFlow",
    ),
    Endpoint(
        "site_storage_data", "/site/{site}/storageData", ("storageData",), "siteStorageData",
        window=PeriodClass.WEEK,
    ),
    Endpoint("site_env_benefits", "/site/{site}/envBenefits", ("envBenefits",), "siteEnvBenefits"),
    Endpoint("site_inventory", "/site/{site}/inventory", ("Inventory", "inventory"), "siteInventory"),
    Endpoint("site_sensors", "/equipment/{site}/sensors", ("SiteSensors", "siteSensors"), "siteSensors"),
    Endpoint("equipment_list", "/equipment/{site}/list", ("reporters",), "siteEquipmentList"),
    Endpoint(
        "equipment_data", "/site/{site}/equipment/{serial}/data", ("data",), "equipmentData",
        window=PeriodClass.WEEK,
    ),
    Endpoint(
        "equipment_change_log", "/equipment/{site}/{serial}/changeLog", ("ChangeLog", "changeLog"),
        "equipmentChangeLog",
    ),
)

ENDPOINTS: Mapping[str, Endpoint] = MappingProxyType({e.name: e for e in _ENDPOINTS})


def get_endpoint(name: str) -> Endpoint:
    try:
        return ENDPOINTS[name]
    except KeyError:
        raise KeyError(f"Unknown SolarEdge endpoint '{name}'") from None
