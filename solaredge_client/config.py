# solaredge_client/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

from solaredge_client.errors import ErrorPolicy
from solaredge_client.time_units import DAY, normalize_time_unit
from solaredge_client.windows import PERIOD_LENGTHS


@dataclass
class SolarEdgeAPIConfig:
    api_key: str | None = None
    base_url: str = "https://monitoringapi.solaredge.com"
    timeout: float = 20.0
    batch_errors: ErrorPolicy = ErrorPolicy.LOG


@dataclass
class ExportConfig:
    output_dir: str = "."
    period_length: str = "Year"
    time_unit: str = DAY


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    solaredge_api: SolarEdgeAPIConfig
    export: ExportConfig
    logging: LoggingConfig


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        # --- SolarEdge API ---
        if "solaredge_api" not in p:
            raise ValueError("[solaredge_api] section missing from config")
        se_api_sec = p["solaredge_api"]
        solaredge_api_kwargs = {}
        api_key = se_api_sec.get("api_key") or se_api_sec.get("solaredge_api_key")
        if api_key is not None:
            solaredge_api_kwargs["api_key"] = api_key.strip()
        if "base_url" in se_api_sec:
            solaredge_api_kwargs["base_url"] = se_api_sec["base_url"]
        if "timeout" in se_api_sec:
            solaredge_api_kwargs["timeout"] = float(se_api_sec["timeout"])
        if "batch_errors" in se_api_sec:
            solaredge_api_kwargs["batch_errors"] = ErrorPolicy.parse(se_api_sec["batch_errors"])
        solaredge_api_cfg = SolarEdgeAPIConfig(**solaredge_api_kwargs)

        # --- Export ---
        export_kwargs = {}
        if "export" in p:
            export_sec = p["export"]
            if "output_dir" in export_sec:
                export_kwargs["output_dir"] = export_sec["output_dir"]
            if "period_length" in export_sec:
                period_length = export_sec["period_length"].strip()
                if period_length not in PERIOD_LENGTHS:
                    raise ValueError(
                        f"[export] period_length must be one of {', '.join(PERIOD_LENGTHS)}"
                    )
                export_kwargs["period_length"] = period_length
            if "time_unit" in export_sec:
                export_kwargs["time_unit"] = normalize_time_unit(export_sec["time_unit"])
        export_cfg = ExportConfig(**export_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            solaredge_api=solaredge_api_cfg,
            export=export_cfg,
            logging=logging_cfg,
        )
