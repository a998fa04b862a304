"""Environment-driven settings for the distribution engine."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .addresses import require_address
from .fees import GasThresholds

ENV_PREFIX = "MULTISEND_"


@dataclass(frozen=True)
class EngineSettings:
    distributor_address: Optional[str] = None
    history_capacity: int = 10
    max_import_errors: int = 5
    max_recipients: int = 200
    gas_thresholds: GasThresholds = field(default_factory=GasThresholds)
    confirmation_timeout: Optional[float] = None
    store_path: Path = Path("multisend_store.json")

    def __post_init__(self) -> None:
        if self.distributor_address is not None:
            require_address(self.distributor_address, "distributor address")
        if self.history_capacity < 1:
            raise ValueError("history_capacity must be at least 1.")
        if self.max_import_errors < 1:
            raise ValueError("max_import_errors must be at least 1.")
        if self.max_recipients < 1:
            raise ValueError("max_recipients must be at least 1.")
        if self.confirmation_timeout is not None and self.confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive when set.")


def load_settings(
    environ: Optional[Mapping[str, str]] = None, dotenv: bool = True
) -> EngineSettings:
    """Build settings from ``MULTISEND_*`` variables, reading ``.env`` first."""

    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ

    def get(name: str) -> Optional[str]:
        value = environ.get(ENV_PREFIX + name)
        if value is None or not value.strip():
            return None
        return value.strip()

    defaults = EngineSettings()
    timeout = get("CONFIRMATION_TIMEOUT")
    store_path = get("STORE_PATH")
    return EngineSettings(
        distributor_address=get("DISTRIBUTOR_ADDRESS"),
        history_capacity=_int(get("HISTORY_CAPACITY"), defaults.history_capacity, "HISTORY_CAPACITY"),
        max_import_errors=_int(get("MAX_IMPORT_ERRORS"), defaults.max_import_errors, "MAX_IMPORT_ERRORS"),
        max_recipients=_int(get("MAX_RECIPIENTS"), defaults.max_recipients, "MAX_RECIPIENTS"),
        gas_thresholds=GasThresholds(
            low=_int(get("GAS_LOW_THRESHOLD"), defaults.gas_thresholds.low, "GAS_LOW_THRESHOLD"),
            medium=_int(
                get("GAS_MEDIUM_THRESHOLD"), defaults.gas_thresholds.medium, "GAS_MEDIUM_THRESHOLD"
            ),
        ),
        confirmation_timeout=_float(timeout, "CONFIRMATION_TIMEOUT") if timeout else None,
        store_path=Path(store_path) if store_path else defaults.store_path,
    )


def _int(value: Optional[str], default: int, name: str) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer.") from exc


def _float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number.") from exc
