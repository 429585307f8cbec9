"""Data models decoded from Envoy local API payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _first(item: dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value found under any of the keys."""

    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _coerce_float(val: Any) -> float | None:
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return float(val)
    if isinstance(val, str):
        s = val.strip()
        if not s:
            return None
        try:
            return float(s)
        except ValueError:
            return None
    return None


def _coerce_int(val: Any) -> int | None:
    num = _coerce_float(val)
    if num is None:
        return None
    return int(num)


def _coerce_bool(val: Any) -> bool | None:
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return bool(val)
    if isinstance(val, str):
        s = val.strip().lower()
        if s in ("true", "1", "yes"):
            return True
        if s in ("false", "0", "no"):
            return False
    return None


def _coerce_str(val: Any) -> str | None:
    if val is None:
        return None
    return str(val)


@dataclass
class InventoryDevice:
    """A single part listed under an inventory entry."""

    part_number: str | None = None
    serial_number: str | None = None
    installed: int | None = None
    device_status: list[str] = field(default_factory=list)
    producing: bool | None = None
    communicating: bool | None = None
    provisioned: bool | None = None
    operating: bool | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> InventoryDevice:
        status = item.get("device_status") or item.get("deviceStatus") or []
        if isinstance(status, str):
            status = [status]
        elif not isinstance(status, list):
            status = []
        return cls(
            part_number=_coerce_str(_first(item, "partNumber", "part_num")),
            serial_number=_coerce_str(_first(item, "serialNumber", "serial_num")),
            installed=_coerce_int(item.get("installed")),
            device_status=[str(s) for s in status],
            producing=_coerce_bool(item.get("producing")),
            communicating=_coerce_bool(item.get("communicating")),
            provisioned=_coerce_bool(item.get("provisioned")),
            operating=_coerce_bool(item.get("operating")),
            raw=dict(item),
        )


@dataclass
class InventoryItem:
    """One entry of the Envoy inventory listing.

    The unit groups parts by type (``PCU``, ``ACB``, ``NSRB``...), each entry
    carrying a ``devices`` list. Flat part entries are accepted as well, in
    which case ``part_number``/``serial_number`` are set on the item itself.
    """

    type: str | None = None
    devices: list[InventoryDevice] = field(default_factory=list)
    part_number: str | None = None
    serial_number: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> InventoryItem:
        devices = item.get("devices")
        if not isinstance(devices, list):
            devices = []
        return cls(
            type=_coerce_str(item.get("type")),
            devices=[
                InventoryDevice.from_dict(dev) for dev in devices if isinstance(dev, dict)
            ],
            part_number=_coerce_str(_first(item, "partNumber", "part_num")),
            serial_number=_coerce_str(_first(item, "serialNumber", "serial_num")),
            raw=dict(item),
        )


@dataclass
class Measurement:
    """A production, consumption or storage reading block."""

    type: str | None = None
    measurement_type: str | None = None
    active_count: int | None = None
    reading_time: int | None = None
    w_now: float | None = None
    wh_lifetime: float | None = None
    wh_today: float | None = None
    wh_last_seven_days: float | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> Measurement:
        return cls(
            type=_coerce_str(item.get("type")),
            measurement_type=_coerce_str(item.get("measurementType")),
            active_count=_coerce_int(item.get("activeCount")),
            reading_time=_coerce_int(item.get("readingTime")),
            w_now=_coerce_float(item.get("wNow")),
            wh_lifetime=_coerce_float(item.get("whLifetime")),
            wh_today=_coerce_float(item.get("whToday")),
            wh_last_seven_days=_coerce_float(item.get("whLastSevenDays")),
            raw=dict(item),
        )


def _measurements(payload: dict[str, Any], key: str) -> list[Measurement]:
    value = payload.get(key)
    if not isinstance(value, list):
        return []
    return [Measurement.from_dict(item) for item in value if isinstance(item, dict)]


@dataclass
class Production:
    """Snapshot of the production and consumption sensors."""

    w_now: float | None = None
    wh_lifetime: float | None = None
    production: list[Measurement] = field(default_factory=list)
    consumption: list[Measurement] = field(default_factory=list)
    storage: list[Measurement] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Production:
        return cls(
            w_now=_coerce_float(payload.get("wNow")),
            wh_lifetime=_coerce_float(payload.get("whLifetime")),
            production=_measurements(payload, "production"),
            consumption=_measurements(payload, "consumption"),
            storage=_measurements(payload, "storage"),
            raw=dict(payload),
        )

    def measurement(self, measurement_type: str) -> Measurement | None:
        """Return the first block with the given measurementType, if any.

        Looks through production then consumption, e.g. ``"production"``,
        ``"total-consumption"`` or ``"net-consumption"``.
        """

        for item in (*self.production, *self.consumption):
            if item.measurement_type == measurement_type:
                return item
        return None
