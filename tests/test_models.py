"""Tests for payload decoding into dataclasses."""

from __future__ import annotations

from enphase_envoy.models import InventoryDevice, InventoryItem, Measurement, Production

from .random_ids import RANDOM_SERIAL, RANDOM_SERIAL_ALT, generate_serial


def test_inventory_item_decodes_grouped_devices() -> None:
    payload = {
        "type": "PCU",
        "devices": [
            {
                "part_num": "800-00631-r02",
                "installed": "1650000000",
                "serial_num": RANDOM_SERIAL,
                "device_status": ["envoy.global.ok"],
                "producing": True,
                "communicating": True,
                "provisioned": True,
                "operating": True,
            },
            {
                "partNumber": "800-00631-r02",
                "serialNumber": RANDOM_SERIAL_ALT,
                "device_status": "envoy.cond_flags.pcu_ctrl.dc-pwr-low",
                "producing": "false",
            },
            "garbage",
        ],
    }

    item = InventoryItem.from_dict(payload)

    assert item.type == "PCU"
    assert len(item.devices) == 2
    first, second = item.devices
    assert first.serial_number == RANDOM_SERIAL
    assert first.installed == 1_650_000_000
    assert first.device_status == ["envoy.global.ok"]
    assert first.producing is True
    assert second.serial_number == RANDOM_SERIAL_ALT
    assert second.part_number == "800-00631-r02"
    assert second.device_status == ["envoy.cond_flags.pcu_ctrl.dc-pwr-low"]
    assert second.producing is False
    assert second.operating is None
    assert item.raw is not payload
    assert item.raw["type"] == "PCU"


def test_inventory_item_keeps_flat_part_fields() -> None:
    serial = generate_serial()
    item = InventoryItem.from_dict({"partNumber": "X", "serialNumber": serial})
    assert item.part_number == "X"
    assert item.serial_number == serial
    assert item.devices == []
    assert item.type is None


def test_inventory_device_ignores_unusable_values() -> None:
    dev = InventoryDevice.from_dict(
        {"installed": "", "device_status": 7, "communicating": "maybe"}
    )
    assert dev.installed is None
    assert dev.device_status == []
    assert dev.communicating is None


def test_production_decodes_top_level_readings() -> None:
    production = Production.from_dict({"wNow": 100, "whLifetime": 5000})
    assert production.w_now == 100
    assert production.wh_lifetime == 5000
    assert production.production == []
    assert production.raw == {"wNow": 100, "whLifetime": 5000}


def test_production_decodes_measurement_sections() -> None:
    payload = {
        "production": [
            {"type": "inverters", "activeCount": 12, "readingTime": 1700000000, "wNow": 2400, "whLifetime": 1234567},
            {"type": "eim", "activeCount": 1, "measurementType": "production", "wNow": "2390.5", "whToday": 8000.0, "whLastSevenDays": 60000},
        ],
        "consumption": [
            {"type": "eim", "measurementType": "total-consumption", "wNow": 900.25},
            {"type": "eim", "measurementType": "net-consumption", "wNow": -1490.25},
        ],
        "storage": [{"type": "acb", "activeCount": 0, "wNow": 0}],
    }

    production = Production.from_dict(payload)

    assert production.w_now is None
    assert len(production.production) == 2
    inverters = production.production[0]
    assert inverters.type == "inverters"
    assert inverters.active_count == 12
    assert inverters.reading_time == 1_700_000_000
    assert inverters.w_now == 2400.0
    eim = production.measurement("production")
    assert eim is not None and eim.w_now == 2390.5
    assert eim.wh_today == 8000.0
    assert eim.wh_last_seven_days == 60000.0
    net = production.measurement("net-consumption")
    assert net is not None and net.w_now == -1490.25
    assert production.measurement("missing") is None
    assert production.storage[0].type == "acb"


def test_measurement_rejects_booleans_as_numbers() -> None:
    m = Measurement.from_dict({"wNow": True, "activeCount": "3"})
    assert m.w_now is None
    assert m.active_count == 3
