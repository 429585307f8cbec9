"""Client for the local HTTP API of Enphase Envoy units."""

from .api import (
    EnvoyAuthRejected,
    EnvoyClient,
    EnvoyError,
    EnvoyNotOK,
    EnvoyPayloadError,
)
from .models import InventoryDevice, InventoryItem, Measurement, Production

__all__ = [
    "EnvoyAuthRejected",
    "EnvoyClient",
    "EnvoyError",
    "EnvoyNotOK",
    "EnvoyPayloadError",
    "InventoryDevice",
    "InventoryItem",
    "Measurement",
    "Production",
]
