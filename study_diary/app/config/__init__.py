"""Config package exporting loader helpers."""

from .loader import Settings, StoreConfig, load_settings

__all__ = ["Settings", "StoreConfig", "load_settings"]
