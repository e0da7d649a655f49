"""Utility helpers."""

from .resource_loader import get_app_data_dir

__all__ = ["get_app_data_dir"]
