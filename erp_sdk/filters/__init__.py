# erp_sdk/filters/__init__.py
from .base import DefaultFilter, build_resource_filter

__all__ = ["DefaultFilter", "build_resource_filter"]
