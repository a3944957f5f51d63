"""
Storefront Reports
Configuration Module
"""
from .settings import Settings, ReportSettings, get_settings

__all__ = ["Settings", "ReportSettings", "get_settings"]
