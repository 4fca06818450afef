"""Utility modules for furniture-scraper."""

from .console import console, save_run_log
from .settle import Settler

__all__ = ["console", "save_run_log", "Settler"]
