"""Инфраструктура приложения (логирование, БД, почта, карго)."""

from .logger import setup_logging

__all__ = ["setup_logging"]
