"""
Monitoring Layer - Notifications.

This module provides:
    - AlertManager: Telegram alerts for triggers and winning settlements,
      with deduplication
"""
from .alerting import AlertManager, AlertRecord

__all__ = [
    "AlertManager",
    "AlertRecord",
]
