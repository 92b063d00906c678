"""
Football Alert Engine.

Evaluates user-defined match strategies against live football data,
issues bet tickets when a strategy triggers and settles them as matches
progress. Strategies are declarative (metric, operator, threshold)
criteria; the engine handles ingestion, storage, settlement and alerts.
"""

__version__ = "0.1.0"
