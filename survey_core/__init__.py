"""Core (UI-agnostic) survey dashboard logic.

This package contains:
- entry/settings types and their persisted JSON schemas
- the local record store (two JSON documents)
- CSV import/export
- participant-weighted monthly aggregation
- filter normalization and page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
