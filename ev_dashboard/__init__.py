"""Core (UI-agnostic) EV registrations dashboard logic.

This package contains:
- CSV loading and record normalization (CSV -> pandas)
- filter state, cascading filter options and dashboard state transitions
- aggregation, pagination and record-detail payloads (JSON-serializable)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
