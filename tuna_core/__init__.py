"""Core (UI-agnostic) dashboard logic.

This package contains:
- the static yearly source table and the derived-metrics transform
- filter normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
