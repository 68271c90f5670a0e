"""Core (UI-agnostic) dashboard logic.

This package contains:
- feed loading (published CSV -> raw rows -> typed records -> pandas)
- column resolution and pt-BR number/date parsing
- filter normalization (period, date range, channel selection)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
