"""Core (UI-agnostic) device dashboard logic.

This package contains:
- date normalization (DD.MM.YYYY -> date, day offsets)
- data loading (CSV rows -> dataset store)
- filter state + filter engine
- per-chart aggregators
- chart helpers (Altair -> Vega-Lite spec dict)
- the chart sync controller tying filters and charts together
"""
