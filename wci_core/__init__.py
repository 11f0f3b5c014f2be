"""Core (UI-agnostic) account-performance dashboard logic.

This package contains:
- numeric normalization of report cells
- record/snapshot building from decoded workbook grids
- safe field access and the display metric bundle
- yearly aggregation across periods
- data loading (period folders -> XLSX -> snapshots)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
