"""Core (UI-agnostic) survey logic.

This package contains:
- phone normalization and duplicate detection
- the local JSON cache and the remote (Apps Script) sync client
- the entry store and aggregate statistics (pandas)
- chart helpers (Altair -> Vega-Lite spec dict) and xlsx export
- the submission / refresh flows shared by the API and the Streamlit app
"""
