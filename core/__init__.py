"""Core (UI-agnostic) capsule tracker logic.

This package contains:
- the embedded capsule dataset and load-time validation
- date utilities and status classification (``now`` is always passed in)
- filter/sort normalization and the query engine
- aggregation and page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
