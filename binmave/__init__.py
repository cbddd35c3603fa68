"""
Terminal client for endpoint-management execution results.

Fetches per-agent script results and shows them as a table, per-agent
trees, an aggregated tree with anomaly flags, or a diff against a
baseline execution.

Usage:
    binmave results 1234 --view tree
    binmave compare 1234 --baseline 1200
    binmave watch 1234
"""

__version__ = "0.1.0"
