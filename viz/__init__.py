"""
Viz Insight backend.

Query orchestration, chart generation and chart mounting for the Viz
marketing-intelligence dashboard.
"""
