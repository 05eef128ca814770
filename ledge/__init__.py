"""
Ledge: legislative monitoring for The Daily Law.

Ingests federal and state bills, synthesizes articles with an LLM and
scores every bill against each subscriber's organizational goal.
"""

__version__ = "1.0.0"
