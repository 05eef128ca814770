"""
Data source adapters for Ledge.

Adapters fetch from Congress.gov, LegiScan and the research APIs and
normalize into the models in ``ledge.models``.
"""

from .base_adapter import BaseAdapter
from .congress_adapter import CongressAdapter
from .legiscan_adapter import LegiScanAdapter
from .research_adapters import ExaResearchAdapter, NewsDataAdapter, OpenFECAdapter

__all__ = [
    "BaseAdapter",
    "CongressAdapter",
    "LegiScanAdapter",
    "ExaResearchAdapter",
    "NewsDataAdapter",
    "OpenFECAdapter",
]
