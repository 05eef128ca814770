"""
Prefect flows for Ledge scheduled jobs.

This package contains flow definitions for:
- Daily bill ingestion and bulk import
- Nightly relevance scoring
- Bill status and update checks
- The daily newsletter

Responsibility: Define orchestration workflows using Prefect
"""
