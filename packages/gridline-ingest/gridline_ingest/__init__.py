"""
Pipeline runtime for gridline.

Provides provider clients, the odds ingestion service, the enrichment pass,
storage writers and batch jobs.
"""

from gridline_ingest.enrichment import EnrichmentResult, EnrichmentService
from gridline_ingest.ingestion import OddsIngestionResult, OddsIngestionService
from gridline_ingest.odds_fetcher import OddsAPIClient
from gridline_ingest.stats_fetcher import StatsAPIClient
from gridline_ingest.windows import TimeWindow, current_week_window, rolling_window

__all__ = [
    # Clients
    "OddsAPIClient",
    "StatsAPIClient",
    # Pipelines
    "OddsIngestionService",
    "OddsIngestionResult",
    "EnrichmentService",
    "EnrichmentResult",
    # Windows
    "TimeWindow",
    "current_week_window",
    "rolling_window",
]
