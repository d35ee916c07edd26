"""cvtrack - inbound résumé ingestion and candidate matching."""

__version__ = "1.0.0"
