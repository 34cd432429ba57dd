"""Ingestion engine: records, processing, state and ports."""
