"""Periodic tasks driving the ingestion engine."""
