"""Adapters connecting the reconciliation pipeline to sources and storage."""
