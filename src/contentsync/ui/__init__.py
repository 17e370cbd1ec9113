"""User interfaces for contentsync."""
