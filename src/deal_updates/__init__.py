"""CRM deal-notes import, deduplication, diffing, and health scoring."""

__version__ = "0.1.0"
