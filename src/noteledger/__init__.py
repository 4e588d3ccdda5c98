"""
NoteLedger Backend - Versioned Note Sharing Service

Multi-user notes with optimistic concurrency control, append-only
version history, sharing and attachments.
"""

__version__ = "1.0.0"
