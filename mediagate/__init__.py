"""
MediaGate - profile-driven media ingest to object storage.
"""

__version__ = "1.0.0"
