"""WorkTrack identity and invitation API."""

__version__ = "0.1.0"
