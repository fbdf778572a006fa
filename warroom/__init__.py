"""WarRoom — operational incident tracking, audit timeline and analytics."""

__version__ = "1.0.0"
