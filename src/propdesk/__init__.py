"""PropDesk: property back office mirrored from Smoobu."""

__version__ = "0.1.0"
