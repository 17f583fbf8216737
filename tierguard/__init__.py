"""tierguard - version progression compliance across deployment tiers."""

__version__ = "0.1.0"
