"""Version information for bnpl-security."""

__version__ = "0.1.0"
