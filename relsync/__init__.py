"""relsync - release tracking and publishing for stable, preview and snapshot builds."""

__version__ = "0.3.0"
