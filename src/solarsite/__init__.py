"""SolarSite media library: image ingestion, variants and admin API."""

__version__ = "0.1.0"
