"""Version information for portal-tenancy."""

__version__ = "0.1.0"
