"""Core building blocks shared by every portal-tenancy feature."""
