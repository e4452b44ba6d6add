"""nexusctl - retention cleanup for Nexus repository managers."""

__version__ = "0.3.0"
