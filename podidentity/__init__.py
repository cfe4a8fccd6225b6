"""podidentity: hot-reloadable workload identity cache for credential patching."""

__version__ = "0.1.0"
