"""Latest release tags for container images tracked across two registries."""

__version__ = "0.1.0"
