"""Errors raised while talking to a container registry."""


class RegistryError(Exception):
    """Base class for failures that abort a single image lookup."""


class AuthError(RegistryError):
    """The registry's token endpoint did not hand out a usable token."""


class ListError(RegistryError):
    """A page of the tag listing could not be fetched."""


class NoMatchError(RegistryError):
    """No tag of the repository matched the configured pattern."""
