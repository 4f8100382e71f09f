"""Application errors raised by the map server."""

# Shown to users in place of the error text, which stays in the log.
PUBLIC_MESSAGE = 'This map is not configured correctly. Please contact the site administrators.'


class MapServerError(Exception):
    """Base class for map server errors."""


class ConfigurationError(MapServerError):
    """A version is configured in a way that cannot be rendered."""

    def __init__(self, message: str, version_name: str = None):
        super().__init__(message)
        self.version_name = version_name


class GeneralVersionNotFoundError(MapServerError):
    """The fallback 'general' version does not exist."""

    def __init__(self, version_id: int = None):
        super().__init__(
            "No version with slug 'general' exists; cannot inherit a help URL"
            + (f" for version {version_id}" if version_id is not None else '')
        )
        self.version_id = version_id
