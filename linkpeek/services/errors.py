"""Error taxonomy for metadata resolution.

:class:`MetadataError` subclasses reach the HTTP caller and carry the status
code they map to. :class:`ProviderError` never leaves the resolver: it only
signals that a provider tier failed and the next one should be tried.
"""


class MetadataError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(MetadataError):
    status_code = 400


class Unauthorized(MetadataError):
    status_code = 401


class UpstreamFetchError(MetadataError):
    status_code = 502


class ExtractionError(MetadataError):
    status_code = 500


class BlockedURL(Exception):
    """The fetcher refused a URL: bad scheme, no host, or an internal address."""


class ProviderError(Exception):
    """A provider tier (oEmbed, Data API) could not produce metadata."""


class VideoNotFound(ProviderError):
    pass
