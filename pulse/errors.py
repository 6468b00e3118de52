# pulse/errors.py


class FetchError(Exception):
    """Base for anything that stops a feed refresh or quote lookup."""


class RemoteError(FetchError):
    """Provider answered with an 'Error Message', 'Note' or 'Information' body."""


class TransportError(FetchError):
    """Network failure, bad HTTP status or a body that is not JSON."""


class NoDataAvailable(FetchError):
    """Quota exhausted and nothing cached to fall back on."""

    def __init__(self, message="API call limit reached and no cached data available."):
        super().__init__(message)
