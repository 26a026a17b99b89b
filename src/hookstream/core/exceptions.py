"""Exception hierarchy for the relay."""


class HookstreamError(RuntimeError):
    """Base exception raised for relay failures."""


class StreamApiError(HookstreamError):
    """Raised when the stream API client is misconfigured.

    Network and HTTP failures are never raised; they are reported through
    ``PublishResult`` instead.
    """
