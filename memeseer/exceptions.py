class MemeseerError(Exception):
    pass


class InvalidAddressError(MemeseerError, ValueError):
    """Token address is not 0x followed by 40 hex characters."""


class GatewayError(MemeseerError):
    pass


class GatewayUnavailable(GatewayError):
    """Explorer call failed after retries (timeout, 429, 5xx, bad body)."""


class GatewayNotFound(GatewayUnavailable):
    """Explorer answered 404 for the requested resource."""
