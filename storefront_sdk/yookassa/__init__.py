from .client import YooKassaClient, YooKassaConnectionError, YooKassaError, YooKassaHTTPError

__all__ = [
    "YooKassaClient",
    "YooKassaConnectionError",
    "YooKassaError",
    "YooKassaHTTPError",
]
