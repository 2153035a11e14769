from fastapi import Request

from meditrack.config import get_settings


def client_ip(request: Request = None) -> str:
    """Caller address for activity-log entries; loopback when unknown."""
    if request is not None and request.client is not None:
        return request.client.host
    return get_settings().DEFAULT_IP_ADDRESS
