"""eGuard trust service client.

Public API:
    TrustClient        — fetch_trust(session_id) -> TrustResponse
    create_http_client — shared httpx.AsyncClient bounded by timeout_ms
"""
from eguard.trust.client import TrustClient, create_http_client

__all__ = ["TrustClient", "create_http_client"]
