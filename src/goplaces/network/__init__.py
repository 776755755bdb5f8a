"""Networking layer: reachability, request building, transport."""

from goplaces.network.reachability import ConnectivityProbe, ReachabilityMonitor, Subscription
from goplaces.network.requests import RequestBuilder, encode_json_body
from goplaces.network.responses import decode_list, decode_response, error_from_response
from goplaces.network.transport import Transport, TransportResponse, classify_transport_error

__all__ = [
    "ConnectivityProbe",
    "ReachabilityMonitor",
    "RequestBuilder",
    "Subscription",
    "Transport",
    "TransportResponse",
    "classify_transport_error",
    "decode_list",
    "decode_response",
    "encode_json_body",
    "error_from_response",
]
