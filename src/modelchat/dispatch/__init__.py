"""Chat dispatch module for modelchat.

Sends a thread's messages to a model, buffered or streaming, in process
or through the HTTP relay.
"""

from .base import Dispatcher, collect_stream
from .cancellation import CancellationToken
from .factory import create_dispatcher
from .local import LocalDispatcher
from .models import BufferedResponse, DispatchRequest, ErrorResponse, StreamEvent
from .remote import HttpDispatcher
from .sse import decode_sse_line, encode_sse, iter_sse_events, sse_generator

__all__ = [
    "BufferedResponse",
    "CancellationToken",
    "DispatchRequest",
    "Dispatcher",
    "ErrorResponse",
    "HttpDispatcher",
    "LocalDispatcher",
    "StreamEvent",
    "collect_stream",
    "create_dispatcher",
    "decode_sse_line",
    "encode_sse",
    "iter_sse_events",
    "sse_generator",
]
