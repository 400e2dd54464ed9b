"""Realtime event stream: bus, reconciler and Socket.IO transport."""

from .events import EventBus, EventKind, Subscription
from .reconciler import RealtimeReconciler
from .transport import SocketIOTransport


__all__ = [
    "EventBus",
    "EventKind",
    "RealtimeReconciler",
    "SocketIOTransport",
    "Subscription",
]
