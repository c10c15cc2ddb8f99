"""Live dashboard metrics over socket.io."""

from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.realtime.events import SocketEvent
from foodie.realtime.server import get_event_emitter, sio

__all__ = ["DashboardBroadcaster", "SocketEvent", "get_event_emitter", "sio"]
