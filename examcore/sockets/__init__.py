"""
Sockets Package
"""
from examcore.sockets.monitor_events import register_socket_events, notify_monitor

__all__ = ['register_socket_events', 'notify_monitor']
