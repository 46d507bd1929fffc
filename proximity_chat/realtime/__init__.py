"""Realtime transport (Socket.IO).

Holds the one Socket.IO server instance and its event handlers. Presence
logic lives in ``proximity_chat.presence``; this package only moves
events in and messages out.
"""
