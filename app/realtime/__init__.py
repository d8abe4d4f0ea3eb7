"""Realtime infrastructure (Socket.IO).

Holds the Socket.IO server, the transport adapter that delivers classroom
effects, and the command channel that feeds inbound events to the classroom
one at a time.
"""
