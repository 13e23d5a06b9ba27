"""Conference state for the single active WebRTC session.

Holds the participant registry, the subscription fan-out and the context object
that ties both to the session id handed out by the WebRTC service.
"""
