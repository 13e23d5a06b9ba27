"""WebRTC service integration.

Signaling, ICE/SDP negotiation and media relay stay with the hosted service;
this package only talks to its HTTP control API and receives its lifecycle events.
"""
