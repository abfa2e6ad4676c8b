"""
server
======

HTTP/WebSocket side of the odds cache: settings, the push hub, and response
shaping for the REST routes defined in `app.py`.
"""
