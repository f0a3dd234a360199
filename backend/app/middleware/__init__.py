# Middleware package init
"""
PinDrop Backend — Middleware Package
======================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: rejected requests cost nothing downstream
    2. Request ID: assigned before anything logs
    3. Logging: one access line per request, tagged with the request id
"""
