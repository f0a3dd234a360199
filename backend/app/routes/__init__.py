# Routes package init
"""
PinDrop Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:             /api/auth (register, login, me)
    - users.py:            /api/users (profiles, search, follow/unfollow)
    - follow_requests.py:  /api/follow-requests (inbox, accept, reject)
    - pins.py:             /api/pins, /api/comments
    - health.py:           /health

Routes stay thin: resolve the caller, call a service, shape the response.
"""
