# Services package init
"""
PinDrop Backend — Services Layer
==================================

Business logic between routes (HTTP) and the database.

Service Inventory:
    - visibility:     who may see a profile's content or a pin
    - FollowService:  follow edges and the follow request lifecycle
    - UserService:    accounts, profiles, listings with follow state
    - PinService:     pins, likes, comments, visibility-filtered listings

Every public method takes the AsyncSession as its first argument and only
flushes; committing is the caller's job.
"""
