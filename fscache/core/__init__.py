"""Core Layer: pool logic shared by every storage backend.

Key validation, expiry bookkeeping, deferred saves and tag invalidation live
here; backends only provide the raw storage primitives.
"""
