"""
Client library integrations.

Each integration module exposes ``targets()`` returning the WrapTargets a
MethodWrapper should install.
"""

from marktrace.integrations import http, redis

__all__ = ["http", "redis"]
