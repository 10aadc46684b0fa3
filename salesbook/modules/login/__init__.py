"""
Login module package exports.

- AppSession: signs users in/out and owns the store, repositories and sync engine.
- AuthError: failed login or an operation that needs a signed-in user.
"""

from .session import AppSession, AuthError

__all__ = [
    "AppSession",
    "AuthError",
]
