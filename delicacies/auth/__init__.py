"""
Authentication for Bihari Delicacies.

Cookie sessions held in memory, backed by the users collection.
"""

from delicacies.auth.sessions import SessionStore
from delicacies.auth.gateway import AuthGateway, AuthResult, public_user

__all__ = [
    "SessionStore",
    "AuthGateway",
    "AuthResult",
    "public_user",
]
