"""
Authentication Module - Black Box Interface

Purpose: Issue and validate bearer tokens for paired clients
Interface: generate_token(), issue(), is_known(), touch(), has_any()
Hidden: Token storage, expiry sweeps, constant-time matching, persistence

This module can be replaced with any other auth implementation without
affecting the transport or the pointer actuator.
"""

from .persistence import decode_snapshot, encode_snapshot, load_registry, save_registry
from .registry import EXPIRY_WINDOW_MS, TokenRecord, tokens_match
from .service import AuthResult, ConnectionAuthenticator
from .token_store import TokenStore

__all__ = [
    "EXPIRY_WINDOW_MS",
    "AuthResult",
    "ConnectionAuthenticator",
    "TokenRecord",
    "TokenStore",
    "decode_snapshot",
    "encode_snapshot",
    "load_registry",
    "save_registry",
    "tokens_match",
]
