"""
padlink - Remote Trackpad Host

Lets a paired phone or tablet drive the host pointer.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another

Modules:
- auth: Bearer token issuance, validation and expiry
- storage: Durable snapshot backends
- actuator: Pointer backend probing and movement
"""

__version__ = "1.0.0"
