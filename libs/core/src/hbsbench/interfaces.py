from __future__ import annotations
from typing import Protocol, Tuple, runtime_checkable

"""Algorithm interfaces used by adapters.

Adapters implement these Protocols and register themselves into the global
registry. The CLI interacts only with these interfaces, never with a scheme's
key objects directly.
"""

@runtime_checkable
class Signature(Protocol):
    """Byte-level digital signature contract shared by every adapter."""
    name: str
    def keygen(self) -> Tuple[bytes, bytes]: ...
    def sign(self, secret_key: bytes, message: bytes) -> bytes: ...
    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool: ...

@runtime_checkable
class SchemeDescriptor(Protocol):
    """Descriptive surface a scheme exposes to reporting code."""
    def algorithm_name(self) -> str: ...
    def backend_name(self) -> str: ...
    def param_set_name(self) -> str: ...
    def max_signatures_per_key(self) -> int: ...
    def public_key_bytes(self) -> int: ...
    def secret_key_bytes(self) -> int: ...
    def signature_bytes(self) -> int: ...
