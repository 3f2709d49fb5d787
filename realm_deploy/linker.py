"""
Library linking for EVM bytecode.

Compiled bytecode that calls external library functions contains a 40
character placeholder where the library address goes. Two formats exist:

- legacy: ``__Base64________________________________`` (name padded with ``_``)
- hashed: ``__$<34 hex chars of keccak256("path:Name")>$__`` (solc >= 0.5)

Hex bytecode never contains ``_``, so every underscore starts a placeholder.
"""

import re
from typing import List, Optional

from web3 import Web3

from .errors import LinkError

PLACEHOLDER_LENGTH = 40
_PLACEHOLDER_RE = re.compile(r"__.{38}")


def legacy_placeholder(name: str) -> str:
    """Returns the name based placeholder for a library."""
    return ("__" + name[:36]).ljust(PLACEHOLDER_LENGTH, "_")


def hashed_placeholder(fully_qualified_name: str) -> str:
    """Returns the keccak based placeholder for ``path:Name``."""
    digest = Web3.to_hex(Web3.keccak(text=fully_qualified_name))[2:]
    return "__$" + digest[:34] + "$__"


def placeholders_for(name: str, source_path: Optional[str] = None) -> List[str]:
    placeholders = [legacy_placeholder(name)]
    if source_path:
        placeholders.append(hashed_placeholder(f"{source_path}:{name}"))
    return placeholders


def find_placeholders(bytecode: str) -> List[str]:
    """Unresolved placeholders in order of first appearance, without duplicates."""
    found = []
    for match in _PLACEHOLDER_RE.finditer(bytecode or ""):
        if match.group(0) not in found:
            found.append(match.group(0))
    return found


def normalize_address(address: str) -> str:
    """Validates an address and returns its 40 lowercase hex chars."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise LinkError(f"Invalid library address: {address!r}")
    return Web3.to_checksum_address(address)[2:].lower()


def link_bytecode(bytecode: str, name: str, address: str, source_path: Optional[str] = None) -> str:
    """Replaces every placeholder of library ``name`` with ``address``."""
    hex_address = normalize_address(address)
    linked = bytecode
    for placeholder in placeholders_for(name, source_path):
        linked = linked.replace(placeholder, hex_address)
    return linked
