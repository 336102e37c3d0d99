"""
Operation records handed out by the generators, plus the helpers that derive
key names and value buffers from key ordinals.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .int_hasher import hash_int


def get_key_prefix():
    return "user"


class OpType(Enum):
    INSERT = "INSERT"
    READ = "READ"
    UPDATE = "UPDATE"
    RMW = "RMW"


@dataclass(frozen=True)
class Operation:
    kind: OpType
    key: str
    value: Optional[bytes] = None


def build_key_name(ordinal: int) -> str:
    """Externally visible key name for a key ordinal"""
    return f"{get_key_prefix()}{hash_int(ordinal)}"


def gen_new_value(key: str, value_len: int) -> bytes:
    """Value buffer of value_len bytes starting with the key name, zero padded"""
    return key.encode()[:value_len].ljust(value_len, b"\0")
