"""Builders for the space scripts carried by ``execute`` requests."""

from __future__ import annotations

import binascii

from .errors import LocalValidationError

MAGIC = bytes([0xDE, 0xDE, 0xDE, 0xDE])
OP_SETFALLBACK = 0x04

OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_DROP = 0x75
MAX_SCRIPT_ELEMENT_SIZE = 520


def push_data(data: bytes) -> bytes:
    """Return *data* wrapped in the minimal push opcode."""

    length = len(data)
    if length > MAX_SCRIPT_ELEMENT_SIZE:
        raise LocalValidationError(
            f"Script push of {length} bytes exceeds the {MAX_SCRIPT_ELEMENT_SIZE} byte limit"
        )
    if length < OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    return bytes([OP_PUSHDATA2]) + length.to_bytes(2, "little") + data


def decode_hex_payload(raw: str) -> bytes:
    """Decode user supplied hex, reporting the decoder's message on failure."""

    try:
        return binascii.unhexlify(raw.strip())
    except (binascii.Error, ValueError) as exc:
        raise LocalValidationError(f"Could not hex decode data: {exc}") from exc


def create_set_fallback(data: bytes) -> bytes:
    """Script associating raw fallback *data* with the spaces in context."""

    payload = MAGIC + bytes([OP_SETFALLBACK]) + data
    return push_data(payload) + bytes([OP_DROP])
