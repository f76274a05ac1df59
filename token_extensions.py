# token_extensions.py
#
# Token-2022 extension instructions that spl.token.instructions does not ship:
# transfer fee config, metadata pointer and the token-metadata interface.

import hashlib
import struct
from enum import IntEnum
from typing import Optional, Sequence, Tuple

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_2022_PROGRAM_ID

# --- Account layout sizes ---
MINT_SIZE = 82
ACCOUNT_SIZE = 165
MULTISIG_SIZE = 355
ACCOUNT_TYPE_SIZE = 1
TYPE_SIZE = 2
LENGTH_SIZE = 2

U64_MAX = 2**64 - 1
MAX_FEE_BASIS_POINTS = 10_000

# Top-level Token-2022 instruction tags
TRANSFER_FEE_EXTENSION = 26
METADATA_POINTER_EXTENSION = 39
# Sub-instruction shared by both extensions
INITIALIZE = 0

TOKEN_METADATA_INITIALIZE = hashlib.sha256(b"spl_token_metadata_interface:initialize_account").digest()[:8]


class ExtensionType(IntEnum):
    TRANSFER_FEE_CONFIG = 1
    MINT_CLOSE_AUTHORITY = 3
    DEFAULT_ACCOUNT_STATE = 6
    NON_TRANSFERABLE = 9
    INTEREST_BEARING_CONFIG = 10
    PERMANENT_DELEGATE = 12
    TRANSFER_HOOK = 14
    METADATA_POINTER = 18
    GROUP_POINTER = 20


EXTENSION_SIZES = {
    ExtensionType.TRANSFER_FEE_CONFIG: 108,
    ExtensionType.MINT_CLOSE_AUTHORITY: 32,
    ExtensionType.DEFAULT_ACCOUNT_STATE: 1,
    ExtensionType.NON_TRANSFERABLE: 0,
    ExtensionType.INTEREST_BEARING_CONFIG: 52,
    ExtensionType.PERMANENT_DELEGATE: 32,
    ExtensionType.TRANSFER_HOOK: 64,
    ExtensionType.METADATA_POINTER: 64,
    ExtensionType.GROUP_POINTER: 64,
}


def get_mint_len(extensions: Sequence[ExtensionType]) -> int:
    """Size of a mint account holding the given fixed-length extensions."""
    if not extensions:
        return MINT_SIZE
    length = ACCOUNT_SIZE + ACCOUNT_TYPE_SIZE
    for extension in extensions:
        length += TYPE_SIZE + LENGTH_SIZE + EXTENSION_SIZES[ExtensionType(extension)]
    # A mint must never be mistaken for a multisig account
    if length == MULTISIG_SIZE:
        length += TYPE_SIZE
    return length


def _pack_string(value):
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def _optional_pubkey(key):
    return bytes(key) if key is not None else bytes(Pubkey.default())


def _coption_pubkey(key):
    if key is None:
        return b"\x00" + bytes(Pubkey.default())
    return b"\x01" + bytes(key)


def pack_token_metadata(
    mint: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    update_authority: Optional[Pubkey] = None,
    additional_metadata: Sequence[Tuple[str, str]] = (),
) -> bytes:
    """Borsh-encode a TokenMetadata record the way the mint stores it."""
    data = _optional_pubkey(update_authority) + bytes(mint)
    data += _pack_string(name) + _pack_string(symbol) + _pack_string(uri)
    data += struct.pack("<I", len(additional_metadata))
    for key, value in additional_metadata:
        data += _pack_string(key) + _pack_string(value)
    return data


def metadata_len(
    mint: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    update_authority: Optional[Pubkey] = None,
    additional_metadata: Sequence[Tuple[str, str]] = (),
) -> int:
    """Bytes the metadata TLV entry adds to the mint once initialized."""
    packed = pack_token_metadata(mint, name, symbol, uri, update_authority, additional_metadata)
    return TYPE_SIZE + LENGTH_SIZE + len(packed)


def initialize_transfer_fee_config(
    mint: Pubkey,
    config_authority: Optional[Pubkey],
    withdraw_authority: Optional[Pubkey],
    fee_basis_points: int,
    max_fee: int,
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    if not 0 <= fee_basis_points <= MAX_FEE_BASIS_POINTS:
        raise ValueError(f"fee_basis_points must be between 0 and {MAX_FEE_BASIS_POINTS}, got {fee_basis_points}")
    if not 0 <= max_fee <= U64_MAX:
        raise ValueError(f"max_fee does not fit in a u64: {max_fee}")

    data = bytes([TRANSFER_FEE_EXTENSION, INITIALIZE])
    data += _coption_pubkey(config_authority)
    data += _coption_pubkey(withdraw_authority)
    data += struct.pack("<HQ", fee_basis_points, max_fee)
    return Instruction(
        program_id=program_id,
        accounts=[AccountMeta(mint, is_signer=False, is_writable=True)],
        data=data,
    )


def initialize_metadata_pointer(
    mint: Pubkey,
    authority: Optional[Pubkey],
    metadata_address: Optional[Pubkey],
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    data = bytes([METADATA_POINTER_EXTENSION, INITIALIZE])
    data += _optional_pubkey(authority) + _optional_pubkey(metadata_address)
    return Instruction(
        program_id=program_id,
        accounts=[AccountMeta(mint, is_signer=False, is_writable=True)],
        data=data,
    )


def initialize_token_metadata(
    mint: Pubkey,
    metadata: Pubkey,
    update_authority: Pubkey,
    mint_authority: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    program_id: Pubkey = TOKEN_2022_PROGRAM_ID,
) -> Instruction:
    # Only name, symbol and uri travel with initialize; extra fields need update_field
    data = TOKEN_METADATA_INITIALIZE + _pack_string(name) + _pack_string(symbol) + _pack_string(uri)
    return Instruction(
        program_id=program_id,
        accounts=[
            AccountMeta(metadata, is_signer=False, is_writable=True),
            AccountMeta(update_authority, is_signer=False, is_writable=False),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(mint_authority, is_signer=True, is_writable=False),
        ],
        data=data,
    )
