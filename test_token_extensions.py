import hashlib
import struct

import pytest
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_2022_PROGRAM_ID

import token_config
from token_extensions import (
    ExtensionType,
    get_mint_len,
    initialize_metadata_pointer,
    initialize_token_metadata,
    initialize_transfer_fee_config,
    metadata_len,
    pack_token_metadata,
)


def test_supply_and_max_fee_in_base_units():
    assert token_config.total_supply_base_units() == 10**18
    assert token_config.max_transfer_fee() == 5 * 10**16
    assert token_config.max_transfer_fee() * 20 == token_config.total_supply_base_units()


def test_mint_len_without_extensions():
    assert get_mint_len([]) == 82


def test_mint_len_transfer_fee_and_metadata_pointer():
    assert get_mint_len([ExtensionType.TRANSFER_FEE_CONFIG, ExtensionType.METADATA_POINTER]) == 346


def test_mint_len_skips_multisig_size():
    extensions = [
        ExtensionType.TRANSFER_FEE_CONFIG,
        ExtensionType.MINT_CLOSE_AUTHORITY,
        ExtensionType.PERMANENT_DELEGATE,
        ExtensionType.DEFAULT_ACCOUNT_STATE,
    ]
    assert get_mint_len(extensions) == 357


def test_pack_token_metadata_layout():
    mint = Pubkey.new_unique()
    authority = Pubkey.new_unique()
    packed = pack_token_metadata(mint, "A", "B", "", update_authority=authority, additional_metadata=[("k", "vv")])

    assert packed[:32] == bytes(authority)
    assert packed[32:64] == bytes(mint)
    assert packed[64:69] == struct.pack("<I", 1) + b"A"
    assert packed[69:74] == struct.pack("<I", 1) + b"B"
    assert packed[74:78] == struct.pack("<I", 0)
    assert packed[78:82] == struct.pack("<I", 1)
    assert packed[82:] == struct.pack("<I", 1) + b"k" + struct.pack("<I", 2) + b"vv"


def test_pack_token_metadata_without_update_authority_is_zeroed():
    packed = pack_token_metadata(Pubkey.new_unique(), "A", "B", "")
    assert packed[:32] == bytes(32)


def test_metadata_len_is_deterministic():
    mint = Pubkey.new_unique()
    args = (mint, token_config.TOKEN_NAME, token_config.TOKEN_SYMBOL, token_config.TOKEN_URI)
    extra = [("description", token_config.TOKEN_DESCRIPTION)]
    assert metadata_len(*args, additional_metadata=extra) == metadata_len(*args, additional_metadata=extra)
    # mint/authority are fixed-size, so a different mint gives the same length
    assert metadata_len(Pubkey.new_unique(), *args[1:], additional_metadata=extra) == metadata_len(
        *args, additional_metadata=extra
    )


def test_metadata_len_small_record():
    assert metadata_len(Pubkey.new_unique(), "A", "B", "") == 2 + 2 + 64 + 5 + 5 + 4 + 4


def test_metadata_len_grows_with_uri_and_description():
    mint = Pubkey.new_unique()
    short = metadata_len(mint, "N", "S", "https://a", additional_metadata=[("description", "x")])
    longer_uri = metadata_len(mint, "N", "S", "https://a/b/c", additional_metadata=[("description", "x")])
    longer_desc = metadata_len(mint, "N", "S", "https://a", additional_metadata=[("description", "xyz")])
    assert longer_uri == short + 4
    assert longer_desc == short + 2


def test_initialize_transfer_fee_config_encoding():
    mint = Pubkey.new_unique()
    tax_wallet = Pubkey.new_unique()
    ix = initialize_transfer_fee_config(mint, None, tax_wallet, 500, 5 * 10**16)

    assert ix.program_id == TOKEN_2022_PROGRAM_ID
    assert len(ix.accounts) == 1
    assert ix.accounts[0].pubkey == mint
    assert ix.accounts[0].is_writable
    assert not ix.accounts[0].is_signer

    data = bytes(ix.data)
    assert len(data) == 78
    assert data[:2] == bytes([26, 0])
    assert data[2:35] == bytes(33)
    assert data[35] == 1
    assert data[36:68] == bytes(tax_wallet)
    assert struct.unpack("<HQ", data[68:]) == (500, 5 * 10**16)


@pytest.mark.parametrize("bps, max_fee", [(10_001, 0), (-1, 0), (500, 2**64), (500, -1)])
def test_initialize_transfer_fee_config_rejects_out_of_range(bps, max_fee):
    with pytest.raises(ValueError):
        initialize_transfer_fee_config(Pubkey.new_unique(), None, None, bps, max_fee)


def test_initialize_metadata_pointer_encoding():
    mint = Pubkey.new_unique()
    authority = Pubkey.new_unique()
    ix = initialize_metadata_pointer(mint, authority, mint)

    data = bytes(ix.data)
    assert data == bytes([39, 0]) + bytes(authority) + bytes(mint)
    assert [meta.pubkey for meta in ix.accounts] == [mint]


def test_initialize_metadata_pointer_without_authority():
    mint = Pubkey.new_unique()
    data = bytes(initialize_metadata_pointer(mint, None, mint).data)
    assert data[2:34] == bytes(32)


def test_initialize_token_metadata_encoding():
    mint = Pubkey.new_unique()
    authority = Pubkey.new_unique()
    ix = initialize_token_metadata(mint, mint, authority, authority, "Name", "SYM", "https://x")

    data = bytes(ix.data)
    discriminator = hashlib.sha256(b"spl_token_metadata_interface:initialize_account").digest()[:8]
    assert data[:8] == discriminator
    assert data[8:] == (
        struct.pack("<I", 4) + b"Name" + struct.pack("<I", 3) + b"SYM" + struct.pack("<I", 9) + b"https://x"
    )

    metadata, update_authority, mint_meta, mint_authority = ix.accounts
    assert metadata.pubkey == mint and metadata.is_writable
    assert update_authority.pubkey == authority and not update_authority.is_signer
    assert mint_meta.pubkey == mint and not mint_meta.is_writable
    assert mint_authority.pubkey == authority and mint_authority.is_signer
