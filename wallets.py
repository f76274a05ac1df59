# wallets.py

import json
import os
from typing import Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_2022_PROGRAM_ID

import token_config


class KeypairFileError(ValueError):
    """The key file exists but does not hold a usable keypair."""


def load_keypair(path: str, secret_key: Optional[str] = None) -> Keypair:
    """Load a keypair saved by the Solana CLI (a JSON array of 64 byte values).

    A base58 `secret_key` (SECRET_KEY in .env) takes precedence over the file.
    A missing file means "no wallet yet" and a fresh keypair is generated.
    A file that is present but broken is an error, we never replace it silently.
    """
    if secret_key:
        return Keypair.from_base58_string(secret_key)

    if not os.path.exists(path):
        print(f"No keypair found at {path}, generating a new one...")
        return Keypair()

    try:
        with open(path) as f:
            keypair_data = json.load(f)
        return Keypair.from_bytes(bytes(keypair_data))
    except (ValueError, TypeError) as e:
        raise KeypairFileError(f"Keypair file {path} is not a valid Solana keypair: {e}") from e


def private_key_hex(keypair):
    return bytes(keypair).hex()


def wallet_info(deployer: Keypair, tax_wallet: Keypair) -> dict:
    # IMPORTANT: these are raw private keys - DEV ONLY
    return {
        "deployer": {
            "publicKey": str(deployer.pubkey()),
            "privateKey": private_key_hex(deployer),
        },
        "taxWallet": {
            "publicKey": str(tax_wallet.pubkey()),
            "privateKey": private_key_hex(tax_wallet),
        },
    }


def token_info(mint: Pubkey, deployer: Pubkey, tax_wallet: Pubkey, program_id: Optional[Pubkey] = None) -> dict:
    program_id = program_id or TOKEN_2022_PROGRAM_ID
    return {
        "name": token_config.TOKEN_NAME,
        "symbol": token_config.TOKEN_SYMBOL,
        "mint": str(mint),
        "decimals": token_config.TOKEN_DECIMALS,
        "deployer": str(deployer),
        "taxWallet": str(tax_wallet),
        "transfer_tax_bps": token_config.TRANSFER_TAX_BPS,
        "program_id": str(program_id),
        "metadata": {
            "metadataPointer": {
                "authority": str(deployer),
                "metadataAddress": str(mint),
            },
            "tokenMetadata": {
                "mint": str(mint),
                "name": token_config.TOKEN_NAME,
                "symbol": token_config.TOKEN_SYMBOL,
                "uri": token_config.TOKEN_URI,
                "updateAuthority": str(deployer),
                "additionalMetadata": [["description", token_config.TOKEN_DESCRIPTION]],
            },
        },
    }


def _write_json(path, data):
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def write_artifacts(output_dir: str, wallets: dict, token: dict) -> list:
    """Write the wallet and token files, overwriting old ones. Returns the paths written."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for name, data in (
        (token_config.WALLETS_FILE, wallets),
        (token_config.TOKEN_INFO_FILE, token),
        (token_config.REWARDS_WALLETS_FILE, wallets),
    ):
        path = os.path.join(output_dir, name)
        _write_json(path, data)
        print(f"📝 Saved {path}")
        paths.append(path)
    return paths
