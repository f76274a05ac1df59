# token_config.py

import os
from dotenv import load_dotenv

# --- CONFIGURATION ---
load_dotenv()

# 1. Network and key file (can be overridden from .env)
RPC_URL = os.getenv("RPC_URL", "https://api.devnet.solana.com")
KEYPAIR_PATH = os.path.expanduser(os.getenv("KEYPAIR_PATH", "~/.config/solana/id.json"))
OUTPUT_DIR = os.getenv("OUTPUT_DIR", ".")
# Optional base58 deployer key, used instead of KEYPAIR_PATH when set
SECRET_KEY = os.getenv("SECRET_KEY")

# 2. Token settings
TOKEN_NAME = "Devnet Bitcoin Treasury Machine"
TOKEN_SYMBOL = "DBTM"
TOKEN_DECIMALS = 9
TOKEN_SUPPLY = 1_000_000_000  # 1 billion tokens
TRANSFER_TAX_BPS = 500  # 5% tax (500 basis points)
TOKEN_DESCRIPTION = "Devnet Bitcoin Treasury Machine"
TOKEN_URI = "https://i.degencdn.com/ipfs/bafkreihgh6b6jn4ivlskgyw6bqkwp4z7aegiqzxjot735iy7c5ib7m5zyq"

# The max fee is set high so the fee is always 5% for normal transfers:
# fee = min(TRANSFER_TAX_BPS * amount / 10000, max fee)
MAX_FEE_BPS = 500

# 3. Funding
LAMPORTS_PER_SOL = 1_000_000_000
MIN_DEPLOYER_BALANCE = LAMPORTS_PER_SOL // 2
AIRDROP_AMOUNT = LAMPORTS_PER_SOL

# 4. Output files
WALLETS_FILE = "token_wallets.json"
TOKEN_INFO_FILE = "token_info.json"
# Same content as WALLETS_FILE, kept for the rewards script
REWARDS_WALLETS_FILE = "wallet_info.json"


def total_supply_base_units() -> int:
    return TOKEN_SUPPLY * (10**TOKEN_DECIMALS)


def max_transfer_fee() -> int:
    return total_supply_base_units() * MAX_FEE_BPS // 10_000
