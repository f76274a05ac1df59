# deploy_token.py
#
# Deploys a Token-2022 mint with a transfer fee (tax) and on-chain metadata to devnet,
# mints the full supply to the deployer and then locks the supply for good.

import sys
import traceback
from dataclasses import dataclass
from typing import List, Optional, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import CreateAccountParams, create_account
from solders.transaction import Transaction
from spl.token.constants import TOKEN_2022_PROGRAM_ID
from spl.token.instructions import (
    AuthorityType,
    InitializeMintParams,
    MintToParams,
    SetAuthorityParams,
    create_associated_token_account,
    get_associated_token_address,
    initialize_mint,
    mint_to,
    set_authority,
)

import token_config
from token_extensions import (
    ExtensionType,
    get_mint_len,
    initialize_metadata_pointer,
    initialize_token_metadata,
    initialize_transfer_fee_config,
    metadata_len,
)
from wallets import load_keypair, token_info, wallet_info, write_artifacts

MINT_EXTENSIONS = [ExtensionType.TRANSFER_FEE_CONFIG, ExtensionType.METADATA_POINTER]


class TransactionFailedError(Exception):
    pass


@dataclass
class DeploymentResult:
    deployer: Keypair
    tax_wallet: Keypair
    mint: Pubkey
    mint_signature: Signature
    supply_signature: Signature
    revoke_signature: Signature
    artifacts: List[str]


def _sol(lamports):
    return lamports / token_config.LAMPORTS_PER_SOL


def additional_metadata():
    return [("description", token_config.TOKEN_DESCRIPTION)]


def ensure_funded(client: Client, owner: Pubkey) -> int:
    """Top up `owner` from the devnet faucet when it is low. Returns the last known balance."""
    balance = client.get_balance(owner).value
    print(f"\n💰 Deployer balance: {_sol(balance)} SOL")
    if balance >= token_config.MIN_DEPLOYER_BALANCE:
        return balance

    print("\n⚠️ Warning: Low balance. You may need more SOL for deployment.")
    print("Requesting airdrop for deployer...")
    try:
        airdrop_sig = client.request_airdrop(owner, token_config.AIRDROP_AMOUNT).value
        client.confirm_transaction(airdrop_sig, Confirmed)
        balance = client.get_balance(owner).value
        print(f"✅ Airdrop confirmed. New balance: {_sol(balance)} SOL")
    except (RPCException, SolanaRpcException, UnconfirmedTxError) as e:
        # Not fatal, the deployment below fails on its own if funds are really missing
        print(f"⚠️ Airdrop failed ({e}). You may need to manually fund your wallet.")
        print(f"On devnet, you can use: solana airdrop 2 {owner}")
    return balance


def mint_account_sizes(mint: Pubkey, update_authority: Pubkey):
    # (space allocated by create_account, space the rent must cover once metadata is written)
    mint_len = get_mint_len(MINT_EXTENSIONS)
    meta_len = metadata_len(
        mint,
        token_config.TOKEN_NAME,
        token_config.TOKEN_SYMBOL,
        token_config.TOKEN_URI,
        update_authority=update_authority,
        additional_metadata=additional_metadata(),
    )
    return mint_len, mint_len + meta_len


def build_mint_instructions(deployer: Pubkey, mint: Pubkey, tax_wallet: Pubkey, rent_lamports: int) -> List[Instruction]:
    mint_len, _ = mint_account_sizes(mint, deployer)

    # 1. Create the mint account; the metadata initialize reallocs it, so only the
    # fixed extensions are allocated here while the rent already covers the metadata.
    create_mint_account_ix = create_account(
        CreateAccountParams(
            from_pubkey=deployer,
            to_pubkey=mint,
            lamports=rent_lamports,
            space=mint_len,
            owner=TOKEN_2022_PROGRAM_ID,
        )
    )

    # 2. Transfer fee: nobody may change the fee later, the tax wallet withdraws withheld fees
    transfer_fee_ix = initialize_transfer_fee_config(
        mint=mint,
        config_authority=None,
        withdraw_authority=tax_wallet,
        fee_basis_points=token_config.TRANSFER_TAX_BPS,
        max_fee=token_config.max_transfer_fee(),
    )

    # 3. Metadata lives on the mint itself
    metadata_pointer_ix = initialize_metadata_pointer(mint=mint, authority=deployer, metadata_address=mint)

    # 4. Base mint, no freeze authority
    init_mint_ix = initialize_mint(
        InitializeMintParams(
            decimals=token_config.TOKEN_DECIMALS,
            program_id=TOKEN_2022_PROGRAM_ID,
            mint=mint,
            mint_authority=deployer,
            freeze_authority=None,
        )
    )

    # 5. Metadata content
    init_metadata_ix = initialize_token_metadata(
        mint=mint,
        metadata=mint,
        update_authority=deployer,
        mint_authority=deployer,
        name=token_config.TOKEN_NAME,
        symbol=token_config.TOKEN_SYMBOL,
        uri=token_config.TOKEN_URI,
    )

    return [create_mint_account_ix, transfer_fee_ix, metadata_pointer_ix, init_mint_ix, init_metadata_ix]


def associated_token_address(owner, mint):
    return get_associated_token_address(owner, mint, token_program_id=TOKEN_2022_PROGRAM_ID)


def build_supply_instructions(deployer: Pubkey, tax_wallet: Pubkey, mint: Pubkey) -> List[Instruction]:
    deployer_ata = associated_token_address(deployer, mint)
    instructions = [
        create_associated_token_account(
            payer=deployer, owner=owner, mint=mint, token_program_id=TOKEN_2022_PROGRAM_ID
        )
        for owner in (deployer, tax_wallet)
    ]
    instructions.append(
        mint_to(
            MintToParams(
                program_id=TOKEN_2022_PROGRAM_ID,
                mint=mint,
                dest=deployer_ata,
                mint_authority=deployer,
                amount=token_config.total_supply_base_units(),
            )
        )
    )
    return instructions


def build_revoke_instruction(deployer: Pubkey, mint: Pubkey) -> Instruction:
    return set_authority(
        SetAuthorityParams(
            program_id=TOKEN_2022_PROGRAM_ID,
            account=mint,
            authority=AuthorityType.MINT_TOKENS,
            current_authority=deployer,
            new_authority=None,
        )
    )


def submit(client: Client, instructions: Sequence[Instruction], signers: Sequence[Keypair]) -> Signature:
    """Sign with `signers` (the first one pays the fees), send, and wait for `confirmed`."""
    latest = client.get_latest_blockhash(Confirmed).value
    message = Message.new_with_blockhash(list(instructions), signers[0].pubkey(), latest.blockhash)
    txn = Transaction(list(signers), message, latest.blockhash)
    signature = client.send_transaction(txn, opts=TxOpts(preflight_commitment=Confirmed)).value
    resp = client.confirm_transaction(signature, Confirmed, last_valid_block_height=latest.last_valid_block_height)
    # confirm_transaction only waits for the commitment, a landed transaction can still have failed
    status = resp.value[0]
    if status is not None and status.err is not None:
        raise TransactionFailedError(f"Transaction {signature} failed: {status.err}")
    return signature


def deploy(client: Client, keypair_path: str, output_dir: str, secret_key: Optional[str] = None) -> DeploymentResult:
    tax_percent = token_config.TRANSFER_TAX_BPS / 100
    print(f"🚀 Deploying {token_config.TOKEN_NAME} token with {tax_percent}% transfer tax and metadata...")

    deployer = load_keypair(keypair_path, secret_key)
    print("\n🔑 Deployer Wallet")
    print(f"Address: {deployer.pubkey()}")

    tax_wallet = Keypair()
    print("\n💰 Tax Wallet Created")
    print(f"Address: {tax_wallet.pubkey()}")

    ensure_funded(client, deployer.pubkey())

    # Step 1: MINT + EXTENSIONS + METADATA
    print("\n🏦 Creating token mint with transfer fee extension and metadata...")
    mint_keypair = Keypair()
    mint = mint_keypair.pubkey()
    _, rent_space = mint_account_sizes(mint, deployer.pubkey())
    rent_lamports = client.get_minimum_balance_for_rent_exemption(rent_space).value

    mint_signature = submit(
        client,
        build_mint_instructions(deployer.pubkey(), mint, tax_wallet.pubkey(), rent_lamports),
        [deployer, mint_keypair],
    )
    print(f"\n✅ Token mint created with transfer fee extension and metadata: {mint}")
    print(f"Transaction signature: {mint_signature}")

    # Step 2: TOKEN ACCOUNTS + FULL SUPPLY
    print(f"\n💵 Creating token accounts and minting {token_config.TOKEN_SUPPLY:,} tokens to deployer...")
    supply_signature = submit(
        client,
        build_supply_instructions(deployer.pubkey(), tax_wallet.pubkey(), mint),
        [deployer],
    )
    print("\n✅ Tokens minted successfully!")
    print(f"Transaction signature: {supply_signature}")

    # Step 3: LOCK THE SUPPLY
    print("\n🔒 Removing mint authority to fix token supply...")
    revoke_signature = submit(client, [build_revoke_instruction(deployer.pubkey(), mint)], [deployer])
    print("\n✅ Mint authority removed successfully!")
    print(f"Transaction signature: {revoke_signature}")

    artifacts = write_artifacts(
        output_dir,
        wallet_info(deployer, tax_wallet),
        token_info(mint, deployer.pubkey(), tax_wallet.pubkey()),
    )

    return DeploymentResult(
        deployer=deployer,
        tax_wallet=tax_wallet,
        mint=mint,
        mint_signature=mint_signature,
        supply_signature=supply_signature,
        revoke_signature=revoke_signature,
        artifacts=artifacts,
    )


def print_summary(result):
    tax_percent = token_config.TRANSFER_TAX_BPS / 100
    print("\n🎉 Deployment Complete!")
    print("\nToken Summary:")
    print("-" * 50)
    print(f"Token Name:       {token_config.TOKEN_NAME}")
    print(f"Token Symbol:     {token_config.TOKEN_SYMBOL}")
    print(f"Token Address:    {result.mint}")
    print(f"Token Program:    {TOKEN_2022_PROGRAM_ID}")
    print(f"Token Decimals:   {token_config.TOKEN_DECIMALS}")
    print(f"Total Supply:     {token_config.TOKEN_SUPPLY:,}")
    print(f"Tax Rate:         {tax_percent}%")
    print(f"Token URI:        {token_config.TOKEN_URI}")
    print("-" * 50)
    print(f"Deployer Address: {result.deployer.pubkey()}")
    print(f"Tax Wallet:       {result.tax_wallet.pubkey()}")
    print("-" * 50)
    print(f"\nNOTE: When users transfer tokens, {tax_percent}% will be automatically withheld.")
    print("The tax wallet can collect withheld fees using the withdraw withheld tokens command.")


def main(client: Optional[Client] = None) -> int:
    client = client or Client(token_config.RPC_URL, commitment=Confirmed)
    try:
        result = deploy(client, token_config.KEYPAIR_PATH, token_config.OUTPUT_DIR, token_config.SECRET_KEY)
    except Exception as e:
        print(f"\n❌ Deployment failed: {e}")
        traceback.print_exc()
        return 1
    print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
