from types import SimpleNamespace

import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.signature import Signature

import token_config


class FakeClient:
    """Stands in for solana.rpc.api.Client, records every transaction it is sent."""

    def __init__(
        self,
        balance=2 * token_config.LAMPORTS_PER_SOL,
        fail_on_send=None,
        fail_on_confirm=None,
        airdrop_error=None,
        confirm_error=None,
    ):
        self.balance = balance
        # 1-based index of the submitted transaction that is rejected at send time
        self.fail_on_send = fail_on_send
        # 1-based index of the submitted transaction that lands but fails on-chain
        self.fail_on_confirm = fail_on_confirm
        self.airdrop_error = airdrop_error
        self.confirm_error = confirm_error
        self.sent = []
        self.airdrops = []
        self.rent_requests = []

    def get_balance(self, pubkey, commitment=None):
        return SimpleNamespace(value=self.balance)

    def request_airdrop(self, pubkey, lamports, commitment=None):
        if self.airdrop_error is not None:
            raise self.airdrop_error
        self.airdrops.append((pubkey, lamports))
        self.balance += lamports
        return SimpleNamespace(value=Signature.default())

    def confirm_transaction(self, tx_sig, commitment=None, sleep_seconds=0.5, last_valid_block_height=None):
        if self.confirm_error is not None:
            raise self.confirm_error
        err = None
        if self.sent and self.fail_on_confirm == len(self.sent):
            err = "InsufficientFundsForFee"
        return SimpleNamespace(value=[SimpleNamespace(confirmation_status="confirmed", err=err)])

    def get_minimum_balance_for_rent_exemption(self, usize, commitment=None):
        self.rent_requests.append(usize)
        return SimpleNamespace(value=(usize + 128) * 6960)

    def get_latest_blockhash(self, commitment=None):
        return SimpleNamespace(value=SimpleNamespace(blockhash=Hash.new_unique(), last_valid_block_height=1000))

    def send_transaction(self, txn, opts=None):
        self.sent.append(txn)
        if self.fail_on_send == len(self.sent):
            raise RPCException({"code": -32002, "message": "Transaction simulation failed"})
        return SimpleNamespace(value=txn.signatures[0])


@pytest.fixture
def fake_client():
    return FakeClient()
