# agritrace/blockchain.py
"""
Ledger writers: anchor an aggregator collection on a ledger and return a receipt.

Two implementations share the LedgerWriter interface:
- MockLedgerWriter: fabricated receipts (default, LEDGER_BACKEND=mock)
- Web3LedgerWriter: sends a signed transaction whose calldata is the keccak
  digest of the collection summary, then waits for the receipt
  (LEDGER_BACKEND=web3)

init_ledger(app) binds one of them to app.extensions["ledger_writer"].
"""

from __future__ import annotations

import json
import random
import secrets
from typing import Any, Dict, Optional

from flask import current_app
from web3 import Web3

from agritrace.models.aggregator.collection_models import LedgerReceipt
from agritrace.utils import now_utc


MOCK_CHAIN_ID = 31337

KNOWN_CHAINS = {
    1: "mainnet",
    137: "matic",
    1337: "ganache",
    31337: "hardhat",
    80002: "amoy",
    11155111: "sepolia",
}


class LedgerError(Exception):
    pass


class LedgerWriter:
    def write(self, summary: Dict[str, Any]) -> LedgerReceipt:
        raise NotImplementedError

    def network_info(self) -> Dict[str, Any]:
        """{name, chainId, blockNumber} of the chain the writer is bound to."""
        raise NotImplementedError


class MockLedgerWriter(LedgerWriter):
    def __init__(self, contract_address: Optional[str] = None, rng: Optional[random.Random] = None):
        self.contract_address = contract_address
        self._rng = rng or random.Random()

    def write(self, summary: Dict[str, Any]) -> LedgerReceipt:
        return LedgerReceipt(
            transactionHash="0x" + secrets.token_hex(32),
            blockNumber=self._rng.randint(1_000_000, 1_999_999),
            contractAddress=self.contract_address,
            produceId=self._rng.randint(1000, 10999),
            gasUsed=self._rng.randint(50_000, 149_999),
            confirmations=1,
            isConfirmed=True,
            blockchainTimestamp=now_utc(),
        )

    def network_info(self) -> Dict[str, Any]:
        return {
            "name": "mock",
            "chainId": MOCK_CHAIN_ID,
            "blockNumber": self._rng.randint(1_000_000, 1_999_999),
        }


def _normalize_pk(pk: str) -> str:
    pk = pk.strip().replace(" ", "").replace("\n", "").replace("\r", "")
    hexpart = pk[2:] if pk.lower().startswith("0x") else pk
    if len(hexpart) != 64:
        raise ValueError(f"Private key must be 64 hex chars; got {len(hexpart)}")
    bytes.fromhex(hexpart)  # sanity
    return "0x" + hexpart


class Web3LedgerWriter(LedgerWriter):
    def __init__(self, rpc_url: str, private_key: str, contract_address: Optional[str] = None,
                 timeout: int = 30, poa: bool = False):
        self.web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        if poa:
            from web3.middleware import ExtraDataToPOAMiddleware
            self.web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.account = self.web3.eth.account.from_key(_normalize_pk(private_key))
        self.contract_address = contract_address
        self.timeout = timeout

    def suggest_fees(self, multiplier: float = 1.25, min_prio_gwei: int = 2):
        """Return (priority_tip_wei, max_fee_wei) using fee_history."""
        hist = self.web3.eth.fee_history(5, "latest", [10, 50, 90])
        base = hist.get("baseFeePerGas", [0])[-1] or self.web3.to_wei(30, "gwei")
        tips = [r[-1] for r in hist.get("reward", []) if r]
        prio = max(tips) if tips else self.web3.to_wei(min_prio_gwei, "gwei")
        return prio, int(base * multiplier + prio)

    def write(self, summary: Dict[str, Any]) -> LedgerReceipt:
        digest = Web3.keccak(text=json.dumps(summary, sort_keys=True, default=str))
        target = Web3.to_checksum_address(self.contract_address) if self.contract_address else self.account.address

        try:
            prio, max_fee = self.suggest_fees()
            tx = {
                "from": self.account.address,
                "to": target,
                "value": 0,
                "data": digest,
                "nonce": self.web3.eth.get_transaction_count(self.account.address, "pending"),
                "chainId": self.web3.eth.chain_id,
                "maxPriorityFeePerGas": prio,
                "maxFeePerGas": max_fee,
            }
            tx["gas"] = int(self.web3.eth.estimate_gas(tx) * 1.2)

            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except Exception as e:
            raise LedgerError(f"ledger write failed: {e}") from e

        if receipt.status != 1:
            raise LedgerError(f"transaction {tx_hash.hex()} reverted")

        head = self.web3.eth.block_number
        return LedgerReceipt(
            transactionHash=Web3.to_hex(tx_hash),
            blockNumber=receipt.blockNumber,
            contractAddress=self.contract_address,
            gasUsed=receipt.gasUsed,
            confirmations=max(head - receipt.blockNumber + 1, 1),
            isConfirmed=True,
            blockchainTimestamp=now_utc(),
        )

    def network_info(self) -> Dict[str, Any]:
        try:
            chain_id = self.web3.eth.chain_id
            block = self.web3.eth.block_number
        except Exception as e:
            raise LedgerError(f"network lookup failed: {e}") from e
        return {"name": KNOWN_CHAINS.get(chain_id, "unknown"), "chainId": chain_id, "blockNumber": block}


# -------------------------------------------------------------------
# App wiring (used by app.create_app)
# -------------------------------------------------------------------
def init_ledger(app: Any) -> LedgerWriter:
    backend = app.config.get("LEDGER_BACKEND", "mock")

    if backend == "web3":
        writer = Web3LedgerWriter(
            rpc_url=app.config["WEB3_RPC_URL"],
            private_key=app.config["WEB3_PRIVATE_KEY"],
            contract_address=app.config.get("PRODUCE_LEDGER_ADDRESS"),
            timeout=app.config.get("LEDGER_TIMEOUT", 30),
            poa=app.config.get("WEB3_POA", False),
        )
        app.logger.info("Web3 ledger writer bound (account %s)", writer.account.address)
    else:
        writer = MockLedgerWriter(contract_address=app.config.get("PRODUCE_LEDGER_ADDRESS"))
        app.logger.info("Mock ledger writer bound")

    app.extensions["ledger_writer"] = writer
    return writer


def get_ledger_writer() -> LedgerWriter:
    return current_app.extensions["ledger_writer"]
