"""Tests for the ledger network and contract address routes."""

from types import SimpleNamespace

import pytest

from agritrace.blockchain import LedgerError, LedgerWriter, MOCK_CHAIN_ID, Web3LedgerWriter

TEST_KEY = "0x" + "11" * 32


class UnreachableLedger(LedgerWriter):
    def network_info(self):
        raise LedgerError("connection refused")


class DownEth:
    @property
    def chain_id(self):
        raise ConnectionError("rpc down")


@pytest.fixture
def web3_writer():
    # no RPC call happens until the node is queried
    return Web3LedgerWriter("http://127.0.0.1:1", TEST_KEY)


class TestNetwork:
    def test_mock_network(self, client):
        resp = client.get("/api/v1/blockchain/network")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["success"] is True
        assert body["network"]["name"] == "mock"
        assert body["network"]["chainId"] == MOCK_CHAIN_ID
        assert 1_000_000 <= body["network"]["blockNumber"] <= 1_999_999

    def test_unreachable_node(self, app, client):
        app.extensions["ledger_writer"] = UnreachableLedger()
        resp = client.get("/api/v1/blockchain/network")
        assert resp.status_code == 500
        assert resp.get_json() == {"success": False, "message": "Failed to get network info"}

    def test_base_is_abstract(self):
        with pytest.raises(NotImplementedError):
            LedgerWriter().network_info()


class TestWeb3NetworkInfo:
    def test_reads_chain_and_head(self, web3_writer):
        web3_writer.web3 = SimpleNamespace(eth=SimpleNamespace(chain_id=11155111, block_number=42))
        assert web3_writer.network_info() == {"name": "sepolia", "chainId": 11155111, "blockNumber": 42}

    def test_unknown_chain(self, web3_writer):
        web3_writer.web3 = SimpleNamespace(eth=SimpleNamespace(chain_id=999, block_number=7))
        assert web3_writer.network_info()["name"] == "unknown"

    def test_rpc_failure_wrapped(self, web3_writer):
        web3_writer.web3 = SimpleNamespace(eth=DownEth())
        with pytest.raises(LedgerError):
            web3_writer.network_info()

    def test_served_through_route(self, app, client, web3_writer):
        web3_writer.web3 = SimpleNamespace(eth=SimpleNamespace(chain_id=31337, block_number=5))
        app.extensions["ledger_writer"] = web3_writer
        body = client.get("/api/v1/blockchain/network").get_json()
        assert body["network"] == {"name": "hardhat", "chainId": 31337, "blockNumber": 5}


class TestContracts:
    def test_addresses_from_config(self, app, client):
        app.config["PRODUCE_LEDGER_ADDRESS"] = "0xaaa"
        app.config["PAYMENT_MANAGER_ADDRESS"] = "0xbbb"
        body = client.get("/api/v1/blockchain/contracts").get_json()
        assert body == {"success": True, "contracts": {"produceLedger": "0xaaa", "paymentManager": "0xbbb"}}
