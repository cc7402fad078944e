# tests/test_cli.py
"""Tests for the command-line interface."""

import json

import pytest

from editions.cli import build_parser, main


@pytest.fixture
def config_path(temp_dir, monkeypatch):
    monkeypatch.delenv("EDITIONS_DATA_DIR", raising=False)
    monkeypatch.delenv("EDITIONS_LOG_LEVEL", raising=False)
    path = temp_dir / "editions.yaml"
    path.write_text(f"data_dir: {temp_dir / 'data'}\nadmin: deployer\nlog_level: WARNING\n")
    return path


@pytest.fixture
def run(config_path, capsys):
    """Run the CLI against the temp config and return (exit code, stdout, stderr)."""
    def _run(*argv):
        code = main(["--config", str(config_path), *argv])
        captured = capsys.readouterr()
        return code, captured.out, captured.err
    return _run


@pytest.fixture
def workspace(run):
    """Initialized workspace with a creator, a buyer, one media item and shares."""
    assert run("init")[0] == 0
    assert run("account", "create", "alice")[0] == 0
    assert run("account", "create", "bob")[0] == 0
    assert run("media", "register", "alice", "--token-uri", "ipfs://art",
               "--content-hash", "ab" * 32)[0] == 0
    assert run("market", "set-shares", "0", "--prev-owner", "0",
               "--creator", "10", "--owner", "90")[0] == 0
    return run


class TestParser:

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_buy_arguments(self):
        args = build_parser().parse_args(["buy", "bob", "3", "--payment", "0.5"])
        assert args.command == "buy"
        assert args.edition_id == 3
        assert args.payment == "0.5"


class TestCommands:

    def test_init(self, run, temp_dir):
        code, out, _ = run("init")
        assert code == 0
        assert "Created admin account 'deployer'" in out
        assert (temp_dir / "data" / "ledger" / "gateway.json").exists()

        code, out, _ = run("init")
        assert code == 0
        assert "Admin account 'deployer'" in out

    def test_account_list(self, workspace):
        code, out, _ = workspace("account", "list")
        assert code == 0
        assert [line.split(":")[0] for line in out.splitlines()] == ["deployer", "alice", "bob"]

    def test_sale_flow(self, workspace):
        code, out, _ = workspace("create", "alice", "--supply", "2", "--price", "0.5", "--media-id", "0")
        assert code == 0
        assert "Created edition 1" in out

        code, out, _ = workspace("buy", "bob", "1", "--payment", "0.6")
        assert code == 0
        assert "Bought copy 1/2 of edition 1" in out
        assert "Overpaid 0.1 ETH" in out

        code, out, _ = workspace("withdraw", "alice", "1")
        assert code == 0
        assert "Withdrew 0.5 ETH from edition 1" in out

        code, out, _ = workspace("show", "1")
        assert "Sold:      1/2 (partially_sold)" in out
        assert "Withdrawn: 0.5 ETH" in out
        assert "Claimable: 0 ETH" in out
        assert "Stranded:  0.1 ETH" in out
        assert "#3 FundsWithdrawn" in out

    def test_buyer_disclosure(self, workspace):
        workspace("create", "alice", "--supply", "1", "--price", "1", "--media-id", "0")
        workspace("buy", "bob", "1", "--payment", "1")

        code, out, _ = workspace("shares", "bob", "1")
        assert code == 0
        assert json.loads(out)["creator"]["value"] == 10 * 10 ** 18

        code, out, _ = workspace("media-data", "bob", "1")
        assert code == 0
        assert json.loads(out)["tokenURI"] == "ipfs://art"

        code, _, err = workspace("media-data", "alice", "1")
        assert code == 1
        assert "you did not purchase this token" in err

    def test_events_verified(self, workspace):
        workspace("create", "alice", "--supply", "1", "--price", "1", "--media-id", "0")
        workspace("buy", "bob", "1", "--payment", "1")

        code, out, _ = workspace("events", "--verify")
        lines = out.splitlines()
        assert code == 0
        assert len(lines) == 2
        assert lines[0].startswith("#1 EditionCreated")
        assert all(line.endswith("[VERIFIED]") for line in lines)

        code, out, _ = workspace("events", "--type", "EditionPurchased")
        assert out.startswith("#2 EditionPurchased")

        workspace("create", "alice", "--supply", "1", "--price", "1", "--media-id", "0")
        code, out, _ = workspace("events", "--edition", "2")
        assert code == 0
        assert out.startswith("#3 EditionCreated")
        assert len(out.splitlines()) == 1


class TestErrors:

    def test_insufficient_payment(self, workspace):
        workspace("create", "alice", "--supply", "1", "--price", "0.5", "--media-id", "0")

        code, _, err = workspace("buy", "bob", "1", "--payment", "0.33")
        assert code == 1
        assert "Error: payment is below the edition price" in err

    def test_non_owner_create(self, workspace):
        code, _, err = workspace("create", "bob", "--supply", "1", "--price", "1", "--media-id", "0")
        assert code == 1
        assert "not the media owner" in err

    def test_missing_edition(self, workspace):
        code, _, err = workspace("withdraw", "alice", "9")
        assert code == 1
        assert "edition does not exist" in err

    def test_only_admin_sets_registry(self, workspace):
        code, _, err = workspace("set-media-address", "alice", "0x" + "12" * 20)
        assert code == 1
        assert "caller is not the admin" in err

        code, out, _ = workspace("set-media-address", "deployer", "0x" + "12" * 20)
        assert code == 0
        code, _, err = workspace("create", "alice", "--supply", "1", "--price", "1", "--media-id", "0")
        assert code == 1
        assert "no media registry" in err

    def test_missing_config(self, temp_dir, capsys):
        code = main(["--config", str(temp_dir / "nope.yaml"), "show"])
        assert code == 1
        assert "failed to load config" in capsys.readouterr().err

    def test_mistyped_buyer_does_not_consume_a_copy(self, workspace):
        workspace("create", "alice", "--supply", "1", "--price", "0.5", "--media-id", "0")

        code, _, err = workspace("buy", "bbo", "1", "--payment", "0.5")
        assert code == 1
        assert "Unknown account: bbo" in err

        code, out, _ = workspace("buy", "bob", "1", "--payment", "0.5")
        assert code == 0
        assert "Bought copy 1/1 of edition 1" in out

    @pytest.mark.parametrize("price", ["NaN", "sNaN", "Infinity"])
    def test_non_finite_price(self, workspace, price):
        code, _, err = workspace("create", "alice", "--supply", "1", "--price", price, "--media-id", "0")
        assert code == 1
        assert "Invalid ether amount" in err
