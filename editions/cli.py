#!/usr/bin/env python3
"""
Editions CLI

Command-line interface for a local edition ledger:
  editions init - Create the admin account and local registries
  editions account create|list - Manage identities
  editions media register - Mint a media item in the local media registry
  editions market set-shares - Set bid shares for a media item
  editions create|buy|withdraw - Ledger operations
  editions show|shares|media-data|events - Queries

Usage:
  editions init
  editions account create <name>
  editions media register <owner> --token-uri <uri> (--content-hash <h> | --file <path>)
  editions create <caller> --supply 10 --price 0.5 --media-id 0
  editions buy <caller> <edition_id> --payment 0.5
  editions withdraw <caller> <edition_id>

Callers are account names or 0x addresses. Amounts are in ether.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .accounts import Account, AccountStore
from .config import DEFAULT_CONFIG_FILE, LedgerConfig
from .errors import EditionError
from .events import EventLog
from .ledger import Ledger
from .registry import BidShares, LocalMarketRegistry, LocalMediaRegistry, RegistryGateway
from .signatures import verify_event
from .store import EditionStore
from .units import ZERO_ADDRESS, format_ether, is_address, parse_ether

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Everything a command needs, opened from one config."""
    config: LedgerConfig
    accounts: AccountStore
    media: LocalMediaRegistry
    market: LocalMarketRegistry
    ledger: Ledger
    admin: Optional[Account]

    def address(self, name_or_address: str) -> str:
        return self.accounts.resolve(name_or_address)

    def _gateway_path(self) -> Path:
        return self.config.ledger_dir / "gateway.json"

    def save_gateway(self):
        with open(self._gateway_path(), "w") as f:
            json.dump(self.ledger.gateway.to_dict(), f, indent=2)


def open_workspace(config: LedgerConfig) -> Workspace:
    """Open (or create) the accounts, registries and ledger under data_dir."""
    accounts = AccountStore(config.accounts_dir)
    media = LocalMediaRegistry(config.media_dir)
    market = LocalMarketRegistry(config.market_dir)

    admin = accounts.get(config.admin)
    if admin is not None:
        admin_address = admin.address
    elif is_address(config.admin):
        admin_address = config.admin
    else:
        # not initialized yet; nobody can act as admin
        admin_address = ZERO_ADDRESS
    gateway = RegistryGateway(admin_address, registries=[media, market])

    ledger_dir = config.ledger_dir
    ledger = Ledger(
        admin=admin_address,
        store=EditionStore(ledger_dir),
        gateway=gateway,
        event_log=EventLog(ledger_dir),
        signer=admin if config.signing else None,
    )

    workspace = Workspace(config, accounts, media, market, ledger, admin)
    gateway_path = workspace._gateway_path()
    if gateway_path.exists():
        with open(gateway_path) as f:
            gateway.restore(json.load(f))
    return workspace


def _print_edition(record):
    print(f"Edition {record.edition_id}")
    print(f"  Media:     {record.media_id}")
    print(f"  Creator:   {record.creator}")
    print(f"  Funds to:  {record.funds_address}")
    print(f"  Price:     {format_ether(record.price)} ETH")
    print(f"  Sold:      {record.sold}/{record.supply} ({record.state})")
    print(f"  Withdrawn: {format_ether(record.withdrawn)} ETH")


def cmd_init(args, ws: Workspace):
    """Create the admin account and point the ledger at the local registries."""
    config = ws.config
    if ws.admin is None and is_address(config.admin):
        raise ValueError("init needs an admin account name, not an address")
    if ws.admin is None:
        admin = ws.accounts.create(config.admin)
        print(f"Created admin account '{admin.name}': {admin.address}")
        ws = open_workspace(config)
    else:
        print(f"Admin account '{ws.admin.name}': {ws.admin.address}")

    ws.ledger.set_media_address(ws.admin.address, ws.media.address)
    ws.ledger.set_market_address(ws.admin.address, ws.market.address)
    ws.save_gateway()
    print(f"Media registry:  {ws.media.address}")
    print(f"Market registry: {ws.market.address}")

    config_path = Path(args.config) if args.config else Path(DEFAULT_CONFIG_FILE)
    if not config_path.exists():
        config_path.write_text(config.to_yaml())
        print(f"Config written to: {config_path}")


def cmd_account(args, ws: Workspace):
    if args.account_command == "create":
        account = ws.accounts.create(args.name)
        print(f"{account.name}: {account.address}")
    else:
        for account in ws.accounts.list():
            print(f"{account.name}: {account.address}")


def cmd_media(args, ws: Workspace):
    item = ws.media.register(
        owner=ws.address(args.owner),
        token_uri=args.token_uri,
        metadata_uri=args.metadata_uri or "",
        content_hash=args.content_hash,
        metadata_hash=args.metadata_hash or "",
        content_path=args.file,
    )
    print(f"Media {item.media_id} registered to {item.owner}")
    print(f"  Content hash: {item.content_hash}")


def cmd_market(args, ws: Workspace):
    shares = BidShares.from_percentages(args.prev_owner, args.creator, args.owner)
    ws.market.set_bid_shares(args.media_id, shares)
    print(f"Bid shares set for media {args.media_id}: "
          f"prev owner {args.prev_owner}%, creator {args.creator}%, owner {args.owner}%")


def cmd_create(args, ws: Workspace):
    caller = ws.address(args.caller)
    funds_address = ws.address(args.funds_address) if args.funds_address else caller
    edition_id = ws.ledger.create_edition(
        caller,
        supply=args.supply,
        price=parse_ether(args.price),
        funds_address=funds_address,
        media_id=args.media_id,
    )
    print(f"Created edition {edition_id}")


def cmd_buy(args, ws: Workspace):
    purchase = ws.ledger.buy_edition(
        ws.address(args.caller), args.edition_id, parse_ether(args.payment)
    )
    record = ws.ledger.editions(args.edition_id)
    print(f"Bought copy {purchase.serial}/{record.supply} of edition {purchase.edition_id}")
    if purchase.overpaid:
        print(f"  Overpaid {format_ether(purchase.overpaid)} ETH (kept in escrow)")


def cmd_withdraw(args, ws: Workspace):
    amount = ws.ledger.withdraw_funds(ws.address(args.caller), args.edition_id)
    print(f"Withdrew {format_ether(amount)} ETH from edition {args.edition_id}")


def cmd_show(args, ws: Workspace):
    if args.edition_id is None:
        for record in ws.ledger.list_editions():
            _print_edition(record)
        return
    record = ws.ledger.editions(args.edition_id)
    _print_edition(record)
    print(f"  Claimable: {format_ether(ws.ledger.claimable(record.edition_id))} ETH")
    print(f"  Escrow:    {format_ether(ws.ledger.escrow_balance(record.edition_id))} ETH")
    stranded = ws.ledger.stranded_overpayment(record.edition_id)
    if stranded:
        print(f"  Stranded:  {format_ether(stranded)} ETH")
    for event in ws.ledger.events(edition_id=record.edition_id):
        print(f"  #{event.sequence} {event.event_type} {json.dumps(event.args)}")


def cmd_shares(args, ws: Workspace):
    shares = ws.ledger.edition_bid_shares(ws.address(args.caller), args.edition_id)
    print(json.dumps(shares.to_dict(), indent=2))


def cmd_media_data(args, ws: Workspace):
    data = ws.ledger.edition_media_data(ws.address(args.caller), args.edition_id)
    print(json.dumps(data.to_dict(), indent=2))


def cmd_events(args, ws: Workspace):
    for event in ws.ledger.events(args.type, edition_id=args.edition):
        line = f"#{event.sequence} {event.event_type} {json.dumps(event.args)}"
        if args.verify:
            ok = ws.admin is not None and verify_event(event, ws.admin)
            line += " [VERIFIED]" if ok else " [UNVERIFIED]"
        print(line)


def cmd_set_address(args, ws: Workspace):
    caller = ws.address(args.caller)
    if args.command == "set-media-address":
        ws.ledger.set_media_address(caller, args.address)
    else:
        ws.ledger.set_market_address(caller, args.address)
    ws.save_gateway()
    print(f"Media registry:  {ws.ledger.media_address}")
    print(f"Market registry: {ws.ledger.market_address}")


COMMANDS = {
    "init": cmd_init,
    "account": cmd_account,
    "media": cmd_media,
    "market": cmd_market,
    "create": cmd_create,
    "buy": cmd_buy,
    "withdraw": cmd_withdraw,
    "show": cmd_show,
    "shares": cmd_shares,
    "media-data": cmd_media_data,
    "events": cmd_events,
    "set-media-address": cmd_set_address,
    "set-market-address": cmd_set_address,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="editions",
        description="Editions - fixed-supply primary-sale ledger",
    )
    parser.add_argument("--config", help=f"Config file (default: {DEFAULT_CONFIG_FILE})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create admin account and configure registries")

    account_parser = subparsers.add_parser("account", help="Manage accounts")
    account_sub = account_parser.add_subparsers(dest="account_command")
    create_account = account_sub.add_parser("create", help="Create an account")
    create_account.add_argument("name", help="Account name")
    account_sub.add_parser("list", help="List accounts")

    media_parser = subparsers.add_parser("media", help="Local media registry")
    media_sub = media_parser.add_subparsers(dest="media_command", required=True)
    register = media_sub.add_parser("register", help="Register a media item")
    register.add_argument("owner", help="Owner account or address")
    register.add_argument("--token-uri", required=True, help="Content URI")
    register.add_argument("--metadata-uri", help="Metadata URI")
    register.add_argument("--content-hash", help="SHA-3-256 content hash")
    register.add_argument("--file", help="Compute the content hash from this file")
    register.add_argument("--metadata-hash", help="SHA-3-256 metadata hash")

    market_parser = subparsers.add_parser("market", help="Local revenue split registry")
    market_sub = market_parser.add_subparsers(dest="market_command", required=True)
    set_shares = market_sub.add_parser("set-shares", help="Set bid shares (percent)")
    set_shares.add_argument("media_id", type=int, help="Media id")
    set_shares.add_argument("--prev-owner", type=float, required=True)
    set_shares.add_argument("--creator", type=float, required=True)
    set_shares.add_argument("--owner", type=float, required=True)

    create_parser = subparsers.add_parser("create", help="Create an edition")
    create_parser.add_argument("caller", help="Media owner account or address")
    create_parser.add_argument("--supply", type=int, required=True, help="Copies offered")
    create_parser.add_argument("--price", required=True, help="Price in ether")
    create_parser.add_argument("--funds-address", help="Proceeds recipient (default: caller)")
    create_parser.add_argument("--media-id", type=int, required=True, help="Media id")

    buy_parser = subparsers.add_parser("buy", help="Buy a copy of an edition")
    buy_parser.add_argument("caller", help="Buyer account or address")
    buy_parser.add_argument("edition_id", type=int)
    buy_parser.add_argument("--payment", required=True, help="Attached payment in ether")

    withdraw_parser = subparsers.add_parser("withdraw", help="Withdraw proceeds")
    withdraw_parser.add_argument("caller", help="Funds address account or address")
    withdraw_parser.add_argument("edition_id", type=int)

    show_parser = subparsers.add_parser("show", help="Show one or all editions")
    show_parser.add_argument("edition_id", type=int, nargs="?")

    for name, help_text in (("shares", "Bid shares of a purchased edition"),
                            ("media-data", "Media data of a purchased edition")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("caller", help="Buyer account or address")
        p.add_argument("edition_id", type=int)

    events_parser = subparsers.add_parser("events", help="List ledger events")
    events_parser.add_argument("--type", help="EditionCreated, EditionPurchased or FundsWithdrawn")
    events_parser.add_argument("--edition", type=int, help="Only events of this edition")
    events_parser.add_argument("--verify", action="store_true", help="Check signatures")

    for name in ("set-media-address", "set-market-address"):
        p = subparsers.add_parser(name, help="Change a registry address (admin only)")
        p.add_argument("caller", help="Admin account or address")
        p.add_argument("address", help="Registry address")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = LedgerConfig.load(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: failed to load config: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.logging_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        ws = open_workspace(config)
        COMMANDS[args.command](args, ws)
    except (EditionError, ValueError, KeyError, FileNotFoundError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"Error: {message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
