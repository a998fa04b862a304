"""Operator CLI for batch distributions."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from distribution_adapter.ethereum.simulator import SimulatedLedger
from distribution_engine.addresses import find_duplicate_addresses
from distribution_engine.amounts import to_decimal_string, to_minor_units
from distribution_engine.fees import quote_fee
from distribution_engine.models import AssetDescriptor, DistributionMode, RecipientRow
from distribution_engine.resolver import amount_warnings, resolve_batch, summarize_rows
from distribution_engine.settings import EngineSettings, load_settings
from history_ledger.address_book import AddressBook
from history_ledger.ledger import HistoryLedger
from history_ledger.store import FileKeyValueStore
from recipient_import.csv_parser import generate_template
from recipient_import.validator import validate_import
from send_controller.controller import DistributionOrchestrator, SendBlockedError
from send_controller.phases import TransactionPhase

logger = logging.getLogger("operator_cli")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="multisend")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    template = subparsers.add_parser("template")
    template.add_argument("--custom", action="store_true")
    template.add_argument("--no-headers", action="store_true")
    template.set_defaults(func=_template)

    validate = subparsers.add_parser("validate")
    validate.add_argument("--file", required=True)
    validate.add_argument("--custom", action="store_true")
    validate.add_argument("--no-headers", action="store_true")
    validate.add_argument("--decimals", type=int, default=18)
    validate.set_defaults(func=_validate)

    resolve = subparsers.add_parser("resolve")
    _add_batch_args(resolve)
    resolve.add_argument("--fee-bps", type=int, default=0)
    resolve.add_argument("--balance")
    resolve.set_defaults(func=_resolve)

    simulate = subparsers.add_parser("simulate")
    _add_batch_args(simulate)
    simulate.add_argument("--fee-bps", type=int, default=0)
    simulate.add_argument("--balance", required=True)
    simulate.add_argument("--sender", required=True)
    simulate.add_argument("--distributor")
    simulate.add_argument("--store")
    simulate.add_argument(
        "--fail",
        action="append",
        default=[],
        metavar="STAGE:OUTCOME",
        help="Script a failure, e.g. approve:reject or send:revert.",
    )
    simulate.set_defaults(func=_simulate)

    history = subparsers.add_parser("history")
    history_sub = history.add_subparsers(dest="history_command", required=True)
    history_show = history_sub.add_parser("show")
    history_show.add_argument("--store")
    history_show.set_defaults(func=_history_show)

    book = subparsers.add_parser("address-book")
    book_sub = book.add_subparsers(dest="book_command", required=True)
    book_add = book_sub.add_parser("add")
    book_add.add_argument("--address", required=True)
    book_add.add_argument("--label", required=True)
    book_add.add_argument("--store")
    book_add.set_defaults(func=_address_book_add)
    book_list = book_sub.add_parser("list")
    book_list.add_argument("--store")
    book_list.set_defaults(func=_address_book_list)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except (ValueError, SendBlockedError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _template(args: argparse.Namespace) -> int:
    sys.stdout.write(generate_template(custom_amounts=args.custom, include_headers=not args.no_headers))
    return 0


def _validate(args: argparse.Namespace) -> int:
    settings = load_settings()
    validation = validate_import(
        _read_source(args.file),
        has_headers=not args.no_headers,
        amounts_required=args.custom,
        decimals=args.decimals,
        max_errors=settings.max_import_errors,
    )
    print(json.dumps(validation.to_dict(), indent=2))
    return 0 if validation.is_valid else 1


def _resolve(args: argparse.Namespace) -> int:
    settings = load_settings()
    mode = DistributionMode(args.mode)
    asset = _build_asset(args)
    rows = _collect_rows(args, mode, asset.decimals, settings)

    batch = resolve_batch(mode, rows, args.amount, asset.decimals)
    fee = quote_fee(batch.total_minor_units, args.fee_bps)
    balance = to_minor_units(args.balance, asset.decimals) if args.balance else None
    check = amount_warnings(
        mode, args.amount, batch.total_minor_units + fee.fee_minor_units, balance, asset.decimals, asset.symbol
    )
    stats = summarize_rows(rows, mode, asset.decimals, settings.max_recipients)

    output = {
        "mode": mode.value,
        "asset": asset.label,
        "batch": batch.to_dict(),
        "total": to_decimal_string(batch.total_minor_units, asset.decimals),
        "fee": to_decimal_string(fee.fee_minor_units, asset.decimals),
        "duplicates": list(find_duplicate_addresses(row.address for row in rows)),
        "stats": {
            "total": stats.total,
            "valid": stats.valid,
            "invalid": stats.invalid,
            "empty": stats.empty,
            "with_amounts": stats.with_amounts,
            "near_limit": stats.near_limit,
            "at_limit": stats.at_limit,
        },
        "issues": list(check.issues),
        "warnings": list(check.warnings),
    }
    print(json.dumps(output, indent=2))
    return 0


def _simulate(args: argparse.Namespace) -> int:
    settings = load_settings()
    mode = DistributionMode(args.mode)
    asset = _build_asset(args)
    rows = _collect_rows(args, mode, asset.decimals, settings)

    chain = SimulatedLedger(args.sender, fee_basis_points=args.fee_bps)
    chain.set_balance(args.sender, to_minor_units(args.balance, asset.decimals), asset.token_address)
    for scripted in args.fail:
        stage, _, outcome = scripted.partition(":")
        chain.fail_next(stage, outcome, f"Simulated {stage} {outcome}")

    orchestrator = DistributionOrchestrator(
        gateway=chain,
        ledger=_history_ledger(args, settings),
        sender=args.sender,
        asset=asset,
        settings=settings,
        distributor_address=args.distributor,
    )
    orchestrator.set_mode(mode)
    orchestrator.replace_rows(rows)
    if args.amount:
        orchestrator.equal_amount = args.amount
    logger.info("Simulating %s distribution of %s to %d rows", mode.value, asset.label, len(rows))

    output = asyncio.run(_run_distribution(orchestrator))
    print(json.dumps(output, indent=2))
    return 0 if orchestrator.phase == TransactionPhase.SUCCEEDED else 1


async def _run_distribution(orchestrator: DistributionOrchestrator) -> dict:
    await orchestrator.refresh()
    batch = orchestrator.batch
    fee = orchestrator.fee
    gas = orchestrator.gas
    approved = False

    if orchestrator.needs_approval:
        approved = True
        await orchestrator.approve()
    if orchestrator.phase != TransactionPhase.FAILED:
        await orchestrator.send()

    failure = orchestrator.last_failure
    return {
        "phase": orchestrator.phase.value,
        "approval_requested": approved,
        "reference": orchestrator.last_reference,
        "recipients": len(batch.recipients),
        "total": to_decimal_string(batch.total_minor_units, orchestrator.asset.decimals),
        "fee": to_decimal_string(fee.fee_minor_units, orchestrator.asset.decimals),
        "gas": None if gas is None else {"estimate": gas.estimate, "tier": gas.tier.value},
        "failure": None if failure is None else failure.to_dict(),
    }


def _history_show(args: argparse.Namespace) -> int:
    settings = load_settings()
    entries = _history_ledger(args, settings).load()
    print(json.dumps([entry.to_dict() for entry in entries], indent=2))
    return 0


def _address_book_add(args: argparse.Namespace) -> int:
    book = AddressBook(_store(args, load_settings()))
    if not book.save(args.address, args.label):
        raise ValueError(f"Invalid address: {args.address!r}")
    print(f"{args.address} saved as {args.label!r}")
    return 0


def _address_book_list(args: argparse.Namespace) -> int:
    book = AddressBook(_store(args, load_settings()))
    for entry in book.entries():
        print(f"{entry.address} {entry.label}")
    return 0


def _add_batch_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mode", choices=("equal", "custom"), default="equal")
    parser.add_argument("--amount", default="")
    parser.add_argument("--recipient", action="append", default=[], metavar="ADDRESS[=AMOUNT]")
    parser.add_argument("--file")
    parser.add_argument("--no-headers", action="store_true")
    parser.add_argument("--token")
    parser.add_argument("--decimals", type=int, default=18)
    parser.add_argument("--symbol", default="")


def _build_asset(args: argparse.Namespace) -> AssetDescriptor:
    if args.token:
        return AssetDescriptor.token(args.token, args.decimals, args.symbol)
    return AssetDescriptor.native(symbol=args.symbol or "ETH", decimals=args.decimals)


def _collect_rows(
    args: argparse.Namespace, mode: DistributionMode, decimals: int, settings: EngineSettings
) -> List[RecipientRow]:
    rows = list(_parse_recipients(args.recipient))
    if args.file:
        validation = validate_import(
            _read_source(args.file),
            has_headers=not args.no_headers,
            amounts_required=mode == DistributionMode.CUSTOM,
            decimals=decimals,
            max_errors=settings.max_import_errors,
        )
        if not validation.is_valid:
            raise ValueError("Import rejected:\n" + "\n".join(validation.errors))
        rows.extend(validation.accepted_rows)
    if not rows:
        raise ValueError("At least one --recipient or --file is required.")
    return rows


def _parse_recipients(values: Iterable[str]) -> Iterable[RecipientRow]:
    for value in values:
        address, _, amount = value.partition("=")
        yield RecipientRow(address=address.strip(), amount=amount.strip())


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise ValueError(f"File not found: {source}")
    return path.read_text()


def _store(args: argparse.Namespace, settings: EngineSettings) -> FileKeyValueStore:
    return FileKeyValueStore(Path(args.store) if args.store else settings.store_path)


def _history_ledger(args: argparse.Namespace, settings: EngineSettings) -> HistoryLedger:
    return HistoryLedger(_store(args, settings), capacity=settings.history_capacity)


if __name__ == "__main__":
    raise SystemExit(main())
