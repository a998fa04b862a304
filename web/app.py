"""Local-first FastAPI shell for batch distributions."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel

from distribution_adapter.ethereum.simulator import SimulatedLedger
from distribution_engine.addresses import find_duplicate_addresses
from distribution_engine.amounts import to_decimal_string, to_minor_units
from distribution_engine.fees import quote_fee
from distribution_engine.models import AssetDescriptor, AssetKind, DistributionMode, RecipientRow
from distribution_engine.resolver import amount_warnings, resolve_batch, summarize_rows
from distribution_engine.settings import EngineSettings, load_settings
from history_ledger.ledger import HistoryLedger
from history_ledger.store import FileKeyValueStore, KeyValueStore
from recipient_import.csv_parser import generate_template
from recipient_import.validator import validate_import
from send_controller.controller import DistributionOrchestrator, SendBlockedError

logger = logging.getLogger(__name__)

app = FastAPI(title="Multisend", description="Local-first batch distribution shell")

_SETTINGS: EngineSettings = load_settings()
_STATE: Dict[str, object] = {
    "store": FileKeyValueStore(_SETTINGS.store_path),
    "chain": None,
    "orchestrator": None,
}


class RowInput(BaseModel):
    address: str = ""
    amount: str = ""


class AssetInput(BaseModel):
    kind: str = "NATIVE"
    decimals: int = 18
    symbol: str = ""
    token_address: Optional[str] = None


class ImportRequest(BaseModel):
    text: str
    has_headers: bool = True
    custom: bool = False
    decimals: int = 18


class ResolveRequest(BaseModel):
    mode: str = "equal"
    rows: List[RowInput]
    equal_amount: str = ""
    decimals: int = 18
    symbol: str = ""
    fee_basis_points: int = 0
    balance: Optional[str] = None


class SessionRequest(BaseModel):
    sender: str
    distributor: Optional[str] = None
    asset: AssetInput = AssetInput()
    balance: str = "0"
    fee_basis_points: int = 0


class RowsRequest(BaseModel):
    mode: str = "equal"
    rows: List[RowInput]
    equal_amount: str = ""


class RowsImportRequest(BaseModel):
    text: str
    has_headers: bool = True


class ScriptedFailureRequest(BaseModel):
    stage: str
    outcome: str
    message: str


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_errors(request: Request, exc: Exception):
    return JSONResponse({"error": str(exc)}, status_code=400)


for _exc_class in (SendBlockedError, ValueError):
    app.add_exception_handler(_exc_class, _handle_errors)


@app.get("/", response_class=HTMLResponse)
async def dashboard() -> HTMLResponse:
    return HTMLResponse(_render_dashboard())


@app.get("/api/template", response_class=PlainTextResponse)
async def template(custom: bool = False, headers: bool = True) -> PlainTextResponse:
    return PlainTextResponse(
        generate_template(custom_amounts=custom, include_headers=headers), media_type="text/csv"
    )


@app.post("/api/import/validate")
async def import_validate(payload: ImportRequest):
    validation = validate_import(
        payload.text,
        has_headers=payload.has_headers,
        amounts_required=payload.custom,
        decimals=payload.decimals,
        max_errors=_SETTINGS.max_import_errors,
    )
    return validation.to_dict()


@app.post("/api/batch/resolve")
async def batch_resolve(payload: ResolveRequest):
    mode = DistributionMode(payload.mode)
    rows = [RecipientRow(address=row.address, amount=row.amount) for row in payload.rows]
    batch = resolve_batch(mode, rows, payload.equal_amount, payload.decimals)
    fee = quote_fee(batch.total_minor_units, payload.fee_basis_points)
    balance = to_minor_units(payload.balance, payload.decimals) if payload.balance else None
    check = amount_warnings(
        mode,
        payload.equal_amount,
        batch.total_minor_units + fee.fee_minor_units,
        balance,
        payload.decimals,
        payload.symbol,
    )
    stats = summarize_rows(rows, mode, payload.decimals, _SETTINGS.max_recipients)
    return {
        "batch": batch.to_dict(),
        "total": to_decimal_string(batch.total_minor_units, payload.decimals),
        "fee": to_decimal_string(fee.fee_minor_units, payload.decimals),
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


@app.post("/api/session")
async def create_session(payload: SessionRequest):
    asset = _build_asset(payload.asset)
    chain = SimulatedLedger(payload.sender, fee_basis_points=payload.fee_basis_points)
    chain.set_balance(payload.sender, to_minor_units(payload.balance, asset.decimals), asset.token_address)
    orchestrator = DistributionOrchestrator(
        gateway=chain,
        ledger=HistoryLedger(_store(), capacity=_SETTINGS.history_capacity),
        sender=payload.sender,
        asset=asset,
        settings=_SETTINGS,
        distributor_address=payload.distributor,
    )
    _STATE["chain"] = chain
    _STATE["orchestrator"] = orchestrator
    logger.info("Started session for %s distributing %s", payload.sender, asset.label)
    await orchestrator.refresh()
    return _status_payload(orchestrator)


@app.get("/api/status")
async def status():
    return _status_payload(_require_session())


@app.put("/api/rows")
async def set_rows(payload: RowsRequest):
    orchestrator = _require_session()
    orchestrator.set_mode(DistributionMode(payload.mode))
    orchestrator.replace_rows([RecipientRow(address=row.address, amount=row.amount) for row in payload.rows])
    orchestrator.equal_amount = payload.equal_amount
    return _status_payload(orchestrator)


@app.post("/api/rows/import")
async def import_rows(payload: RowsImportRequest):
    orchestrator = _require_session()
    validation = orchestrator.import_csv(payload.text, has_headers=payload.has_headers)
    return {"validation": validation.to_dict(), "status": _status_payload(orchestrator)}


@app.post("/api/refresh")
async def refresh():
    orchestrator = _require_session()
    await orchestrator.refresh()
    return _status_payload(orchestrator)


@app.post("/api/approve")
async def approve():
    orchestrator = _require_session()
    await orchestrator.approve()
    return _status_payload(orchestrator)


@app.post("/api/send")
async def send():
    orchestrator = _require_session()
    await orchestrator.send()
    return _status_payload(orchestrator)


@app.post("/api/simulation/fail")
async def script_failure(payload: ScriptedFailureRequest):
    _require_session()
    chain = _STATE["chain"]
    chain.fail_next(payload.stage, payload.outcome, payload.message)  # type: ignore[union-attr]
    return {"status": "ok"}


@app.get("/api/history")
async def history():
    ledger = HistoryLedger(_store(), capacity=_SETTINGS.history_capacity)
    return {"entries": [entry.to_dict() for entry in ledger.load()]}


def _render_dashboard() -> str:
    return """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8" />
  <title>Multisend</title>
  <style>
    body { font-family: "Segoe UI", "Helvetica Neue", Arial, sans-serif; margin: 2rem; }
    section { border: 1px solid #d3d8e0; border-radius: 12px; padding: 1rem 1.5rem; margin-bottom: 1rem; }
    textarea { width: 100%; min-height: 8rem; font-family: monospace; }
    pre { background: #f7f8fb; padding: 0.75rem; overflow-x: auto; }
  </style>
</head>
<body>
  <h1>Multisend</h1>
  <p>Local dry-run shell. Nothing leaves this machine.</p>
  <section>
    <h2>Recipients</h2>
    <label>Mode
      <select id="mode"><option value="equal">Equal</option><option value="custom">Custom</option></select>
    </label>
    <label>Amount per recipient <input id="equal-amount" /></label>
    <textarea id="csv" placeholder="address,amount"></textarea>
    <button onclick="resolveBatch()">Resolve</button>
  </section>
  <section>
    <h2>Result</h2>
    <pre id="output">{}</pre>
  </section>
  <script>
    async function resolveBatch() {
      const mode = document.getElementById("mode").value;
      const rows = document.getElementById("csv").value.split("\\n")
        .filter((line) => line.trim())
        .map((line) => {
          const [address, amount] = line.split(",");
          return { address: (address || "").trim(), amount: (amount || "").trim() };
        });
      const response = await fetch("/api/batch/resolve", {
        method: "POST",
        headers: { "Content-Type": "application/json" },
        body: JSON.stringify({
          mode,
          rows,
          equal_amount: document.getElementById("equal-amount").value,
        }),
      });
      document.getElementById("output").textContent = JSON.stringify(await response.json(), null, 2);
    }
  </script>
</body>
</html>
"""


def _status_payload(orchestrator: DistributionOrchestrator) -> dict:
    asset = orchestrator.asset
    batch = orchestrator.batch
    fee = orchestrator.fee
    gate = orchestrator.gate
    gas = orchestrator.gas
    failure = orchestrator.last_failure
    return {
        "phase": orchestrator.phase.value,
        "asset": asset.label,
        "mode": orchestrator.mode.value,
        "rows": [row.to_dict() for row in orchestrator.rows],
        "equal_amount": orchestrator.equal_amount,
        "batch": batch.to_dict(),
        "total": to_decimal_string(batch.total_minor_units, asset.decimals),
        "fee": to_decimal_string(fee.fee_minor_units, asset.decimals),
        "balance": _format_optional(orchestrator.balance, asset.decimals),
        "allowance": _format_optional(orchestrator.allowance, asset.decimals),
        "needs_approval": orchestrator.needs_approval,
        "can_send": gate.allowed,
        "blocked_reasons": list(gate.reasons),
        "gas": None if gas is None else {"estimate": gas.estimate, "tier": gas.tier.value},
        "last_failure": None if failure is None else failure.to_dict(),
        "last_reference": orchestrator.last_reference,
    }


def _format_optional(value: Optional[int], decimals: int) -> Optional[str]:
    return None if value is None else to_decimal_string(value, decimals)


def _build_asset(asset: AssetInput) -> AssetDescriptor:
    kind = AssetKind(asset.kind.upper())
    if kind == AssetKind.NATIVE:
        return AssetDescriptor.native(symbol=asset.symbol or "ETH", decimals=asset.decimals)
    return AssetDescriptor.token(asset.token_address or "", asset.decimals, asset.symbol)


def _require_session() -> DistributionOrchestrator:
    orchestrator = _STATE.get("orchestrator")
    if orchestrator is None:
        raise HTTPException(status_code=400, detail="Session not started.")
    return orchestrator  # type: ignore[return-value]


def _store() -> KeyValueStore:
    return _STATE["store"]  # type: ignore[return-value]


def _reset_state(store: Optional[KeyValueStore] = None) -> None:
    _STATE["store"] = store if store is not None else FileKeyValueStore(_SETTINGS.store_path)
    _STATE["chain"] = None
    _STATE["orchestrator"] = None
