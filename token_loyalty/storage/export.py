"""
State export.

Serializes a session to a JSON document and hands it to a sink. The
sink is whatever the host uses to save files; DirectorySink writes to
a local directory.
"""

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from token_loyalty.core.ledger import LedgerEntry
from token_loyalty.core.programs import Program
from token_loyalty.core.session import Session

ExportSink = Callable[[str, bytes], Any]


def _number(value: Decimal):
    """Render a Decimal as int when integral, else float, for JSON."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _program_to_dict(program: Program) -> Dict[str, Any]:
    return {
        "id": program.id,
        "name": program.name,
        "tokenSymbol": program.token_symbol,
        "fixedCentsPerPoint": program.fixed_cents_per_point,
        "earnRatePct": _number(program.earn_rate_pct),
        "breakagePct": _number(program.breakage_pct),
    }


def _entry_to_dict(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "ts": epoch_ms(entry.timestamp),
        "type": entry.kind.value,
        "programId": entry.program_id,
        "amountPts": _number(entry.points_amount),
        "amountUsd": _number(entry.value_amount),
        "note": entry.note,
    }


def epoch_ms(moment: datetime) -> int:
    """Unix epoch milliseconds for a datetime."""
    return int(moment.timestamp() * 1000)


def state_to_dict(session: Session) -> Dict[str, Any]:
    """Build the export document for a session.

    Returns:
        Dict with wallet, programs, balances and ledger keys; ledger rows
        are most recent first
    """
    wallet = None
    if session.wallet is not None:
        wallet = {
            "address": session.wallet.address,
            "network": session.wallet.network.value,
        }
    return {
        "wallet": wallet,
        "programs": [_program_to_dict(p) for p in session.registry.list()],
        "balances": {
            program_id: _number(balance)
            for program_id, balance in session.ledger.balances.items()
        },
        "ledger": [_entry_to_dict(e) for e in session.ledger.entries],
    }


def serialize_state(session: Session) -> bytes:
    """Serialize a session to UTF-8 JSON."""
    document = json.dumps(state_to_dict(session), indent=2, ensure_ascii=False)
    return document.encode("utf-8")


def export_filename(moment: datetime) -> str:
    return f"tokenloyalty-demo-{epoch_ms(moment)}.json"


def export_state(session: Session, sink: ExportSink, now: Optional[datetime] = None) -> str:
    """Serialize a session and hand the document to a sink.

    Args:
        session: Session to export
        sink: Callable receiving (filename, payload)
        now: Export time used in the filename (defaults to datetime.now())

    Returns:
        The filename given to the sink
    """
    filename = export_filename(now or datetime.now())
    sink(filename, serialize_state(session))
    return filename


class DirectorySink:
    """Export sink that writes documents into a directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def __call__(self, filename: str, payload: bytes) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_bytes(payload)
        return path
