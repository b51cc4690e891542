"""Pytest fixtures for deal-updates tests."""

import csv
import tempfile
from datetime import date
from io import StringIO
from pathlib import Path
from typing import Optional

import pytest

from deal_updates.models.deal import Deal

EXPORT_HEADERS = [
    "Deal Owner",
    "Deal Name",
    "Stage",
    "Annual Contract Value",
    "Closing Date",
    "Modified Time (Notes)",
    "Note Content",
]

REFERENCE_NOW = date(2026, 3, 15)


def _build_export(rows: list[dict], banner: Optional[list[str]] = None) -> str:
    """Build export text: optional banner lines, header row, then data rows."""
    out = StringIO()
    for line in banner or []:
        out.write(line + "\r\n")
    writer = csv.DictWriter(out, fieldnames=EXPORT_HEADERS, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({h: row.get(h, "") for h in EXPORT_HEADERS})
    return out.getvalue()


def _make_row(
    owner: str = "Jane Smith",
    name: str = "Acme Renewal",
    stage: str = "Proposal",
    acv: str = "$50,000",
    closing: str = "2026-05-01",
    modified: str = "2026-03-12",
    note: str = "",
) -> dict[str, str]:
    return {
        "Deal Owner": owner,
        "Deal Name": name,
        "Stage": stage,
        "Annual Contract Value": acv,
        "Closing Date": closing,
        "Modified Time (Notes)": modified,
        "Note Content": note,
    }


def _make_deal(
    name: str = "Acme Renewal",
    owner: str = "Jane Smith",
    stage: str = "Proposal",
    acv: float = 50000.0,
    modified_date: Optional[date] = date(2026, 3, 12),
    closing_date: Optional[date] = date(2026, 5, 1),
    note: str = "",
    now: date = REFERENCE_NOW,
    **extra,
) -> Deal:
    from deal_updates.identity import make_deal_key

    deal = Deal(
        owner=owner,
        name=name,
        stage=stage,
        acv=acv,
        modified_date=modified_date,
        closing_date=closing_date,
        note=note,
        deal_key=make_deal_key(name, owner),
        **extra,
    )
    return deal.refresh_derived(now)


@pytest.fixture
def reference_now() -> date:
    """Fixed reference date for day deltas."""
    return REFERENCE_NOW


@pytest.fixture
def two_note_export() -> str:
    """Two note rows for one deal: 10 and 3 days before REFERENCE_NOW."""
    return _build_export(
        [
            _make_row(modified="2026-03-05", note="Budget confirmed."),
            _make_row(modified="2026-03-12", note="Still reviewing internally."),
        ]
    )


@pytest.fixture
def temp_db_path() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)
