from __future__ import annotations

import io
import logging

import pandas as pd

from pokerledger.domain import RawRow

logger = logging.getLogger(__name__)

NICKNAME_COLUMN = "player_nickname"
AMOUNT_COLUMNS = ("buy_in", "buy_out", "stack")


class CsvFormatError(ValueError):
    """Raised when an uploaded ledger export cannot be read as a session table."""


def parse_ledger_csv(data: bytes) -> list[RawRow]:
    if not data.strip():
        raise CsvFormatError("uploaded file is empty")

    try:
        frame = pd.read_csv(
            io.BytesIO(data),
            dtype=str,
            encoding="utf-8-sig",
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise CsvFormatError(f"unable to parse CSV: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    if NICKNAME_COLUMN not in frame.columns:
        raise CsvFormatError(f"missing required column: {NICKNAME_COLUMN}")

    missing = [column for column in AMOUNT_COLUMNS if column not in frame.columns]
    if missing:
        logger.info("Ledger export has no %s column(s), treating them as zero", ", ".join(missing))

    rows: list[RawRow] = []
    skipped = 0
    for record in frame.to_dict(orient="records"):
        if not str(record.get(NICKNAME_COLUMN, "")).strip():
            skipped += 1
            continue
        rows.append(RawRow.from_record(record))

    if skipped:
        logger.warning("Skipped %d ledger row(s) without a player nickname", skipped)
    if not rows:
        raise CsvFormatError("no player rows found")
    return rows
