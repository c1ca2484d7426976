"""CSV adapters around the processor: transaction events in, account snapshots out."""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Union

import structlog
from pydantic import ValidationError

from errors import InputSourceError
from models import AMOUNT_DECIMAL_PLACES, AccountSnapshot, TransactionEvent

logger = structlog.get_logger()

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)


def read_transactions(source: Union[str, Path, TextIO]) -> Iterator[TransactionEvent]:
    """
    Lazily yield transaction events from a CSV file path or open text stream.

    Malformed rows are logged and skipped. Raises InputSourceError when the
    source can't be opened or decoded, or has no usable header.
    """
    if hasattr(source, "read"):
        yield from _read_stream(source, str(getattr(source, "name", "<stream>")))
        return

    try:
        with open(source, newline="", encoding="utf-8-sig") as f:
            yield from _read_stream(f, str(source))
    except OSError as e:
        raise InputSourceError(f"Cannot read {source}: {e}") from e


def _read_stream(stream: TextIO, name: str) -> Iterator[TransactionEvent]:
    reader = csv.reader(stream, skipinitialspace=True)
    try:
        header = next(reader, None)
        if header is None:
            return
        columns = _parse_header(header, name)

        while True:
            # The reader resets its state per record, so a bad record only costs its own line.
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                logger.warning("Skipping malformed row", line=reader.line_num, error=str(e))
                continue

            if not any(field.strip() for field in row):
                continue
            event = _parse_row(row, columns, reader.line_num)
            if event is not None:
                yield event
    except (csv.Error, UnicodeDecodeError) as e:
        raise InputSourceError(f"Cannot parse {name} at line {reader.line_num}: {e}") from e


def _parse_header(header: List[str], name: str) -> List[str]:
    columns = [column.strip().lower() for column in header]
    missing = [column for column in REQUIRED_COLUMNS if column not in columns]
    if missing:
        raise InputSourceError(f"{name} is missing columns: {', '.join(missing)}")
    return columns


def _parse_row(row: List[str], columns: List[str], line: int) -> Optional[TransactionEvent]:
    if len(row) > len(columns):
        logger.warning(
            "Skipping malformed row",
            line=line,
            error=f"expected at most {len(columns)} fields, got {len(row)}"
        )
        return None

    fields: Dict[str, str] = {
        column: value.strip() for column, value in zip(columns, row)
    }
    # The amount column may be omitted entirely on dispute/resolve/chargeback rows.
    missing = [column for column in REQUIRED_COLUMNS if column not in fields]
    if missing:
        logger.warning(
            "Skipping malformed row",
            line=line,
            error=f"missing fields: {', '.join(missing)}"
        )
        return None

    try:
        return TransactionEvent.model_validate({
            "type": fields["type"],
            "client": fields["client"],
            "tx": fields["tx"],
            "amount": fields.get("amount") or None,
        })
    except ValidationError as e:
        logger.warning(
            "Skipping malformed row",
            line=line,
            error="; ".join(_describe(err) for err in e.errors())
        )
        return None


def _describe(err: dict) -> str:
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err['msg']}" if location else err["msg"]


def format_amount(value: Decimal) -> str:
    """Render an amount with a fixed four fractional digits."""
    return f"{value.quantize(_QUANTUM):f}"


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])
