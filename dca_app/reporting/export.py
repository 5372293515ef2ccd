"""CSV and JSON export of the purchase history."""

import csv
import io
from typing import Iterable

import orjson

from ..models.purchase import PurchaseAttempt

CSV_HEADER = ["Date", "Amount (USDT)", "Quantity", "Price", "Order ID", "Status", "Error"]


def attempts_to_csv(attempts: Iterable[PurchaseAttempt]) -> str:
    """
    Render attempts as CSV, one row per attempt in the given order.

    Absent order ids and failure reasons become empty cells.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for attempt in attempts:
        record = attempt.to_record()
        writer.writerow([
            record["timestamp"],
            f"{attempt.requested_amount:.2f}",
            f"{attempt.filled_quantity:.8f}",
            f"{attempt.fill_price:.2f}",
            record["orderId"] or "",
            record["status"],
            record["failureReason"] or "",
        ])

    return buffer.getvalue()


def attempts_to_json(attempts: Iterable[PurchaseAttempt]) -> bytes:
    """Render attempts as a JSON array of export records."""
    return orjson.dumps([attempt.to_record() for attempt in attempts])
