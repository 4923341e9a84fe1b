import hashlib
from decimal import Decimal
from typing import Sequence

from chain_providers import PAGE_SIZE
from models import Direction, RecentTransaction, Transaction, TransactionSummary
from utils import from_timestamp, same_address, wei_to_ether


RECENT_LIMIT = 10
SECONDS_PER_DAY = 24 * 60 * 60
SINGLE_DAY_ACTIVITY = "Single day activity"


def direction_of(tx: Transaction, subject: str) -> Direction:
    outgoing = same_address(tx.from_address, subject)
    incoming = same_address(tx.to_address, subject)
    if outgoing and incoming:
        return "self"
    if outgoing:
        return "outgoing"
    if incoming:
        return "incoming"
    return "unrelated"


def fingerprint(transactions: Sequence[Transaction]) -> str:
    """Order-sensitive digest of the sample's hashes and timestamps."""
    digest = hashlib.sha256()
    for tx in transactions:
        digest.update(f"{tx.hash}:{tx.timestamp};".encode())
    return digest.hexdigest()


def _frequency(count: int, oldest: int, newest: int) -> str:
    days = (newest - oldest) / SECONDS_PER_DAY
    if days > 0:
        return f"{count / days:.2f} tx/day"
    return SINGLE_DAY_ACTIVITY


def summarize(
    transactions: Sequence[Transaction],
    subject: str,
    page_size: int = PAGE_SIZE,
) -> TransactionSummary:
    """Reduce a most-recent-first transaction list into a TransactionSummary.

    Values are accumulated in wei and converted to ETH once at the end.
    A self-transfer counts as both outgoing and incoming.
    """
    count = len(transactions)
    if count == 0:
        return TransactionSummary(
            address=subject,
            transaction_frequency=SINGLE_DAY_ACTIVITY,
        )

    sent_wei = received_wei = all_wei = 0
    outgoing = incoming = 0
    counterparties: set[str] = set()

    for tx in transactions:
        all_wei += tx.value
        if same_address(tx.from_address, subject):
            outgoing += 1
            sent_wei += tx.value
            if tx.to_address:
                counterparties.add(tx.to_address.lower())
        if same_address(tx.to_address, subject):
            incoming += 1
            received_wei += tx.value
            if tx.from_address:
                counterparties.add(tx.from_address.lower())
    counterparties.discard(subject.lower())

    newest, oldest = transactions[0], transactions[-1]

    recent = []
    for tx in transactions[:RECENT_LIMIT]:
        direction = direction_of(tx, subject)
        counterparty = tx.to_address if direction in ("outgoing", "self") else tx.from_address
        recent.append(RecentTransaction(
            direction=direction,
            value=wei_to_ether(tx.value),
            counterparty=counterparty,
            timestamp=from_timestamp(tx.timestamp),
            hash=tx.hash,
        ))

    return TransactionSummary(
        address=subject,
        total_transactions=count,
        outgoing_count=outgoing,
        incoming_count=incoming,
        total_sent=wei_to_ether(sent_wei),
        total_received=wei_to_ether(received_wei),
        average_transaction_value=wei_to_ether(all_wei) / Decimal(count),
        unique_counterparties=len(counterparties),
        first_transaction_date=from_timestamp(oldest.timestamp),
        last_transaction_date=from_timestamp(newest.timestamp),
        transaction_frequency=_frequency(count, oldest.timestamp, newest.timestamp),
        recent_transactions=recent,
        is_limited_sample=count >= page_size,
        sample_size=count,
    )
