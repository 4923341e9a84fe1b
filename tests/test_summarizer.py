"""Unit tests for the transaction summarizer."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from summarizer import SINGLE_DAY_ACTIVITY, direction_of, fingerprint, summarize
from tests.conftest import OTHER, SUBJECT, THIRD
from utils import wei_to_ether


def test_empty_list_gives_zero_summary() -> None:
    summary = summarize([], SUBJECT)

    assert summary.total_transactions == 0
    assert summary.outgoing_count == 0
    assert summary.incoming_count == 0
    assert summary.total_sent == 0
    assert summary.total_received == 0
    assert summary.average_transaction_value == 0
    assert summary.unique_counterparties == 0
    assert summary.first_transaction_date is None
    assert summary.last_transaction_date is None
    assert summary.transaction_frequency == SINGLE_DAY_ACTIVITY
    assert summary.recent_transactions == []
    assert summary.is_limited_sample is False
    assert summary.sample_size == 0


def test_direction_counts_and_integer_sums(tx_factory) -> None:
    sent = [10**18, 5 * 10**17, 123]
    received = [2 * 10**18, 1, 333_333_333_333_333_333, 7]
    txs = [tx_factory(from_address=SUBJECT, to_address=OTHER, value=v) for v in sent]
    txs += [tx_factory(from_address=THIRD, to_address=SUBJECT, value=v) for v in received]

    summary = summarize(txs, SUBJECT)

    assert summary.total_transactions == 7
    assert summary.outgoing_count == 3
    assert summary.incoming_count == 4
    assert summary.total_sent == wei_to_ether(sum(sent))
    assert summary.total_received == wei_to_ether(sum(received))
    assert summary.total_sent == Decimal("1.500000000000000123")


def test_address_comparison_is_case_insensitive(tx_factory) -> None:
    txs = [
        tx_factory(from_address=SUBJECT.lower(), to_address=OTHER),
        tx_factory(from_address=OTHER.upper().replace("0X", "0x"), to_address=SUBJECT.upper().replace("0X", "0x")),
    ]

    summary = summarize(txs, SUBJECT)

    assert summary.outgoing_count == 1
    assert summary.incoming_count == 1
    assert summary.unique_counterparties == 1


def test_self_transfer_counts_both_directions(tx_factory) -> None:
    txs = [tx_factory(from_address=SUBJECT, to_address=SUBJECT, value=10**18)]

    summary = summarize(txs, SUBJECT)

    assert summary.outgoing_count == 1
    assert summary.incoming_count == 1
    assert summary.total_sent == Decimal(1)
    assert summary.total_received == Decimal(1)
    assert summary.unique_counterparties == 0
    assert summary.recent_transactions[0].direction == "self"


def test_counterparties_are_distinct_and_skip_contract_creation(tx_factory) -> None:
    txs = [
        tx_factory(from_address=SUBJECT, to_address=OTHER),
        tx_factory(from_address=OTHER, to_address=SUBJECT),
        tx_factory(from_address=THIRD, to_address=SUBJECT),
        tx_factory(from_address=SUBJECT, to_address=""),
    ]

    assert summarize(txs, SUBJECT).unique_counterparties == 2


def test_average_uses_full_sample(tx_factory) -> None:
    txs = [tx_factory(value=10**18), tx_factory(value=2 * 10**18)]

    assert summarize(txs, SUBJECT).average_transaction_value == Decimal("1.5")


def test_dates_and_frequency_follow_descending_order(tx_factory) -> None:
    txs = [
        tx_factory(timestamp=1_700_086_400),
        tx_factory(timestamp=1_700_050_000),
        tx_factory(timestamp=1_700_000_000),
    ]

    summary = summarize(txs, SUBJECT)

    assert summary.last_transaction_date == datetime.fromtimestamp(1_700_086_400, tz=timezone.utc)
    assert summary.first_transaction_date == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
    assert summary.transaction_frequency == "3.00 tx/day"


def test_same_timestamp_is_single_day_activity(tx_factory) -> None:
    txs = [tx_factory(timestamp=1_700_000_000), tx_factory(timestamp=1_700_000_000)]

    assert summarize(txs, SUBJECT).transaction_frequency == SINGLE_DAY_ACTIVITY


def test_recent_excerpt_is_first_ten_in_source_order(tx_factory) -> None:
    txs = [tx_factory(timestamp=1_700_000_000 - i) for i in range(15)]

    recent = summarize(txs, SUBJECT).recent_transactions

    assert len(recent) == 10
    assert [r.hash for r in recent] == [t.hash for t in txs[:10]]


def test_recent_excerpt_annotations(tx_factory) -> None:
    txs = [
        tx_factory(from_address=SUBJECT, to_address=OTHER, value=25 * 10**16, timestamp=1_700_000_000),
        tx_factory(from_address=THIRD, to_address=SUBJECT, value=10**18),
    ]

    out, inc = summarize(txs, SUBJECT).recent_transactions

    assert out.direction == "outgoing"
    assert out.counterparty == OTHER
    assert out.value == Decimal("0.25")
    assert out.timestamp.isoformat() == "2023-11-14T22:13:20+00:00"
    assert inc.direction == "incoming"
    assert inc.counterparty == THIRD


@pytest.mark.parametrize(
    ("count", "limited"),
    [(1, False), (99, False), (100, True)],
)
def test_limited_sample_flag_tracks_page_size(tx_factory, count: int, limited: bool) -> None:
    txs = [tx_factory() for _ in range(count)]

    summary = summarize(txs, SUBJECT)

    assert summary.is_limited_sample is limited
    assert summary.sample_size == count


def test_limited_sample_flag_uses_custom_page_size(tx_factory) -> None:
    txs = [tx_factory() for _ in range(5)]

    assert summarize(txs, SUBJECT, page_size=5).is_limited_sample is True


def test_direction_of_unrelated_transaction(tx_factory) -> None:
    tx = tx_factory(from_address=OTHER, to_address=THIRD)

    assert direction_of(tx, SUBJECT) == "unrelated"


def test_fingerprint_is_stable_and_order_sensitive(tx_factory) -> None:
    a = tx_factory(timestamp=2)
    b = tx_factory(timestamp=1)

    assert fingerprint([a, b]) == fingerprint([a, b])
    assert fingerprint([a, b]) != fingerprint([b, a])
    assert fingerprint([a]) != fingerprint([a, b])
