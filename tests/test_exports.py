"""Unit tests for report exports."""

from __future__ import annotations

import io
import json

import openpyxl

from exports import to_csv, to_excel, to_json
from tests.conftest import SUBJECT


def test_csv_contains_summary_and_analysis(wallet_report) -> None:
    text = to_csv(wallet_report).decode("utf-8")

    assert SUBJECT in text
    assert "Transactions Analyzed,2" in text
    assert "Insight,Mostly outgoing transfers" in text
    assert "Recommendation,Use a hardware wallet" in text


def test_json_round_trips_report_fields(wallet_report) -> None:
    data = json.loads(to_json(wallet_report))

    assert data["address"] == SUBJECT
    assert data["summary"]["total_transactions"] == 2
    assert data["analysis"]["risk_assessment"] == "Low risk."


def test_excel_is_a_workbook(wallet_report) -> None:
    data = to_excel(wallet_report)

    assert data[:2] == b"PK"
    wb = openpyxl.load_workbook(io.BytesIO(data))
    assert wb.sheetnames == ["Summary", "Recent Transactions", "Insights"]
    summary = wb["Summary"]
    assert summary["A1"].value == "Ethereum Wallet Analysis Report"
    assert summary["B3"].value == SUBJECT
    # title row is merged across A:E; every column still gets a width
    for letter in "ABCDE":
        assert summary.column_dimensions[letter].width > 0
