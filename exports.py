import csv
import io
import json

from models import WalletReport


def _date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "N/A"


def to_csv(report: WalletReport) -> bytes:
    """Export wallet report to CSV."""
    out = io.StringIO()
    w = csv.writer(out)
    s = report.summary
    a = report.analysis

    w.writerow(["ETHEREUM WALLET ANALYSIS REPORT"])
    w.writerow(["Generated", report.generated_at.strftime("%Y-%m-%d %H:%M:%S")])
    w.writerow([])

    # ── Summary ───────────────────────────────────────────────────────
    w.writerow(["SUMMARY"])
    w.writerow(["Identifier", report.identifier])
    w.writerow(["Address", report.address])
    w.writerow(["ENS Name", report.ens_name or "N/A"])
    w.writerow(["Transactions Analyzed", s.total_transactions])
    w.writerow(["Limited Sample", "Yes" if s.is_limited_sample else "No"])
    w.writerow(["Outgoing", s.outgoing_count])
    w.writerow(["Incoming", s.incoming_count])
    w.writerow(["Total Sent (ETH)", f"{s.total_sent:.6f}"])
    w.writerow(["Total Received (ETH)", f"{s.total_received:.6f}"])
    w.writerow(["Net Flow (ETH)", f"{s.net_flow:.6f}"])
    w.writerow(["Average Value (ETH)", f"{s.average_transaction_value:.6f}"])
    w.writerow(["Unique Counterparties", s.unique_counterparties])
    w.writerow(["Frequency", s.transaction_frequency])
    w.writerow(["First Activity", _date(s.first_transaction_date)])
    w.writerow(["Last Activity", _date(s.last_transaction_date)])
    w.writerow([])

    # ── Recent Transactions ───────────────────────────────────────────
    w.writerow(["RECENT TRANSACTIONS"])
    w.writerow(["Direction", "Value (ETH)", "Counterparty", "Timestamp", "Hash"])
    for tx in s.recent_transactions:
        w.writerow([
            tx.direction, f"{tx.value:.6f}", tx.counterparty,
            tx.timestamp.isoformat(), tx.hash,
        ])
    w.writerow([])

    # ── AI Analysis ───────────────────────────────────────────────────
    w.writerow(["AI ANALYSIS"])
    w.writerow(["Summary", a.summary])
    for insight in a.insights:
        w.writerow(["Insight", insight])
    w.writerow(["Behavior Pattern", a.behavior_pattern])
    w.writerow(["Risk Assessment", a.risk_assessment])
    for rec in a.recommendations:
        w.writerow(["Recommendation", rec])

    return out.getvalue().encode("utf-8")


def to_json(report: WalletReport) -> bytes:
    """Export wallet report as formatted JSON."""
    return json.dumps(report.model_dump(mode="json"), indent=2).encode("utf-8")


def to_excel(report: WalletReport) -> bytes:
    """Export wallet report to formatted Excel workbook."""
    import openpyxl
    from openpyxl.styles import Alignment, Font, PatternFill
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    s = report.summary
    a = report.analysis

    # ── Summary Sheet ─────────────────────────────────────────────────
    ws = wb.active
    ws.title = "Summary"

    accent = PatternFill(start_color="6c5ce7", end_color="6c5ce7", fill_type="solid")
    dark = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
    white_bold = Font(bold=True, color="FFFFFF")
    bold = Font(bold=True)

    ws.merge_cells("A1:E1")
    ws["A1"] = "Ethereum Wallet Analysis Report"
    ws["A1"].font = Font(bold=True, size=16, color="FFFFFF")
    ws["A1"].fill = accent
    ws["A1"].alignment = Alignment(horizontal="center")

    rows = [
        ("Address", report.address),
        ("ENS Name", report.ens_name or "N/A"),
        ("Generated", report.generated_at.strftime("%Y-%m-%d %H:%M:%S")),
        ("", ""),
        ("Transactions Analyzed", f"{s.total_transactions:,}"),
        ("Limited Sample", "Yes" if s.is_limited_sample else "No"),
        ("Total Sent (ETH)", f"{s.total_sent:.6f}"),
        ("Total Received (ETH)", f"{s.total_received:.6f}"),
        ("Net Flow (ETH)", f"{s.net_flow:.6f}"),
        ("Unique Counterparties", str(s.unique_counterparties)),
        ("Frequency", s.transaction_frequency),
        ("First Activity", _date(s.first_transaction_date)),
        ("Last Activity", _date(s.last_transaction_date)),
        ("", ""),
        ("AI Summary", a.summary),
        ("Behavior Pattern", a.behavior_pattern),
        ("Risk Assessment", a.risk_assessment),
    ]
    for i, (label, value) in enumerate(rows, 3):
        ws[f"A{i}"] = label
        ws[f"A{i}"].font = bold
        ws[f"B{i}"] = value

    # ── Recent Transactions Sheet ─────────────────────────────────────
    ws2 = wb.create_sheet("Recent Transactions")
    headers = ["Direction", "Value (ETH)", "Counterparty", "Timestamp", "Hash"]
    for col, h in enumerate(headers, 1):
        cell = ws2.cell(row=1, column=col, value=h)
        cell.font = white_bold
        cell.fill = dark

    for i, tx in enumerate(s.recent_transactions, 2):
        ws2.cell(row=i, column=1, value=tx.direction)
        ws2.cell(row=i, column=2, value=f"{tx.value:.6f}")
        ws2.cell(row=i, column=3, value=tx.counterparty)
        ws2.cell(row=i, column=4, value=tx.timestamp.isoformat())
        ws2.cell(row=i, column=5, value=tx.hash)

    # ── Insights Sheet ────────────────────────────────────────────────
    ws3 = wb.create_sheet("Insights")
    ws3.cell(row=1, column=1, value="Insights").font = bold
    for i, insight in enumerate(a.insights, 2):
        ws3.cell(row=i, column=1, value=insight)
    ws3.cell(row=1, column=2, value="Recommendations").font = bold
    for i, rec in enumerate(a.recommendations, 2):
        ws3.cell(row=i, column=2, value=rec)

    # Auto-fit column widths
    for sheet in [ws, ws2, ws3]:
        for idx, col in enumerate(sheet.columns, 1):
            max_len = max(len(str(cell.value or "")) for cell in col)
            sheet.column_dimensions[get_column_letter(idx)].width = min(max_len + 3, 45)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
