from models import TransactionSummary
from utils import short_address


SYSTEM_PROMPT = """You are an expert blockchain analyst specializing in Ethereum wallet \
behavior analysis. Your role is to provide comprehensive, actionable insights about wallet \
activity patterns, user behavior, and potential use cases based on transaction history.

IMPORTANT: Be transparent about data limitations. If you're analyzing a limited sample of \
recent transactions, clearly state this in your analysis and note that the wallet may have \
a much longer history.

Always structure your response as a JSON object with exactly these fields:
{
  "summary": "A concise 2-3 sentence overview of the wallet's primary characteristics, noting if analysis is based on limited data",
  "insights": ["Array of 3-5 key behavioral insights, mentioning data limitations when relevant"],
  "behaviorPattern": "Detailed analysis of transaction patterns and user behavior, acknowledging sample limitations if applicable",
  "riskAssessment": "Assessment of wallet activity from security and compliance perspective",
  "recommendations": ["Array of 2-4 actionable recommendations for the wallet holder"]
}

Respond with the JSON object only."""


ANALYSIS_PROMPT = """Analyze this Ethereum wallet's transaction history and provide comprehensive insights:

WALLET OVERVIEW:
- Address: {address}
- Transactions Analyzed: {total}{sample_label}
- Active Period: {first_date} to {last_date}
- Transaction Frequency: {frequency}{sample_note}

TRANSACTION SUMMARY:
- Total ETH Sent: {sent:.4f} ETH ({outgoing} transactions)
- Total ETH Received: {received:.4f} ETH ({incoming} transactions)
- Average Transaction Value: {average:.6f} ETH
- Unique Counterparties: {counterparties}
- Net ETH Flow: {net:.4f} ETH

RECENT TRANSACTION PATTERNS (Last {recent_count}):
{recent}

ANALYSIS REQUIREMENTS:
1. Identify the primary use case/behavior pattern (e.g., trading, DeFi, hodling, business operations, etc.)
2. Assess transaction timing patterns and frequency
3. Evaluate the risk profile based on transaction patterns
4. Determine if this appears to be a personal wallet, exchange, smart contract, or institutional wallet
5. Identify any notable patterns in counterparty interactions
6. Provide actionable insights for optimization or security{limited_requirement}

Please provide a comprehensive analysis focusing on behavioral patterns, usage characteristics, \
and practical recommendations.{closing_note}"""


_LIMITED_NOTE = (
    "\n\nWARNING: This analysis is based on the most recent {size} transactions only. "
    "The wallet may have significantly more transaction history."
)

_DIRECTION_PREPOSITION = {
    "outgoing": "to",
    "incoming": "from",
    "self": "to",
    "unrelated": "between",
}


def _recent_lines(summary: TransactionSummary) -> str:
    if not summary.recent_transactions:
        return "(none)"
    lines = []
    for i, tx in enumerate(summary.recent_transactions, 1):
        lines.append(
            f"{i}. {tx.direction.upper()}: {tx.value:.6f} ETH "
            f"{_DIRECTION_PREPOSITION[tx.direction]} {short_address(tx.counterparty or 'contract creation', 6)} "
            f"on {tx.timestamp.date().isoformat()} (tx {short_address(tx.hash, 8)})"
        )
    return "\n".join(lines)


def build_analysis_prompt(summary: TransactionSummary) -> str:
    """Render every field of the summary into the user message."""
    limited = summary.is_limited_sample
    first = summary.first_transaction_date
    last = summary.last_transaction_date

    return ANALYSIS_PROMPT.format(
        address=summary.address,
        total=summary.total_transactions,
        sample_label=(
            " (limited sample - wallet likely has more history)"
            if limited else " (complete history)"
        ),
        first_date=first.date().isoformat() if first else "N/A",
        last_date=last.date().isoformat() if last else "N/A",
        frequency=summary.transaction_frequency,
        sample_note=_LIMITED_NOTE.format(size=summary.sample_size) if limited else "",
        sent=summary.total_sent,
        outgoing=summary.outgoing_count,
        received=summary.total_received,
        incoming=summary.incoming_count,
        average=summary.average_transaction_value,
        counterparties=summary.unique_counterparties,
        net=summary.net_flow,
        recent_count=len(summary.recent_transactions),
        recent=_recent_lines(summary),
        limited_requirement=(
            "\n7. IMPORTANT: Acknowledge in your analysis that this is based on "
            "recent transaction history only"
            if limited else ""
        ),
        closing_note=(
            " Note that your analysis is based on recent transactions and the wallet "
            "may have a much longer history."
            if limited else ""
        ),
    )
