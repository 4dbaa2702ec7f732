"""
Investment Memo Prompts

Contains prompts for the prose parts of the memo that go beyond
the heuristic numbers.
"""

from liora.models.evaluation import InvestmentScore
from liora.models.interview import SharedContext


class MemoPrompts:
    """
    Prompt templates for investment memo writing.

    Used to draft:
    - The investment thesis
    - The reasoning behind the recommendation
    """

    SYSTEM_CONTEXT = """You are a venture capital associate writing an internal investment memo.

Your role:
- Summarize what the founder interview revealed
- Be specific and cite what the founder said
- Be balanced: name the strengths and the risks
- Write for partners who did not attend the interview
"""

    def investment_thesis_prompt(self, context: SharedContext, score: InvestmentScore) -> str:
        """Prompt for the investment thesis paragraph."""

        exchanges = "\n".join(
            f"Q: {entry.question}\nA: {entry.response[:300]}"
            for entry in context.conversation_history[-5:]
        ) or "No answers recorded."

        red_flags = "\n".join(f"- {flag.description}" for flag in context.red_flags) or "- None"
        strengths = "\n".join(
            f"- {insight.description}" for insight in context.current_insights.strengths[:5]
        ) or "- None identified"

        market = ""
        if context.rag_data and context.rag_data.public_data:
            data = context.rag_data.public_data.market_data
            market = f"Market: {data.size}, growing {data.growth}\n"

        return f"""{self.SYSTEM_CONTEXT}

=== COMPANY ===
Name: {context.company_name}
Sector: {context.company_data.sector if context.company_data else context.session.setup.sector}
Stage: {context.company_data.stage if context.company_data else context.session.setup.stage}
{market}
=== SCORES ===
Overall: {score.overall:.0f}/100 ({score.recommendation.display_name})
Market: {score.categories.market:.0f}  Product: {score.categories.product:.0f}  Team: {score.categories.team:.0f}
Traction: {score.categories.traction:.0f}  Financials: {score.categories.financials:.0f}

=== STRENGTHS ===
{strengths}

=== RED FLAGS ===
{red_flags}

=== RECENT EXCHANGES ===
{exchanges}

Write the investment thesis in 3-4 sentences.

Respond in JSON:
{{"thesis": "<investment thesis>", "reasoning": ["<point>", "<point>"]}}
"""
