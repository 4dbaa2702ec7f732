"""
Analyst Agent - assesses founder caliber and investment potential.

Caliber is scored per answer across six categories, each the mean of four
indicators. Indicators are keyword/regex heuristics over the answer text.
"""

import logging
import re

from liora.agents.base import AgentStatus, BaseAgent
from liora.models.evaluation import (
    CaliberCategories,
    CaliberCategory,
    CaliberMetrics,
    Concern,
    FounderInsight,
    InvestmentCategories,
    InvestmentScore,
    Recommendation,
    RedFlag,
    RedFlagType,
    Severity,
    Strength,
)
from liora.models.interview import ConversationEntry, SharedContext

logger = logging.getLogger(__name__)


# Indicators with no dedicated scorer start from a baseline and get a bump
# when the answer touches their subject: name -> (baseline, pattern)
BASELINE_INDICATORS: dict[str, tuple[int, str]] = {
    "industry_understanding": (60, r"industry|sector|vertical"),
    "competitive_awareness": (65, r"competitor|competition|alternative"),
    "market_sizing": (55, r"tam|market size|addressable|\$[\d.]+\s*[bm]\b"),
    "trend_awareness": (70, r"trend|shift|adoption"),
    "long_term_planning": (60, r"long.term|years|roadmap"),
    "problem_solving": (65, r"solve|solution|approach"),
    "prioritization": (55, r"prioriti|focus|first"),
    "systems_thinking": (50, r"ecosystem|integrat|platform"),
    "challenge_handling": (70, r"challenge|difficult|obstacle"),
    "adaptability": (65, r"adapt|pivot|changed"),
    "persistence": (60, r"persist|kept|continued"),
    "learning_orientation": (75, r"learned|learning|lesson"),
    "financial_literacy": (55, r"revenue|margin|unit economics|burn|runway|cac|ltv"),
    "operational_excellence": (60, r"process|operations|efficien"),
    "customer_focus": (70, r"customer|user|client"),
    "scalability_awareness": (65, r"scale|growth|expand"),
}
BASELINE_BUMP = 10

CATEGORY_CONFIDENCE: dict[str, float] = {
    "communication": 0.8,
    "leadership": 0.75,
    "market_knowledge": 0.7,
    "strategic_thinking": 0.65,
    "resilience": 0.6,
    "business_acumen": 0.75,
}

# Conversation-level red flags: (type, severity, description, evidence, pattern)
CONVERSATION_RED_FLAGS = [
    (
        RedFlagType.FINANCIAL, Severity.HIGH,
        "Financial concerns detected", "Financial issues mentioned in conversation",
        r"no revenue|zero revenue|haven't made money|burn rate.*high|running out.*money|no clear path.*monetization",
    ),
    (
        RedFlagType.MARKET, Severity.MEDIUM,
        "Operating in declining market", "Market decline mentioned",
        r"shrinking market|declining industry",
    ),
    (
        RedFlagType.TEAM, Severity.HIGH,
        "Key team member departures", "Team departure mentioned",
        r"co.?founder.*left|team.*quit",
    ),
    (
        RedFlagType.PRODUCT, Severity.HIGH,
        "Product-market fit concerns", "PMF issues mentioned",
        r"no.*product.*market.*fit|customers.*don.*use",
    ),
]

# Investment scoring
INVESTMENT_WEIGHTS: dict[str, float] = {
    "market": 0.25,
    "product": 0.20,
    "team": 0.25,
    "traction": 0.20,
    "financials": 0.10,
}
INVESTMENT_BASELINES: dict[str, float] = {
    "market": 75,
    "product": 70,
    "team": 80,
    "traction": 65,
    "financials": 60,
}
RED_FLAG_PENALTY = 5  # per high-severity red flag area, on the overall score
FINANCIAL_FLAG_PENALTY = 15  # per financial red flag severity, on the financials score


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


def _cap(score: float) -> float:
    return min(100, score)


class AnalystAgent(BaseAgent):
    """Scores founder caliber, spots red flags and rates investment potential."""

    def __init__(self, agent_id: str = "analyst-001"):
        super().__init__(agent_id, "analyst")

    # =========================================================================
    # CALIBER ASSESSMENT
    # =========================================================================

    def assess_caliber_metrics(self, response: str, context: SharedContext | None = None) -> CaliberMetrics:
        """
        Assess founder caliber from a single answer.

        Args:
            response: The founder's answer
            context: Shared interview context (used for logging)

        Returns:
            CaliberMetrics with per-category scores, red flags,
            strengths and concerns
        """
        self.update_status(AgentStatus.PROCESSING, "Assessing founder caliber")
        self.log_activity(
            "Assessing caliber metrics",
            response_length=len(response),
            topic=context.session.current_topic if context else None,
        )

        try:
            categories = CaliberCategories(
                communication=self._assess_communication(response),
                leadership=self._assess_leadership(response),
                market_knowledge=self._assess_market_knowledge(response),
                strategic_thinking=self._assess_strategic_thinking(response),
                resilience=self._assess_resilience(response),
                business_acumen=self._assess_business_acumen(response),
            )

            metrics = CaliberMetrics.from_categories(
                categories,
                red_flags=self._detect_response_red_flags(response),
                strengths=self._identify_strengths(categories),
                concerns=self._identify_concerns(categories),
            )

            self.update_status(AgentStatus.IDLE)
            return metrics
        except Exception as e:
            self.handle_error(e, "assess_caliber_metrics")
            raise

    def _category(self, name: str, indicators: dict[str, float], evidence: list[str], key_indicators: list[str]) -> CaliberCategory:
        return CaliberCategory(
            score=sum(indicators.values()) / len(indicators),
            confidence=CATEGORY_CONFIDENCE[name],
            evidence=evidence,
            key_indicators=key_indicators,
        )

    def _baseline(self, name: str, text: str) -> float:
        baseline, pattern = BASELINE_INDICATORS[name]
        return _cap(baseline + BASELINE_BUMP) if _has(pattern, text) else baseline

    def _assess_communication(self, response: str) -> CaliberCategory:
        clarity = self._clarity(response)
        articulation = self._articulation(response)
        confidence = self._confidence(response)
        persuasiveness = self._persuasiveness(response)

        text = response.lower()
        key_indicators = []
        if _has(r"because|since|therefore", text):
            key_indicators.append("Uses logical connectors")
        if len(response) > 200:
            key_indicators.append("Provides detailed responses")
        if _has(r"for example|specifically", text):
            key_indicators.append("Gives concrete examples")

        return self._category(
            "communication",
            {"clarity": clarity, "articulation": articulation, "confidence": confidence, "persuasiveness": persuasiveness},
            [
                f"Clarity score: {clarity}",
                f"Articulation score: {articulation}",
                f"Confidence indicators present: {confidence > 70}",
            ],
            key_indicators,
        )

    def _assess_leadership(self, response: str) -> CaliberCategory:
        vision = self._vision(response)
        decision_making = self._decision_making(response)
        team_building = self._team_building(response)
        accountability = self._accountability(response)

        text = response.lower()
        key_indicators = []
        if _has(r"team|we|our", text):
            key_indicators.append("Team-oriented language")
        if _has(r"decided|chose|led", text):
            key_indicators.append("Decision-making examples")
        if _has(r"vision|future|goal", text):
            key_indicators.append("Forward-thinking")

        return self._category(
            "leadership",
            {"vision": vision, "decision_making": decision_making, "team_building": team_building, "accountability": accountability},
            [
                f"Vision clarity: {'Strong' if vision > 70 else 'Needs development'}",
                f"Decision-making examples: {'Present' if decision_making > 60 else 'Limited'}",
                f"Team building focus: {'Evident' if team_building > 50 else 'Not clear'}",
            ],
            key_indicators,
        )

    def _assess_market_knowledge(self, response: str) -> CaliberCategory:
        text = response.lower()
        indicators = {
            name: self._baseline(name, text)
            for name in ("industry_understanding", "competitive_awareness", "market_sizing", "trend_awareness")
        }

        key_indicators = []
        if _has(r"competitor|competition", text):
            key_indicators.append("Competitive awareness")
        if _has(r"market size|tam|addressable", text):
            key_indicators.append("Market sizing knowledge")
        if _has(r"trend|industry|sector", text):
            key_indicators.append("Industry awareness")

        return self._category(
            "market_knowledge",
            indicators,
            [
                f"Industry knowledge depth: {indicators['industry_understanding']}",
                f"Competitive awareness: {indicators['competitive_awareness']}",
                f"Market sizing approach: {'Data-driven' if indicators['market_sizing'] > 60 else 'Needs improvement'}",
            ],
            key_indicators,
        )

    def _assess_strategic_thinking(self, response: str) -> CaliberCategory:
        text = response.lower()
        indicators = {
            name: self._baseline(name, text)
            for name in ("long_term_planning", "problem_solving", "prioritization", "systems_thinking")
        }

        key_indicators = []
        if _has(r"strategy|plan|roadmap", text):
            key_indicators.append("Strategic planning")
        if _has(r"prioritize|focus|important", text):
            key_indicators.append("Prioritization skills")
        if _has(r"long.term|future|years", text):
            key_indicators.append("Long-term thinking")

        return self._category(
            "strategic_thinking",
            indicators,
            [
                f"Long-term planning: {'Present' if indicators['long_term_planning'] > 60 else 'Limited'}",
                f"Problem-solving approach: {indicators['problem_solving']}",
                f"Prioritization skills: {'Evident' if indicators['prioritization'] > 50 else 'Unclear'}",
            ],
            key_indicators,
        )

    def _assess_resilience(self, response: str) -> CaliberCategory:
        text = response.lower()
        indicators = {
            name: self._baseline(name, text)
            for name in ("challenge_handling", "adaptability", "persistence", "learning_orientation")
        }

        key_indicators = []
        if _has(r"challenge|difficult|problem", text):
            key_indicators.append("Acknowledges challenges")
        if _has(r"learned|adapted|changed", text):
            key_indicators.append("Learning orientation")
        if _has(r"persisted|continued|kept", text):
            key_indicators.append("Persistence")

        return self._category(
            "resilience",
            indicators,
            [
                f"Challenge handling: {'Strong' if indicators['challenge_handling'] > 60 else 'Developing'}",
                f"Adaptability: {indicators['adaptability']}",
                f"Learning orientation: {'Present' if indicators['learning_orientation'] > 50 else 'Limited'}",
            ],
            key_indicators,
        )

    def _assess_business_acumen(self, response: str) -> CaliberCategory:
        text = response.lower()
        indicators = {
            name: self._baseline(name, text)
            for name in ("financial_literacy", "operational_excellence", "customer_focus", "scalability_awareness")
        }

        key_indicators = []
        if _has(r"revenue|profit|margin", text):
            key_indicators.append("Financial awareness")
        if _has(r"customer|user|client", text):
            key_indicators.append("Customer focus")
        if _has(r"scale|growth|expand", text):
            key_indicators.append("Scalability thinking")

        return self._category(
            "business_acumen",
            indicators,
            [
                f"Financial literacy: {indicators['financial_literacy']}",
                f"Operational thinking: {indicators['operational_excellence']}",
                f"Customer focus: {'Strong' if indicators['customer_focus'] > 60 else 'Needs development'}",
            ],
            key_indicators,
        )

    # Indicator scorers

    def _clarity(self, response: str) -> float:
        score = 50
        if len(response) > 100:
            score += 20
        if _has(r"because|since|therefore|as a result", response.lower()):
            score += 15
        if len(response.split(".")) > 2:
            score += 10
        return _cap(score)

    def _articulation(self, response: str) -> float:
        score = 60
        sentences = [s for s in re.split(r"[.!?]", response) if s.strip()]
        if len(sentences) > 3:
            score += 15
        if _has(r"specifically|particularly|for example", response.lower()):
            score += 10
        if "," in response:
            score += 5
        return _cap(score)

    def _confidence(self, response: str) -> float:
        text = response.lower()
        score = 50
        score += 10 * sum(1 for phrase in ("we have", "we've achieved", "i'm confident", "we know", "proven") if phrase in text)
        score -= 8 * sum(1 for phrase in ("i think", "maybe", "probably", "not sure", "i believe") if phrase in text)
        return max(0, _cap(score))

    def _persuasiveness(self, response: str) -> float:
        text = response.lower()
        score = 40
        if _has(r"data shows|research indicates|studies prove", text):
            score += 20
        if _has(r"customer|client|user", text):
            score += 10
        if _has(r"\d+%|\$[\d,]+", response):
            score += 15
        return _cap(score)

    def _vision(self, response: str) -> float:
        text = response.lower()
        score = 40
        if _has(r"future|vision|long.term|years from now", text):
            score += 20
        if _has(r"transform|change|revolutionize|impact", text):
            score += 15
        if _has(r"we see|we envision|our goal", text):
            score += 10
        return _cap(score)

    def _decision_making(self, response: str) -> float:
        text = response.lower()
        score = 50
        if _has(r"decided|chose|selected|prioritized", text):
            score += 15
        if _has(r"because|rationale|reason", text):
            score += 10
        if _has(r"data.driven|analysis|evaluated", text):
            score += 15
        return _cap(score)

    def _team_building(self, response: str) -> float:
        text = response.lower()
        score = 40
        if _has(r"team|hire|recruit|culture", text):
            score += 20
        if _has(r"we|our team|together", text):
            score += 10
        if _has(r"leadership|manage|lead", text):
            score += 10
        return _cap(score)

    def _accountability(self, response: str) -> float:
        text = response.lower()
        score = 50
        if _has(r"responsible|accountable|my fault|i made", text):
            score += 15
        if _has(r"learned|mistake|improve", text):
            score += 10
        return _cap(score)

    # Strengths, concerns and red flags

    def _detect_response_red_flags(self, response: str) -> list[RedFlag]:
        flags = []
        text = response.lower()

        if _has(r"no revenue|zero revenue|haven't made money", text):
            flags.append(RedFlag(
                type=RedFlagType.FINANCIAL,
                severity=Severity.HIGH,
                description="No revenue generation mentioned",
                evidence=response[:100],
            ))

        if _has(r"no competition|no competitors", text):
            flags.append(RedFlag(
                type=RedFlagType.MARKET,
                severity=Severity.MEDIUM,
                description="Claims no competition exists",
                evidence=response[:100],
            ))

        return flags

    def _identify_strengths(self, categories: CaliberCategories) -> list[Strength]:
        return [
            Strength(
                category=name,
                description=f"Exceptional {name.replace('_', ' ')}",
                evidence="; ".join(category.evidence),
                impact=Severity.HIGH,
            )
            for name, category in categories.items()
            if category.score > 80
        ]

    def _identify_concerns(self, categories: CaliberCategories) -> list[Concern]:
        return [
            Concern(
                category=name,
                description=f"Needs improvement in {name.replace('_', ' ')}",
                evidence="; ".join(category.evidence),
                severity=Severity.MEDIUM,
            )
            for name, category in categories.items()
            if category.score < 40
        ]

    def identify_red_flags(self, history: list[ConversationEntry]) -> list[RedFlag]:
        """Scan the whole conversation for red flags."""
        self.update_status(AgentStatus.PROCESSING, "Identifying red flags")
        self.log_activity("Identifying red flags", history_length=len(history))

        text = " ".join(entry.response for entry in history).lower()
        flags = [
            RedFlag(type=flag_type, severity=severity, description=description, evidence=evidence)
            for flag_type, severity, description, evidence, pattern in CONVERSATION_RED_FLAGS
            if _has(pattern, text)
        ]

        self.update_status(AgentStatus.IDLE)
        return flags

    # =========================================================================
    # FOUNDER INSIGHTS
    # =========================================================================

    def generate_insights(self, responses: list[str], founder_id: str = "current-founder") -> list[FounderInsight]:
        """Insights about the founder across all answers."""
        self.update_status(AgentStatus.THINKING, "Generating founder insights")
        self.log_activity("Generating insights", response_count=len(responses))

        combined = " ".join(responses).lower()
        insights = []

        def evidence(pattern: str) -> list[str]:
            return [r for r in responses if _has(pattern, r.lower())][:3]

        if _has(r"lead|manage|team|decision|vision", combined):
            insights.append(FounderInsight(
                founder_id=founder_id,
                category="leadership",
                insight="Demonstrates strong leadership qualities through clear communication and decision-making examples",
                evidence=evidence(r"lead|manage|team"),
                confidence=0.8,
            ))

        if _has(r"market|competitor|industry|customer|segment", combined):
            insights.append(FounderInsight(
                founder_id=founder_id,
                category="market-knowledge",
                insight="Shows deep understanding of market dynamics and competitive landscape",
                evidence=evidence(r"market|competitor"),
                confidence=0.75,
            ))

        if _has(r"challenge|difficult|adapt|learn|overcome", combined):
            insights.append(FounderInsight(
                founder_id=founder_id,
                category="resilience",
                insight="Demonstrates ability to handle challenges and adapt to changing circumstances",
                evidence=evidence(r"challenge|difficult"),
                confidence=0.7,
            ))

        self.update_status(AgentStatus.IDLE)
        return insights

    # =========================================================================
    # INVESTMENT POTENTIAL
    # =========================================================================

    def calculate_investment_potential(self, context: SharedContext) -> InvestmentScore:
        """
        Rate investment potential from the caliber assessed so far.

        Category scores are averaged over every assessed answer; with no
        assessments yet the baselines are used. Red flags pull the
        financials and overall scores down.
        """
        self.update_status(AgentStatus.PROCESSING, "Calculating investment potential")
        self.log_activity("Calculating investment score", session_id=context.session.id)

        try:
            # A per-answer flag and its conversation-level counterpart share an area
            flagged = {(f.type, f.severity) for f in context.red_flags}
            assessed = [e.caliber_metrics for e in context.conversation_history if e.caliber_metrics]
            if not assessed and context.caliber_metrics:
                assessed = [context.caliber_metrics]

            if assessed:
                def mean(name: str) -> float:
                    return sum(getattr(m.categories, name).score for m in assessed) / len(assessed)

                financial_flags = sum(1 for flag_type, _ in flagged if flag_type == RedFlagType.FINANCIAL)
                scores = {
                    "market": mean("market_knowledge"),
                    "product": mean("strategic_thinking"),
                    "team": (mean("leadership") + mean("communication")) / 2,
                    "traction": mean("business_acumen"),
                    "financials": max(0, mean("business_acumen") - FINANCIAL_FLAG_PENALTY * financial_flags),
                }
            else:
                scores = dict(INVESTMENT_BASELINES)

            scores = {key: round(value, 1) for key, value in scores.items()}
            overall = sum(scores[key] * weight for key, weight in INVESTMENT_WEIGHTS.items())
            high_flags = sum(1 for _, severity in flagged if severity == Severity.HIGH)
            overall = round(max(0, overall - RED_FLAG_PENALTY * high_flags), 1)

            recommendation = Recommendation.from_score(overall)
            reasoning = []
            for key, value in scores.items():
                if value > 80:
                    reasoning.append(f"Strong {key} potential ({value})")
                if value < 40:
                    reasoning.append(f"Concerns about {key} ({value})")
            reasoning.append(f"Overall recommendation: {recommendation.value}")

            score = InvestmentScore(
                overall=overall,
                categories=InvestmentCategories(**scores),
                recommendation=recommendation,
                reasoning=reasoning,
            )

            self.update_status(AgentStatus.IDLE)
            return score
        except Exception as e:
            self.handle_error(e, "calculate_investment_potential")
            raise
