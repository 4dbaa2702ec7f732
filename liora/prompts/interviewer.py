"""
AI Interviewer Prompt Templates

Contains structured prompts for:
- Rewording queued questions in the investor's voice
- Closing remarks at the end of an interview

Designed to make the AI sound like a partner at a fund having a
conversation, not a form being read aloud.
"""

from liora.models.catalog import DEFAULT_PERSONA, InvestorPersona
from liora.models.interview import SharedContext


class InterviewerPrompts:
    """
    Prompt templates for the AI investor.

    Key principles:
    - Conversational but direct
    - One question at a time
    - Keeps every concrete number the question already carries
    - Never invents facts about the company
    """

    def __init__(self, persona: InvestorPersona | None = None):
        self.persona = persona or DEFAULT_PERSONA

    @property
    def system_context(self) -> str:
        persona = self.persona
        return f"""You are {persona.name}, an investor interviewing a startup founder.

Background: {persona.background}
Investment focus: {", ".join(persona.investment_focus)}
Specialties: {", ".join(persona.specialties)}
Style: {persona.questioning_style}

Guidelines:
- Ask one question at a time
- Sound like a person in a meeting, not a questionnaire
- Keep the question short enough to say out loud
- Keep any figures, company names and competitor names exactly as given
"""

    def polish_question_prompt(self, question: str, context: SharedContext) -> str:
        """Prompt for rewording a question without changing what it asks."""

        recent = ""
        if context.conversation_history:
            last = context.conversation_history[-1]
            recent = f"""
=== LAST EXCHANGE ===
Q: {last.question}
A: {last.response[:400]}
"""

        transition = ""
        memory = context.memory_context
        if memory and memory.key_insights:
            transition = "\nThings the founder already told you: " + "; ".join(memory.key_insights[-3:])

        return f"""{self.system_context}

=== INTERVIEW ===
Company: {context.company_name}
Current topic: {context.session.current_topic}
Question {context.session.progress.current_question_index + 1} of about {context.session.progress.total_estimated_questions}
{recent}{transition}

=== QUESTION TO ASK ===
{question}

Reword the question so it flows naturally from the conversation. Do not change
what is being asked and do not add new questions.

Respond in JSON:
{{"question": "<the reworded question>"}}
"""

    def closing_remarks_prompt(self, context: SharedContext) -> str:
        """Prompt for the investor's closing remarks."""

        topics = ", ".join(context.session.progress.completed_topics) or context.session.current_topic

        return f"""{self.system_context}

The interview with the founder of {context.company_name} is over.
Topics covered: {topics}
Exchanges: {len(context.conversation_history)}

Write two sentences thanking the founder and explaining that the team will
follow up after reviewing the conversation. Do not give a verdict.
"""
