"""
Core interview engine for Liora

- errors: error types shared by every layer
- question_manager: priority queue of interview questions
- workflow: LangGraph coordination of the agents
- interview_orchestrator: session lifecycle state machine
- ai_reasoning: optional LLM polish, prose and tracing
- memo_generator: investment memo construction
"""
