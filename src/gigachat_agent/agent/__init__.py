"""
Agent module - conversation state and turn orchestration.

Includes:
- SessionOrchestrator: one turn at a time against the LLM, plus tools
- ConversationContext: bounded in-memory conversation log
- Compaction: summary-based history compression
"""

from .compaction import CompactionResult, build_summary_prompt
from .context import ConversationContext
from .core import SessionOrchestrator, TurnResult

__all__ = [
    "SessionOrchestrator",
    "TurnResult",
    "ConversationContext",
    "CompactionResult",
    "build_summary_prompt",
]
