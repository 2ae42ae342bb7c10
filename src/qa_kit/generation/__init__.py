from .orchestrator import BatchResult, GenerationOrchestrator
from .session import GenerationKind, GenerationSession, Progress

__all__ = [
    "BatchResult",
    "GenerationKind",
    "GenerationOrchestrator",
    "GenerationSession",
    "Progress",
]
