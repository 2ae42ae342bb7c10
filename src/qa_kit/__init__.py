# Cancellation
from .cancellation import CancelToken

# Chunking
from .chunking import (
    Chunk,
    ChunkingAlgorithm,
    ChunkingEngine,
    ChunkOptions,
    ChunkSource,
    chunk_document,
)

# Dataset
from .dataset import DatasetStore, MergePolicy, QARecord

# Errors
from .errors import (
    BackendUnavailable,
    Cancelled,
    InputError,
    ParseError,
    QAKitError,
    RecordGenerationError,
)

# Generation
from .generation import (
    BatchResult,
    GenerationKind,
    GenerationOrchestrator,
    GenerationSession,
    Progress,
)

# Streaming clients
from .llms import (
    GenerationSettings,
    LLMConfig,
    StreamingClient,
    create_streaming_client,
)

# Observability
from .observability import LoggingMetricsHook, MetricsHook, NoOpMetricsHook

# Parsers
from .parsers import clean_text, parse_delimited, parse_json, parse_jsonl

# Prompts
from .prompts import PromptTemplate, PromptTemplatesLibrary, render_prompt

# Schema
from .schema import KeyNode, KeyTree, extract_keys

__all__ = [
    # Cancellation
    "CancelToken",
    # Chunking
    "Chunk",
    "ChunkingAlgorithm",
    "ChunkingEngine",
    "ChunkOptions",
    "ChunkSource",
    "chunk_document",
    # Dataset
    "DatasetStore",
    "MergePolicy",
    "QARecord",
    # Errors
    "BackendUnavailable",
    "Cancelled",
    "InputError",
    "ParseError",
    "QAKitError",
    "RecordGenerationError",
    # Generation
    "BatchResult",
    "GenerationKind",
    "GenerationOrchestrator",
    "GenerationSession",
    "Progress",
    # Streaming clients
    "GenerationSettings",
    "LLMConfig",
    "StreamingClient",
    "create_streaming_client",
    # Observability
    "LoggingMetricsHook",
    "MetricsHook",
    "NoOpMetricsHook",
    # Parsers
    "clean_text",
    "parse_delimited",
    "parse_json",
    "parse_jsonl",
    # Prompts
    "PromptTemplate",
    "PromptTemplatesLibrary",
    "render_prompt",
    # Schema
    "KeyNode",
    "KeyTree",
    "extract_keys",
]
