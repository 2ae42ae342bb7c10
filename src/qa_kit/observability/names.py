# src/qa_kit/observability/names.py

"""Standard metric names for qa-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
"""

# ============================================================================
# Chunking Metrics
# ============================================================================

# Duration
CHUNKING_DURATION = "chunking_duration"

# Counters (chunks accumulate over time, labelled by algorithm)
CHUNKING_CHUNKS_CREATED = "chunking_chunks_created"

# Counters (units skipped by the CSV/JSONL parsers)
PARSER_UNITS_SKIPPED = "parser_units_skipped"


# ============================================================================
# Streaming Client Metrics
# ============================================================================

# Duration (one full stream, request to last fragment)
GENERATION_STREAM_DURATION = "generation_stream_duration"

# Counters
GENERATION_REQUESTS_TOTAL = "generation_requests_total"
GENERATION_FRAGMENTS_TOTAL = "generation_fragments_total"
GENERATION_BACKEND_UNAVAILABLE_TOTAL = "generation_backend_unavailable_total"


# ============================================================================
# Orchestrator Metrics
# ============================================================================

# Duration (one batch, start to idle)
GENERATION_BATCH_DURATION = "generation_batch_duration"

# Counters
GENERATION_RECORDS_COMPLETED = "generation_records_completed"
GENERATION_ERRORS_TOTAL = "generation_errors_total"
GENERATION_CANCELLED_TOTAL = "generation_cancelled_total"

# Gauges
GENERATION_BATCH_SIZE = "generation_batch_size"
