"""Job orchestrator tests: lifecycle, progress, deduplication, edits and export."""
