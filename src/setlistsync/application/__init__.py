"""Application layer - sync phases, orchestration and search."""
