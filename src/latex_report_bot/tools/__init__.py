"""Deterministic tools: compiler invocation and working-file management."""
