"""Orchestration around the scoring core: caching, LLM fallback, dashboards."""
