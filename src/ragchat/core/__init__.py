"""Request-orchestration core: options, retrieval, history, rate limiting, LLM."""
