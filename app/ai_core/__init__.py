"""
AI Core Module - sentiment scoring for ingested chat messages.

Key responsibilities:
- Scorer contract consumed by the ingestion pipeline
- LLM-backed default scorer (SAP GenAI SDK proxy)
- Scoring prompts
"""
