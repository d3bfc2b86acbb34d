"""
External service adapters for Signalist.

- llm_providers: text generation (Gemini) behind a common ``infer`` contract
"""
