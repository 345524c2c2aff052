"""Chatbot core.

Converts a Korean natural-language question into one allow-listed, sanitized REST call against the
log API, and optionally summarizes the returned rows with an LLM.
"""
