"""
Upstream adapters - Moz data API and LLM providers
"""
