"""
LLM agents and the tools they call
"""
