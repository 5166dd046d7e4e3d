"""
agenteval - batch evaluation of agent interaction logs with an LLM judge
"""

__version__ = "0.1.0"
