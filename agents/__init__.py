"""
Agents package for Gemini-backed recruiting agents.

Each agent lives in its own subpackage with agent.py and prompts.py and
registers itself with the registry on import.
"""

from agents.registry import registry, register_agent
from agents.base import BaseAgent

# Import all agents to register them
from agents.scoring.agent import ScoringAgent
from agents.resume.agent import ResumeAgent
from agents.job_search.agent import JobSearchAgent
from agents.content.agent import ContentAgent

__all__ = [
    "registry",
    "register_agent",
    "BaseAgent",
    "ScoringAgent",
    "ResumeAgent",
    "JobSearchAgent",
    "ContentAgent",
]
