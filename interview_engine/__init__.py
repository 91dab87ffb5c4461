"""
Interview Engine - AI-Driven Mock Interview Sessions

Runs multi-turn mock interviews: tailored questions, AI-scored answers,
adaptive difficulty, follow-ups and a final scored report with peer
comparison.
"""

__version__ = "0.1.0"
