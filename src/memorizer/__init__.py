"""
Quiz Memorizer.

Batch memorization engine for quizzes: questions are studied and assessed in
small batches, failures are recycled until every question is answered
correctly, and cumulative results are derived from an append-only ledger.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
