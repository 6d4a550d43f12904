"""
Document management - named sources with last-good-score retention.
"""

from omniscore.documents.manager import DocumentManager, DocumentMetadata, ScoreDocument

__all__ = [
    "DocumentManager",
    "DocumentMetadata",
    "ScoreDocument",
]
