# utme_cbt/services/__init__.py
"""
Session assembly across subjects
"""

from .session_service import SessionAssembler, to_dto, group_by_subject

__all__ = [
    "SessionAssembler",
    "to_dto",
    "group_by_subject"
]
