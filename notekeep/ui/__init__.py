"""User interface components for notekeep."""

from .console import NotesConsoleUI

__all__ = ["NotesConsoleUI"]
