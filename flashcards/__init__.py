"""Vocabulary flashcard service."""
