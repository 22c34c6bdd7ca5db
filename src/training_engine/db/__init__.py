"""Database module for training load storage."""

from .database import TrainingDatabase

__all__ = ["TrainingDatabase"]
