"""Domain model for fragments."""

from fragments.model.fragment import Fragment

__all__ = ["Fragment"]
