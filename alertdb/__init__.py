"""Alert dashboard aggregations for the ``alertdb`` MongoDB database."""

__version__ = "0.1.0"
