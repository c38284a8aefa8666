"""Blog administration backend: articles, tag links and admin login."""

__version__ = "1.0.0"
