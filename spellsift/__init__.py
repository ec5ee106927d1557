"""Spell search and filter core.

Provides the query parser, filter pipeline and typeahead suggestion engine
that back an interactive spell browser.
"""

__version__ = "0.1.0"
