"""
doc-embeddings — crawl documentation sites, chunk pages by token budget,
embed the chunks and store them in a PostgreSQL ``vector`` column.
"""

__version__ = "0.1.0"
