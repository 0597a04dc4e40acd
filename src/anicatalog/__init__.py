"""AniCatalog: anime catalog import and series consolidation."""

__version__ = "0.1.0"
