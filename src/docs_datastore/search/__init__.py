"""
Search indexing and query engine package.

This package provides a pure-Python section search stack:
- analyzers: Tokenizers and filters (lowercase, stop, stemming) with char offsets
- sections: Split parsed document trees into heading-delimited sections
- term_index: Term index builder, BM25 scoring and query parsing
- storage: JSON artifact persistence for the index plus section registry
- cache: Fingerprint-validated cache of loaded artifacts
- engine: Regroup flat entry matches into per-section hits
- highlight: Rebuild raw/mark fragments from match positions
- service / indexer: Query and indexing entry points
"""
