"""Build-time search index and query engine for a Markdoc blog."""
