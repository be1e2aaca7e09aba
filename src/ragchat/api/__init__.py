"""HTTP surface over ``RAGChat``."""
