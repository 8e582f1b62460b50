# -*- coding: utf-8 -*-
"""
Vector Store Services
=====================

Local vector-store backends implementing ``VectorStoreCapability``.
"""

from .memory_store import InMemoryVectorStore, StoredDocument, tokenize

__all__ = ["InMemoryVectorStore", "StoredDocument", "tokenize"]
