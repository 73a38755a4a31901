from .store import IDocumentStore

__all__ = ["IDocumentStore"]
