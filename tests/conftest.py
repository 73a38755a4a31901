"""Shared fixtures: an in-memory store and a client bound to it."""

import pytest

from docstore_query import DocumentClient, InMemoryDocumentStore

pytest_plugins = ["pytest_asyncio"]


class SequentialIdGenerator:
    """Predictable ids for assertions: id-1, id-2, ..."""

    def __init__(self) -> None:
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"id-{self._counter}"


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def ids() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def client(store, ids) -> DocumentClient:
    return DocumentClient(store, id_generator=ids)


@pytest.fixture
async def seeded(store) -> InMemoryDocumentStore:
    """Companies, students and matches referencing them."""
    companies = [
        ("c1", {"name": "Acme", "city": "Stockholm", "employees": 120}),
        ("c2", {"name": "Birch", "city": "Lund", "employees": 15}),
        ("c3", {"name": "Cedar", "city": "Stockholm Central", "employees": 40}),
    ]
    for document_id, data in companies:
        await store.create_document("companies", document_id, data)

    students = [
        ("s1", {"name": "Ada", "school_id": "sc1", "email": "ada@example.com"}),
        ("s2", {"name": "Linus", "school_id": "sc2", "email": "linus@example.com"}),
    ]
    for document_id, data in students:
        await store.create_document("students", document_id, data)

    await store.create_document("schools", "sc1", {"name": "KTH"})

    matches = [
        ("m1", {"student_id": "s1", "company_id": "c1", "status": "pending"}),
        ("m2", {"student_id": "s2", "company_id": "c9", "status": "accepted"}),
        ("m3", {"student_id": "s1", "company_id": None, "status": "pending"}),
    ]
    for document_id, data in matches:
        await store.create_document("matches", document_id, data)
    return store
