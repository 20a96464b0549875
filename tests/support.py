import tempfile
import unittest

from fastapi.testclient import TestClient

from coach_api.core.dependencies import get_attachments, get_store
from coach_api.core.files import AttachmentStore
from coach_api.core.memory_store import InMemoryStore
from coach_api.main import app


class ApiTestCase(unittest.TestCase):
    """TestClient wired to a fresh in-memory store and a temp uploads dir."""

    def make_store(self) -> InMemoryStore:
        return InMemoryStore()

    def setUp(self):
        self.store = self.make_store()
        self._uploads = tempfile.TemporaryDirectory()
        self.attachments = AttachmentStore(self._uploads.name)
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_attachments] = lambda: self.attachments
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self._uploads.cleanup()

    def seed(self, table: str, *rows: dict) -> list[dict]:
        out = []
        for row in rows:
            stored = dict(row)
            stored.setdefault("id", self.store._next_id(table))
            self.store.rows(table).append(stored)
            out.append(stored)
        return out
