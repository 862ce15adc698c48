"""Tests for the in-process file cache."""

import time

from invoice_scan.services.file_cache import FileCache


class TestFileCache:
    """Tests for FileCache."""

    def test_put_then_get(self, sample_pdf_bytes: bytes):
        cache = FileCache()
        file_id = cache.put(sample_pdf_bytes, "invoice.pdf").file_id

        cached = cache.get(file_id)
        assert cached is not None
        assert cached.buffer == sample_pdf_bytes
        assert cached.file_name == "invoice.pdf"
        assert cached.size == len(sample_pdf_bytes)
        assert cached.uploaded_at.endswith("Z")

    def test_put_returns_stored_entry(self):
        cache = FileCache(ttl_seconds=0)
        entry = cache.put(b"%PDF-1.4", "a.pdf")
        assert entry.file_id
        assert entry.file_name == "a.pdf"
        assert entry.uploaded_at.endswith("Z")

    def test_ids_are_unique(self):
        cache = FileCache()
        ids = {cache.put(b"%PDF-1.4", "same.pdf").file_id for _ in range(50)}
        assert len(ids) == 50
        assert len(cache) == 50

    def test_unknown_id_returns_none(self):
        cache = FileCache()
        assert cache.get("missing") is None
        assert "missing" not in cache

    def test_no_eviction_by_default(self):
        cache = FileCache()
        first = cache.put(b"first", "a.pdf").file_id
        for _ in range(100):
            cache.put(b"more", "b.pdf")
        assert cache.get(first) is not None

    def test_capacity_evicts_oldest(self):
        cache = FileCache(max_entries=2)
        first = cache.put(b"1", "1.pdf").file_id
        second = cache.put(b"2", "2.pdf").file_id
        third = cache.put(b"3", "3.pdf").file_id

        assert cache.get(first) is None
        assert cache.get(second) is not None
        assert cache.get(third) is not None
        assert len(cache) == 2

    def test_ttl_expires_entries(self):
        cache = FileCache(ttl_seconds=0.01)
        file_id = cache.put(b"data", "a.pdf").file_id
        time.sleep(0.05)
        assert cache.get(file_id) is None
        assert len(cache) == 0
