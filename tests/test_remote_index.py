"""Tests for remote listing and bulk deletion."""

from unittest.mock import Mock

import pytest

from pys3sync.api import S3Client
from pys3sync.exceptions import S3SyncTransferError
from pys3sync.sync.remote_index import RemoteObjectIndex, iter_batches


class TestIterBatches:
    """Tests for iter_batches."""

    def test_empty(self):
        assert list(iter_batches([])) == []

    def test_splits_at_batch_size(self):
        keys = [str(i) for i in range(2500)]
        batches = list(iter_batches(keys))
        assert [len(b) for b in batches] == [1000, 1000, 500]
        assert sum(batches, []) == keys

    def test_custom_size(self):
        assert list(iter_batches(["a", "b", "c"], batch_size=2)) == [
            ["a", "b"],
            ["c"],
        ]


class TestRemoteObjectIndex:
    """Tests for RemoteObjectIndex."""

    def test_list_strips_prefix(self, boto_s3, s3_client):
        boto_s3.put("site", "v2/index.html", b"<html>")
        boto_s3.put("site", "v2/css/main.css", b"body{}")
        boto_s3.put("site", "other/x.txt", b"x")

        objects = RemoteObjectIndex(s3_client).list("site", "v2/")

        assert sorted(o.relative_path for o in objects) == [
            "css/main.css",
            "index.html",
        ]

    def test_list_skips_folder_marker(self, boto_s3, s3_client):
        boto_s3.put("site", "v2/", b"")
        boto_s3.put("site", "v2/a.txt", b"a")

        objects = RemoteObjectIndex(s3_client).list("site", "v2/")

        assert [o.key for o in objects] == ["v2/a.txt"]

    def test_list_follows_pagination(self, boto_s3, s3_client):
        boto_s3.page_size = 2
        for i in range(5):
            boto_s3.put("site", f"f{i}.txt", b"x")

        objects = RemoteObjectIndex(s3_client).list("site", "")

        assert len(objects) == 5

    def test_list_empty_bucket(self, s3_client):
        assert RemoteObjectIndex(s3_client).list("site", "") == []

    def test_as_map(self, boto_s3, s3_client):
        boto_s3.put("site", "p/a.txt", b"a")
        index = RemoteObjectIndex(s3_client)
        mapping = index.as_map(index.list("site", "p/"))
        assert list(mapping) == ["a.txt"]

    def test_delete_all_batches(self, boto_s3, s3_client):
        for i in range(2500):
            boto_s3.put("site", f"p/{i:05d}", b"")
        boto_s3.put("site", "keep/me", b"")
        progress = []

        deleted = RemoteObjectIndex(s3_client).delete_all(
            "site", "p/", progress_callback=lambda n, total: progress.append((n, total))
        )

        assert deleted == 2500
        assert [len(call) for call in boto_s3.delete_calls] == [1000, 1000, 500]
        assert boto_s3.keys("site") == ["keep/me"]
        assert progress == [(1000, 2500), (1000, 2500), (500, 2500)]

    def test_delete_all_nothing_to_delete(self, boto_s3, s3_client):
        assert RemoteObjectIndex(s3_client).delete_all("site", "p/") == 0
        assert boto_s3.delete_calls == []

    def test_delete_all_stops_on_first_failure(self):
        client = Mock(spec=S3Client)
        client.iter_objects.return_value = iter(
            [{"Key": str(i)} for i in range(1500)]
        )
        client.delete_objects.side_effect = S3SyncTransferError("boom")

        with pytest.raises(S3SyncTransferError):
            RemoteObjectIndex(client).delete_all("site", "")

        assert client.delete_objects.call_count == 1
