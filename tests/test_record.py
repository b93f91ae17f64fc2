"""Tests for playlist_crawler.record module."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import pytest

from playlist_crawler.record import (
    CrawlRequest,
    PlaylistSnapshot,
    RequestTag,
    ResultRecord,
    normalize_url,
)


class TestNormalizeUrl:
    def test_lowercases_scheme_and_host(self):
        assert (
            normalize_url("HTTPS://Open.Spotify.COM/playlist/AbC")
            == "https://open.spotify.com/playlist/AbC"
        )

    def test_drops_fragment_keeps_query(self):
        assert (
            normalize_url("https://x.com/playlist/A?si=1#top")
            == "https://x.com/playlist/A?si=1"
        )


class TestCrawlRequest:
    def test_unique_key(self):
        request = CrawlRequest("https://X.com/playlist/A#frag", RequestTag.PLAYLIST)
        assert request.unique_key == "https://x.com/playlist/A"

    def test_frozen(self):
        request = CrawlRequest("https://x.com", RequestTag.SEARCH)
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.url = "https://y.com"  # type: ignore[misc]

    def test_tag_values_match_labels(self):
        assert RequestTag.SEARCH.value == "SEARCH"
        assert RequestTag.PLAYLIST.value == "PLAYLIST"


class TestPlaylistSnapshot:
    def test_from_payload(self):
        snapshot = PlaylistSnapshot.from_payload(
            {
                "title": "  Lofi  ",
                "description": "desc",
                "owner": "me",
                "imageUrl": "https://img",
                "followersText": "1 like",
                "trackCount": 12,
            }
        )
        assert snapshot == PlaylistSnapshot(
            title="Lofi",
            description="desc",
            owner="me",
            image_url="https://img",
            followers_text="1 like",
            track_count=12,
        )

    def test_from_empty_payload(self):
        assert PlaylistSnapshot.from_payload(None) == PlaylistSnapshot()

    def test_nulls_and_bad_track_count(self):
        snapshot = PlaylistSnapshot.from_payload(
            {"title": None, "trackCount": "many"}
        )
        assert snapshot.title == ""
        assert snapshot.track_count == 0


class TestResultRecord:
    def _record(self, **overrides) -> ResultRecord:
        values = dict(
            url="https://x/playlist/A",
            playlist_id="A",
            title="T",
            description="D a@b.com",
            owner="O",
            image_url="https://img",
            followers_text="5 likes",
            track_count=3,
            scraped_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            emails=["a@b.com"],
            follower_count=5,
        )
        values.update(overrides)
        return ResultRecord(**values)

    def test_to_dict_keys(self):
        row = self._record().to_dict()
        assert row == {
            "url": "https://x/playlist/A",
            "playlistId": "A",
            "title": "T",
            "description": "D a@b.com",
            "owner": "O",
            "imageUrl": "https://img",
            "followersText": "5 likes",
            "trackCount": 3,
            "emails": ["a@b.com"],
            "hasEmail": True,
            "scrapedAt": "2024-01-02T03:04:05+00:00",
            "followerCount": 5,
        }

    def test_follower_count_omitted_when_absent(self):
        row = self._record(follower_count=None).to_dict()
        assert "followerCount" not in row

    def test_has_email_tracks_emails(self):
        assert self._record(emails=[]).has_email is False
