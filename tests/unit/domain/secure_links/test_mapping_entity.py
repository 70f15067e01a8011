from datetime import timedelta

import pytest

from securelink.domain.secure_links import LinkClass, SecureUrlMapping
from tests.fixtures import DEFAULT_NOW, create_mapping


class TestSecureUrlMapping:
    def test_create_sets_expiry_from_lifetime(self):
        mapping = create_mapping(expires_in=timedelta(minutes=15))
        assert mapping.created_at == DEFAULT_NOW
        assert mapping.expires_at == DEFAULT_NOW + timedelta(minutes=15)
        assert mapping.access_count == 0

    def test_create_without_lifetime_never_expires(self):
        mapping = create_mapping(expires_in=None)
        assert mapping.expires_at is None
        assert mapping.is_expired(DEFAULT_NOW + timedelta(days=3650)) is False
        assert mapping.get_remaining_seconds() is None

    def test_expired_exactly_at_expiry(self):
        mapping = create_mapping(expires_in=timedelta(seconds=60))
        just_before = DEFAULT_NOW + timedelta(seconds=60) - timedelta(microseconds=1)
        assert mapping.is_expired(just_before) is False
        assert mapping.is_expired(DEFAULT_NOW + timedelta(seconds=60)) is True

    def test_exhausted_once_count_reaches_cap(self):
        mapping = create_mapping(max_accesses=2, access_count=1)
        assert mapping.is_exhausted() is False
        mapping.access_count = 2
        assert mapping.is_exhausted() is True
        assert mapping.is_live(DEFAULT_NOW) is False

    def test_unlimited_mapping_is_never_exhausted(self):
        mapping = create_mapping(max_accesses=None, access_count=10_000)
        assert mapping.is_exhausted() is False

    @pytest.mark.parametrize("max_accesses", [0, -1])
    def test_rejects_non_positive_cap(self, max_accesses):
        with pytest.raises(ValueError):
            create_mapping(max_accesses=max_accesses)

    def test_rejects_non_positive_lifetime(self):
        with pytest.raises(ValueError):
            create_mapping(expires_in=timedelta(0))

    def test_remaining_seconds_floors_at_zero(self):
        mapping = create_mapping(expires_in=timedelta(seconds=30))
        assert mapping.get_remaining_seconds(DEFAULT_NOW) == 30
        assert mapping.get_remaining_seconds(DEFAULT_NOW + timedelta(hours=1)) == 0

    def test_copy_is_detached(self):
        mapping = create_mapping()
        snapshot = mapping.copy()
        snapshot.access_count = 5
        assert mapping.access_count == 0

    def test_dict_round_trip_keeps_every_field(self):
        mapping = create_mapping(max_accesses=3, access_count=2)
        assert SecureUrlMapping.from_dict(mapping.to_dict()) == mapping

    def test_summary_leaves_out_original_url(self):
        summary = create_mapping().to_summary().to_dict()
        assert "original_url" not in summary
        assert summary["id"] == "AbCdEfGhIjKlMnOp"

    def test_stats_snapshot(self):
        stats = create_mapping(max_accesses=10, access_count=4).to_stats()
        assert stats.access_count == 4
        assert stats.max_accesses == 10
        assert stats.to_dict()["expires_at"] == (DEFAULT_NOW + timedelta(hours=24)).isoformat()


class TestLinkClass:
    def test_from_string_is_case_insensitive(self):
        assert LinkClass.from_string(" Tracked ") is LinkClass.TRACKED

    def test_from_string_rejects_unknown(self):
        with pytest.raises(ValueError):
            LinkClass.from_string("forever")
