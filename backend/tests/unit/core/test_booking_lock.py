"""
Unit tests for booking_lock.py.

Coverage:
1) Key generation
2) Lock acquisition/release
3) TTL propagation
4) Graceful degradation when Redis is unavailable
5) Context manager behavior
"""

from datetime import date
from unittest.mock import ANY, MagicMock, patch

import pytest

from salon_booking.core.booking_lock import (
    _lock_key,
    _namespaced_key,
    acquire_resource_lock,
    release_resource_lock,
    resource_day_lock,
)
from salon_booking.core.exceptions import BookingConflictException

DAY = date(2025, 3, 5)


class TestKeyGeneration:
    def test_lock_key_format(self):
        assert _lock_key("STAFF1", DAY) == "booking:STAFF1:2025-03-05:mutex"

    def test_namespaced_key_format(self):
        namespaced = _namespaced_key("booking:STAFF1:2025-03-05:mutex")
        assert namespaced.endswith(":lock:booking:STAFF1:2025-03-05:mutex")


class TestLockAcquisition:
    def test_acquire_success(self):
        mock_redis = MagicMock()
        mock_redis.set.return_value = True
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            assert acquire_resource_lock("STAFF1", DAY) is True
        mock_redis.set.assert_called_once_with(ANY, ANY, nx=True, ex=90)

    def test_acquire_already_held(self):
        mock_redis = MagicMock()
        mock_redis.set.return_value = None
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            assert acquire_resource_lock("STAFF1", DAY) is False

    def test_acquire_passes_ttl(self):
        mock_redis = MagicMock()
        mock_redis.set.return_value = True
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            acquire_resource_lock("STAFF1", DAY, ttl_s=15)
        mock_redis.set.assert_called_once_with(ANY, ANY, nx=True, ex=15)

    def test_degrades_open_without_redis(self):
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=None):
            assert acquire_resource_lock("STAFF1", DAY) is True

    def test_degrades_open_on_redis_error(self):
        mock_redis = MagicMock()
        mock_redis.set.side_effect = ConnectionError("redis down")
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            assert acquire_resource_lock("STAFF1", DAY) is True

    def test_release_deletes_key(self):
        mock_redis = MagicMock()
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            release_resource_lock("STAFF1", DAY)
        mock_redis.delete.assert_called_once()
        assert mock_redis.delete.call_args[0][0].endswith("booking:STAFF1:2025-03-05:mutex")

    def test_release_swallows_redis_error(self):
        mock_redis = MagicMock()
        mock_redis.delete.side_effect = ConnectionError("redis down")
        with patch("salon_booking.core.booking_lock._get_sync_redis", return_value=mock_redis):
            release_resource_lock("STAFF1", DAY)


class TestContextManager:
    def test_releases_after_block(self):
        with patch(
            "salon_booking.core.booking_lock.acquire_resource_lock", return_value=True
        ), patch("salon_booking.core.booking_lock.release_resource_lock") as mock_release:
            with resource_day_lock("STAFF1", DAY):
                pass
        mock_release.assert_called_once_with("STAFF1", DAY)

    def test_releases_when_block_raises(self):
        with patch(
            "salon_booking.core.booking_lock.acquire_resource_lock", return_value=True
        ), patch("salon_booking.core.booking_lock.release_resource_lock") as mock_release:
            with pytest.raises(RuntimeError):
                with resource_day_lock("STAFF1", DAY):
                    raise RuntimeError("boom")
        mock_release.assert_called_once_with("STAFF1", DAY)

    def test_held_lock_raises_conflict(self):
        with patch(
            "salon_booking.core.booking_lock.acquire_resource_lock", return_value=False
        ), patch("salon_booking.core.booking_lock.release_resource_lock") as mock_release:
            with pytest.raises(BookingConflictException) as exc_info:
                with resource_day_lock("STAFF1", DAY):
                    pass
        assert exc_info.value.details["reason"] == "locked"
        mock_release.assert_not_called()
