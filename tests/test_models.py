"""
Tests for key shapes, lease observation and owner token generation.
"""

from aws_lease_lock_tool.leaselock.core.id_generator import IdGenerator
from aws_lease_lock_tool.leaselock.models import HashKey, HashRangeKey, LeaseObservation, LockRecord


class TestKeyShapes:
    def test_hash_key(self):
        shape = HashKey("pkName")
        assert shape.key("PK") == {"pkName": "PK"}
        assert shape.existence_attribute == "pkName"

    def test_hash_range_key_uses_fixed_slot(self):
        shape = HashRangeKey("pkName", "SK")
        assert shape.key("PK") == {"pkName": "PK", "SK": "##LOCK##"}
        assert shape.existence_attribute == "SK"

    def test_hash_range_key_custom_slot(self):
        shape = HashRangeKey("pkName", "SK", "SortKeyId")
        assert shape.key(7) == {"pkName": 7, "SK": "SortKeyId"}


class TestLeaseObservation:
    def test_initial_observation_expects_free_record(self):
        assert LeaseObservation().expected_token(now=123.0) == ""

    def test_no_steal_before_estimated_expiry(self):
        observation = LeaseObservation("holder", expires_at=10.0)
        assert observation.expected_token(now=9.99) == ""

    def test_steal_at_estimated_expiry(self):
        observation = LeaseObservation("holder", expires_at=10.0)
        assert observation.expected_token(now=10.0) == "holder"

    def test_new_token_starts_fresh_estimate(self):
        observation = LeaseObservation("old", expires_at=10.0)
        updated = observation.observe(LockRecord("new", 0.5), now=20.0)
        assert updated == LeaseObservation("new", 20.5)

    def test_same_token_keeps_estimate(self):
        observation = LeaseObservation("holder", expires_at=10.0)
        assert observation.observe(LockRecord("holder", 5.0), now=20.0) is observation

    def test_absent_record_keeps_estimate(self):
        observation = LeaseObservation("holder", expires_at=10.0)
        assert observation.observe(None, now=20.0) is observation


class TestIdGenerator:
    def test_tokens_are_unique(self):
        generator = IdGenerator()
        tokens = {generator.id() for _ in range(1000)}
        assert len(tokens) == 1000

    def test_token_format(self):
        token = IdGenerator().id()
        assert len(token) == 32
        int(token, 16)
