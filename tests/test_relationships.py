#!/usr/bin/env python3
"""
Tests for the relationship tracker.
"""

import pytest

from pypejoint.relationships import RelationshipKey, RelationshipTracker, apply_relationship_direction


class TestRelationshipTracker:
    """Test recording and purging relationships."""

    def test_unknown_by_default(self):
        assert RelationshipTracker().get("P_0001", "tee_0001", 0, "start") == "unknown"

    def test_record_and_get(self):
        tracker = RelationshipTracker()
        tracker.record("P_0001", "tee_0001", 2, "end", "j2p")
        assert tracker.get("P_0001", "tee_0001", 2, "end") == "j2p"
        # Side is part of the key
        assert tracker.get("P_0001", "tee_0001", 2, "start") == "unknown"
        assert RelationshipKey("P_0001", "tee_0001", 2, "end") in tracker

    def test_record_overwrites(self):
        tracker = RelationshipTracker()
        tracker.record("P_0001", "tee_0001", 0, "start", "j2p")
        tracker.record("P_0001", "tee_0001", 0, "start", "p2j")
        assert tracker.get("P_0001", "tee_0001", 0, "start") == "p2j"
        assert len(tracker) == 1

    def test_invalid_relationship(self):
        with pytest.raises(ValueError):
            RelationshipTracker().record("P_0001", "tee_0001", 0, "start", "sideways")

    def test_purge(self):
        tracker = RelationshipTracker()
        tracker.record("P_0001", "tee_0001", 0, "start", "p2j")
        assert tracker.purge("P_0001", "tee_0001", 0, "start") is True
        assert tracker.purge("P_0001", "tee_0001", 0, "start") is False
        assert len(tracker) == 0

    def test_purge_entity(self):
        tracker = RelationshipTracker()
        tracker.record("P_0001", "tee_0001", 0, "start", "p2j")
        tracker.record("P_0002", "tee_0001", 1, "end", "j2p")
        tracker.record("P_0002", "elbow_0001", 0, "start", "j2p")
        assert tracker.purge_entity("tee_0001") == 2
        assert [key.joint_id for key in tracker] == ["elbow_0001"]


class TestDragDirection:
    """Test apply_relationship_direction."""

    @pytest.mark.parametrize(
        "relationship, expected",
        [("p2j", -15.0), ("j2p", 15.0), ("unknown", 15.0)],
    )
    def test_sign(self, relationship, expected):
        assert apply_relationship_direction(15.0, relationship) == expected
