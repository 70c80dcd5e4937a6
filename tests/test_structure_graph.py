#!/usr/bin/env python3
"""
Tests for the structure graph.

Tests cover:
- Id generation for pipes, joints and connections
- Connection rules: FIX occupancy, midway on THROUGH holes only,
  last-write-wins on start/end, idempotent re-adds
- Patching and removing connections
- Cascading removal of pipes and joints
- Structural reachability
"""

import pytest

from pypejoint.structure_nodes import EndConnection, MidwayConnection, StartConnection


def _add(graph, catalog, type_name):
    return graph.add_joint(type_name, catalog[type_name].holes)


# =============================================================================
# ID GENERATION
# =============================================================================


class TestIds:
    """Test generated ids."""

    def test_pipe_ids_are_sequential(self, graph):
        assert graph.add_pipe(0.022, 1.0) == "P_0001"
        assert graph.add_pipe(0.022, 1.0) == "P_0002"

    def test_pipe_ids_follow_highest(self, graph):
        """Removing a pipe never lets its id be reused while a higher one exists."""
        graph.add_pipe(0.022, 1.0)
        graph.add_pipe(0.022, 1.0)
        graph.remove_pipe("P_0001")
        assert graph.add_pipe(0.022, 1.0) == "P_0003"

    def test_joint_ids_per_type(self, graph, catalog):
        assert _add(graph, catalog, "tee") == "tee_0001"
        assert _add(graph, catalog, "tee") == "tee_0002"
        assert _add(graph, catalog, "elbow") == "elbow_0001"

    def test_connection_ids_per_pipe(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        a = _add(graph, catalog, "end-cap")
        b = _add(graph, catalog, "end-cap")
        assert graph.add_connection(pipe, a, 0, "start") == "P_0001-conn-1"
        assert graph.add_connection(pipe, b, 0, "end") == "P_0001-conn-2"

    def test_connection_id_skips_taken(self, graph, catalog):
        """A hand-picked id elsewhere in the graph is not generated again."""
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        a = _add(graph, catalog, "end-cap")
        b = _add(graph, catalog, "end-cap")
        graph.add_connection(p2, a, 0, "start", id="P_0001-conn-1")
        assert graph.add_connection(p1, b, 0, "start") == "P_0001-conn-2"

    def test_explicit_ids(self, graph, catalog):
        assert graph.add_pipe(0.022, 1.0, id="frame-left") == "frame-left"
        assert graph.add_joint("tee", catalog["tee"].holes, id="T1") == "T1"

    def test_duplicate_pipe_id_is_noop(self, graph):
        graph.add_pipe(0.022, 1.0, id="A")
        with pytest.warns(UserWarning, match="already exists"):
            assert graph.add_pipe(0.03, 2.0, id="A") == "A"
        assert graph.get_pipe("A").length == 1.0
        assert len(graph.pipes) == 1


# =============================================================================
# PIPES AND JOINTS
# =============================================================================


class TestPipesAndJoints:
    """Test pipe/joint creation and updates."""

    def test_add_pipe_registers_instance(self, graph):
        pipe = graph.add_pipe(0.022, 1.0)
        assert pipe in graph.instances

    def test_joint_without_instance(self, graph, catalog):
        """A joint whose geometry is still loading has no instance."""
        joint = graph.add_joint("tee", catalog["tee"].holes, register_instance=False)
        assert graph.get_joint(joint) is not None
        assert joint not in graph.instances

    @pytest.mark.parametrize("diameter, length", [(0.0, 1.0), (0.022, 0.0), (0.022, -1.0)])
    def test_rejects_non_positive_sizes(self, graph, diameter, length):
        with pytest.raises(ValueError):
            graph.add_pipe(diameter, length)

    def test_update_pipe(self, graph):
        pipe = graph.add_pipe(0.022, 1.0)
        assert graph.update_pipe(pipe, "length", 1.5)
        assert graph.get_pipe(pipe).length == 1.5

    def test_update_pipe_unknown_field(self, graph):
        pipe = graph.add_pipe(0.022, 1.0)
        with pytest.raises(ValueError):
            graph.update_pipe(pipe, "colour", 1.0)

    def test_update_missing_pipe(self, graph):
        assert graph.update_pipe("P_9999", "length", 1.0) is False


# =============================================================================
# CONNECTIONS
# =============================================================================


class TestAddConnection:
    """Test connection creation rules."""

    def test_start_connection(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        conn_id = graph.add_connection(pipe, cap, 0, "start", rotation=15)
        conn = graph.get_pipe(pipe).connections.start
        assert isinstance(conn, StartConnection)
        assert conn.id == conn_id
        assert conn.rotation == 15.0
        assert conn.position == 0.0

    def test_re_adding_same_id_is_noop(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        conn_id = graph.add_connection(pipe, cap, 0, "end")
        before = graph.get_pipe(pipe).connections.end
        assert graph.add_connection(pipe, cap, 0, "end", rotation=90, id=conn_id) == conn_id
        assert graph.get_pipe(pipe).connections.end is before
        assert before.rotation == 0.0

    def test_midway_re_add_is_noop(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        clamp = _add(graph, catalog, "through-clamp")
        graph.add_connection(pipe, clamp, 0, "midway", position=0.5, id="m1")
        graph.add_connection(pipe, clamp, 0, "midway", position=0.7, id="m1")
        midway = graph.get_pipe(pipe).connections.midway
        assert len(midway) == 1
        assert midway[0].position == 0.5

    def test_start_is_last_write_wins(self, graph, catalog):
        """A second start connection replaces the first and warns."""
        pipe = graph.add_pipe(0.022, 1.0)
        a = _add(graph, catalog, "end-cap")
        b = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, a, 0, "start", id="first")
        with pytest.warns(UserWarning, match="replacing"):
            graph.add_connection(pipe, b, 0, "start", id="second")
        start = graph.get_pipe(pipe).connections.start
        assert start.id == "second"
        assert start.joint_id == b
        assert graph.find_connection("first") is None

    def test_replacement_purges_relationship(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        a = _add(graph, catalog, "end-cap")
        b = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, a, 0, "start")
        graph.relationships.record(pipe, a, 0, "start", "p2j")
        with pytest.warns(UserWarning):
            graph.add_connection(pipe, b, 0, "start")
        assert graph.relationships.get(pipe, a, 0, "start") == "unknown"

    def test_replacement_may_reuse_its_own_fix_hole(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, cap, 0, "start", id="first")
        with pytest.warns(UserWarning):
            assert graph.add_connection(pipe, cap, 0, "start", rotation=45, id="second") == "second"

    def test_fix_hole_takes_one_connection(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        assert graph.add_connection(p1, cap, 0, "end") is not None
        assert graph.add_connection(p2, cap, 0, "start") is None
        assert graph.get_pipe(p2).connections.start is None

    def test_through_hole_takes_many(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        clamp = _add(graph, catalog, "through-clamp")
        assert graph.add_connection(p1, clamp, 0, "midway", position=0.25) is not None
        assert graph.add_connection(p2, clamp, 0, "end") is not None

    def test_midway_needs_through_hole(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        assert graph.add_connection(pipe, cap, 0, "midway", position=0.5) is None
        assert graph.get_pipe(pipe).connections.midway == []

    def test_midway_connection_type(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 2.0)
        clamp = _add(graph, catalog, "through-clamp")
        graph.add_connection(pipe, clamp, 0, "midway", position=0.25)
        conn = graph.get_pipe(pipe).connections.midway[0]
        assert isinstance(conn, MidwayConnection)
        assert conn.position == 0.25

    @pytest.mark.parametrize("position", [-0.1, 1.5])
    def test_midway_position_range(self, graph, catalog, position):
        pipe = graph.add_pipe(0.022, 1.0)
        clamp = _add(graph, catalog, "through-clamp")
        with pytest.raises(ValueError):
            graph.add_connection(pipe, clamp, 0, "midway", position=position)

    def test_position_ignored_for_ends(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, cap, 0, "end", position=0.4)
        assert graph.get_pipe(pipe).connections.end.position == 0.0

    def test_unknown_side(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        with pytest.raises(ValueError):
            graph.add_connection(pipe, cap, 0, "middle")

    def test_unknown_references_are_ignored(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        assert graph.add_connection("P_9999", cap, 0, "start") is None
        assert graph.add_connection(pipe, "ghost", 0, "start") is None
        assert graph.add_connection(pipe, cap, 3, "start") is None
        assert graph.connection_count == 0

    def test_duplicate_id_on_other_pipe_is_ignored(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        a = _add(graph, catalog, "end-cap")
        b = _add(graph, catalog, "end-cap")
        graph.add_connection(p1, a, 0, "start", id="c")
        assert graph.add_connection(p2, b, 0, "start", id="c") is None


class TestUpdateConnection:
    """Test update_connection patches."""

    @pytest.fixture
    def wired(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        clamp = _add(graph, catalog, "through-clamp")
        cap = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, clamp, 0, "midway", position=0.5, id="mid")
        graph.add_connection(pipe, cap, 0, "end", id="end")
        return graph, pipe, clamp, cap

    def test_rotation(self, wired):
        graph, pipe, *_ = wired
        assert graph.update_connection("end", {"rotation": 30})
        assert graph.get_pipe(pipe).connections.end.rotation == 30.0

    def test_midway_position(self, wired):
        graph, pipe, *_ = wired
        assert graph.update_connection("mid", {"position": 0.75})
        assert graph.get_pipe(pipe).connections.midway[0].position == 0.75

    def test_position_ignored_on_end(self, wired):
        graph, pipe, *_ = wired
        assert graph.update_connection("end", {"position": 0.3, "rotation": 10})
        end = graph.get_pipe(pipe).connections.end
        assert end.position == 0.0
        assert end.rotation == 10.0

    def test_unknown_field(self, wired):
        graph, *_ = wired
        with pytest.raises(ValueError):
            graph.update_connection("end", {"side": "start"})

    def test_missing_connection(self, wired):
        graph, *_ = wired
        assert graph.update_connection("nope", {"rotation": 1}) is False

    def test_retarget_to_occupied_fix_hole(self, wired, catalog):
        """Pointing a connection at a FIX hole already in use is ignored."""
        graph, pipe, clamp, cap = wired
        other = graph.add_pipe(0.022, 1.0)
        graph.add_connection(other, clamp, 0, "start", id="other-start")
        assert graph.update_connection("other-start", {"joint_id": cap, "hole_id": 0}) is False
        assert graph.find_connection("other-start")[1].joint_id == clamp

    def test_retarget_purges_relationship(self, wired, catalog):
        graph, pipe, clamp, cap = wired
        spare = _add(graph, catalog, "end-cap")
        graph.relationships.record(pipe, cap, 0, "end", "p2j")
        assert graph.update_connection("end", {"joint_id": spare})
        assert graph.relationships.get(pipe, cap, 0, "end") == "unknown"
        assert graph.get_pipe(pipe).connections.end.joint_id == spare


# =============================================================================
# REMOVAL
# =============================================================================


class TestRemoval:
    """Test removing connections, pipes and joints."""

    def test_remove_connection(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        conn = graph.add_connection(pipe, cap, 0, "start")
        graph.relationships.record(pipe, cap, 0, "start", "p2j")
        assert graph.remove_connection(conn)
        assert graph.get_pipe(pipe).connections.start is None
        assert graph.get_joint(cap) is not None
        assert len(graph.relationships) == 0
        assert graph.remove_connection(conn) is False

    def test_remove_pipe_cascades(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, cap, 0, "start")
        assert graph.remove_pipe(pipe)
        assert pipe not in graph.instances
        assert graph.connections_to_joint(cap) == []
        assert graph.connection_count == 0

    def test_remove_joint_cascades(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        coupler = _add(graph, catalog, "coupler")
        graph.add_connection(p1, coupler, 0, "end")
        graph.add_connection(p2, coupler, 1, "start")
        assert graph.remove_joint(coupler)
        assert coupler not in graph.instances
        assert graph.get_pipe(p1).connections.end is None
        assert graph.get_pipe(p2).connections.start is None
        assert graph.remove_joint(coupler) is False

    def test_removed_fix_hole_is_free_again(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        conn = graph.add_connection(p1, cap, 0, "end")
        graph.remove_connection(conn)
        assert graph.add_connection(p2, cap, 0, "start") is not None

    def test_clear_all(self, graph, catalog):
        pipe = graph.add_pipe(0.022, 1.0)
        cap = _add(graph, catalog, "end-cap")
        graph.add_connection(pipe, cap, 0, "start")
        graph.clear_all()
        assert graph.pipes == []
        assert graph.joints == []
        assert len(graph.instances) == 0


# =============================================================================
# REACHABILITY
# =============================================================================


class TestReachability:
    """Test structural reachability queries."""

    def test_chain_and_island(self, graph, catalog):
        p1 = graph.add_pipe(0.022, 1.0)
        p2 = graph.add_pipe(0.022, 1.0)
        island = graph.add_pipe(0.022, 1.0)
        coupler = _add(graph, catalog, "coupler")
        graph.add_connection(p1, coupler, 0, "end")
        graph.add_connection(p2, coupler, 1, "start")

        assert graph.reachable_from(p1) == {p1, p2, coupler}
        assert graph.orphaned_entities(p1) == {island}

    def test_dangling_reference_is_skipped(self, graph):
        """A connection to a missing joint does not extend reachability."""
        pipe = graph.add_pipe(0.022, 1.0)
        graph.get_pipe(pipe).connections.end = EndConnection(id="x", joint_id="ghost", hole_id=0)
        assert graph.reachable_from(pipe) == {pipe}

    def test_unknown_root(self, graph):
        assert graph.reachable_from("P_9999") == set()
