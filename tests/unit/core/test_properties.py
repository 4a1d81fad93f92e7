"""Property-based tests for the interval tree clock algebra.

Uses Hypothesis to generate canonical identity and event trees and checks
the laws the algebra promises: split/sum and fork/join are inverses, join
is the least upper bound, leq is a partial order that agrees with the
pointwise counts, and recording an event only touches owned positions.
"""

from __future__ import annotations

import itertools

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from itclock.codec import decode_stamp, encode_stamp
from itclock.core import events, ids
from itclock.core.events import Leaf, Node, join, leq, value_at
from itclock.core.ids import ONE, ZERO, Fork
from itclock.core.stamp import Stamp, event, fork, peek
from itclock.core.stamp import join as join_stamps


# ─────────────────────────────────────────────────────────────────────────────
# Strategies
# ─────────────────────────────────────────────────────────────────────────────

id_trees = st.recursive(
    st.sampled_from([ZERO, ONE]),
    lambda children: st.builds(Fork, children, children),
    max_leaves=8,
).map(ids.normalize)

owned_ids = id_trees.filter(lambda i: i != ZERO)

event_trees = st.recursive(
    st.integers(min_value=0, max_value=6).map(Leaf),
    lambda children: st.builds(Node, st.integers(min_value=0, max_value=6), children, children),
    max_leaves=8,
).map(events.normalize)

stamps = st.builds(Stamp, id_trees, event_trees)
owned_stamps = st.builds(Stamp, owned_ids, event_trees)


def paths_for(*trees) -> list[tuple[int, ...]]:
    """Every path long enough to reach a leaf in all of ``trees``."""
    length = max(
        ids.depth(t) if isinstance(t, (ids.Zero, ids.One, Fork)) else events.depth(t)
        for t in trees
    )
    return list(itertools.product((0, 1), repeat=length))


# ─────────────────────────────────────────────────────────────────────────────
# Identities
# ─────────────────────────────────────────────────────────────────────────────


class TestIdentityLaws:
    @given(id_trees)
    @settings(max_examples=300, deadline=None)
    def test_split_then_sum_is_identity(self, i):
        a, b = ids.split(i)
        assert ids.is_disjoint(a, b)
        assert ids.is_normalized(a) and ids.is_normalized(b)
        assert ids.sum_ids(a, b) == i

    @given(owned_ids)
    @settings(max_examples=300, deadline=None)
    def test_split_halves_are_nonempty(self, i):
        a, b = ids.split(i)
        assert a != ZERO and b != ZERO

    @given(id_trees)
    @settings(max_examples=200, deadline=None)
    def test_split_partitions_ownership(self, i):
        a, b = ids.split(i)
        for path in paths_for(i, a, b):
            assert ids.owns(i, path) == (ids.owns(a, path) or ids.owns(b, path))


# ─────────────────────────────────────────────────────────────────────────────
# Event trees
# ─────────────────────────────────────────────────────────────────────────────


class TestEventLaws:
    @given(event_trees, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_join_is_pointwise_max(self, a, b):
        joined = join(a, b)
        assert events.is_normalized(joined)
        for path in paths_for(a, b, joined):
            assert value_at(joined, path) == max(value_at(a, path), value_at(b, path))

    @given(event_trees, event_trees, event_trees)
    @settings(max_examples=200, deadline=None)
    def test_join_is_least_upper_bound(self, a, b, c):
        joined = join(a, b)
        assert leq(a, joined)
        assert leq(b, joined)
        if leq(a, c) and leq(b, c):
            assert leq(joined, c)

    @given(event_trees, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_leq_matches_pointwise_counts(self, a, b):
        expected = all(value_at(a, p) <= value_at(b, p) for p in paths_for(a, b))
        assert leq(a, b) == expected

    @given(event_trees)
    def test_leq_is_reflexive(self, a):
        assert leq(a, a)

    @given(event_trees, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_leq_is_antisymmetric(self, a, b):
        if leq(a, b) and leq(b, a):
            assert a == b

    @given(event_trees, event_trees, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_leq_is_transitive(self, a, b, c):
        assume(leq(a, b))
        above_b = join(b, c)
        assert leq(b, above_b)
        assert leq(a, above_b)

    @given(id_trees, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_fill_only_raises_owned_positions(self, i, e):
        filled = events.fill(i, e)
        assert events.is_normalized(filled)
        assert leq(e, filled)
        for path in paths_for(i, e, filled):
            if not ids.owns(i, path):
                assert value_at(filled, path) == value_at(e, path)

    @given(owned_ids, event_trees)
    @settings(max_examples=300, deadline=None)
    def test_event_strictly_grows_only_owned_positions(self, i, e):
        recorded = events.event(i, e)
        assert events.is_normalized(recorded)
        assert leq(e, recorded)
        assert recorded != e
        for path in paths_for(i, e, recorded):
            if not ids.owns(i, path):
                assert value_at(recorded, path) == value_at(e, path)


# ─────────────────────────────────────────────────────────────────────────────
# Stamps
# ─────────────────────────────────────────────────────────────────────────────


class TestStampLaws:
    @given(stamps)
    @settings(max_examples=300, deadline=None)
    def test_fork_then_join_is_identity(self, s):
        a, b = fork(s)
        assert join_stamps(a, b) == s

    @given(owned_stamps)
    @settings(max_examples=300, deadline=None)
    def test_event_is_monotonic(self, s):
        recorded = event(s)
        assert recorded.id == s.id
        assert leq(s.event, recorded.event)
        assert s.event != recorded.event

    @given(stamps)
    def test_join_with_own_peek_changes_nothing(self, s):
        assert join_stamps(s, peek(s)) == s

    @given(stamps)
    @settings(max_examples=300, deadline=None)
    def test_binary_round_trip(self, s):
        assert decode_stamp(encode_stamp(s)) == s

    @given(owned_stamps)
    @settings(max_examples=200, deadline=None)
    def test_forked_halves_record_concurrent_events(self, s):
        a, b = fork(s)
        assume(a.id != ZERO and b.id != ZERO)
        assert event(a).is_concurrent(event(b))
