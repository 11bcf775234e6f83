import bisect
import random

import pytest

from avlmap.maps import MapEntry, StructuralListener, TreeMap, natural_order


class RecordingListener(StructuralListener):
    def __init__(self):
        self.inserted = []
        self.deleted = []

    def after_insert(self, p):
        self.inserted.append(p)

    def after_delete(self, p):
        self.deleted.append(p)


def build(keys, **kwargs):
    m = TreeMap(**kwargs)
    for k in keys:
        m.put(k, str(k))
    return m


def test_empty_map():
    m = TreeMap()
    assert len(m) == 0
    assert m.is_empty()
    assert list(m) == []
    assert m.get(1) is None
    assert m.first_entry() is None
    assert m.last_entry() is None
    assert m.remove(1) is None
    assert m.tree.is_external(m.root())


def test_put_get_replace():
    m = build([5, 2, 8])
    assert len(m) == 3
    assert m.get(2) == "2"
    assert m[8] == "8"
    assert 5 in m and 7 not in m
    assert m.put(2, "two") == "2"
    assert m[2] == "two"
    assert len(m) == 3
    assert m.get(99, "missing") == "missing"


def test_mapping_protocol_raises_key_error():
    m = build([1])
    with pytest.raises(KeyError):
        m[2]
    with pytest.raises(KeyError):
        del m[2]
    m[3] = "three"
    del m[1]
    assert list(m.items()) == [(3, "three")]


def test_every_internal_position_has_two_children():
    m = build([4, 2, 6, 1, 3, 5, 7, 0])
    tree = m.tree
    for p in tree.positions():
        if p.get_element() is None:
            assert tree.is_external(p)
        else:
            assert tree.num_children(p) == 2
    assert len(tree) == 2 * len(m) + 1


def test_unbalanced_without_listener():
    m = build(range(1, 6))
    assert m.tree.height() == 5


def test_remove_cases():
    m = build([50, 30, 70, 20, 40, 60, 80])
    assert m.remove(20) == "20"        # leaf
    assert m.remove(30) == "30"        # one internal child
    assert m.remove(50) == "50"        # two internal children, root
    assert list(m) == [40, 60, 70, 80]
    assert m.root().get_element().get_key() == 40
    for k in [40, 60, 70, 80]:
        m.remove(k)
    assert m.is_empty()
    assert len(m.tree) == 1


def test_listener_sees_inserted_and_promoted_positions():
    listener = RecordingListener()
    m = TreeMap(listener=listener)
    m.put(2, "b")
    m.put(1, "a")
    m.put(1, "again")  # replacement fires nothing
    assert [p.get_element().get_key() for p in listener.inserted] == [2, 1]

    m.remove(2)
    assert len(listener.deleted) == 1
    promoted = listener.deleted[0]
    assert promoted.get_element().get_key() == 1
    assert m.tree.is_root(promoted)

    m.remove(3)
    assert len(listener.deleted) == 1


def test_comparator_orders_keys():
    m = build([3, 1, 2], comparator=lambda a, b: natural_order(b, a))
    assert list(m) == [3, 2, 1]
    assert m.first_entry().get_key() == 3
    assert m.ceiling_entry(5).get_key() == 3
    assert m.floor_entry(0).get_key() == 1


def test_comparator_by_length():
    m = TreeMap(comparator=lambda a, b: natural_order(len(a), len(b)))
    m.put("ccc", 3)
    m.put("a", 1)
    m.put("bb", 2)
    m.put("zz", 20)  # same length as "bb": replaces
    assert list(m.items()) == [("a", 1), ("zz", 20), ("ccc", 3)]


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_navigation_matches_sorted_list(seed):
    rng = random.Random(seed)
    keys = rng.sample(range(0, 200, 2), 40)
    m = build(keys)
    model = sorted(keys)

    assert list(m) == model
    assert list(m.values()) == [str(k) for k in model]
    assert m.first_entry().get_key() == model[0]
    assert m.last_entry().get_key() == model[-1]

    for target in range(-1, 201):
        i = bisect.bisect_left(model, target)
        j = bisect.bisect_right(model, target)
        ceiling = model[i] if i < len(model) else None
        higher = model[j] if j < len(model) else None
        floor = model[j - 1] if j > 0 else None
        lower = model[i - 1] if i > 0 else None
        key_of = lambda e: e.get_key() if e is not None else None
        assert key_of(m.ceiling_entry(target)) == ceiling
        assert key_of(m.higher_entry(target)) == higher
        assert key_of(m.floor_entry(target)) == floor
        assert key_of(m.lower_entry(target)) == lower


def test_sub_map_is_half_open():
    m = build(range(10))
    assert [k for k, _ in m.sub_map(3, 7)] == [3, 4, 5, 6]
    assert [k for k, _ in m.sub_map(7, 3)] == []
    assert [k for k, _ in m.sub_map(20, 30)] == []
    assert list(m.sub_map(-5, 2)) == [(0, "0"), (1, "1")]


def test_clear():
    m = build([1, 2, 3])
    m.clear()
    assert len(m) == 0
    m.put(4, "d")
    assert list(m) == [4]


def test_map_entry():
    a, b = MapEntry(1, "x"), MapEntry(2, "y")
    assert a < b and a <= b
    assert a == MapEntry(1, "other")
    assert repr(a) == "(1, x)"


def test_nan_key_is_rejected_and_map_untouched():
    m = build([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        m.put(float("nan"), "x")
    assert list(m.items()) == [(1.0, "1.0"), (2.0, "2.0"), (3.0, "3.0")]
    assert m.get(2.0) == "2.0"
