import unittest

from linemarks.core.model import Bookmark, Group
from linemarks.core.store import EntryStore
from linemarks.core.reorder import HierarchyReorderer


class TestMoves(unittest.TestCase):

    def setUp(self):
        self.store = EntryStore([Bookmark(label, f"/{label}.txt", 0) for label in "abcde"])
        self.reorderer = HierarchyReorderer(self.store)

    def get(self, label):
        return self.store.by_label(label)

    def order(self):
        return "".join(self.reorderer.ordered_labels())

    def test_move_before_later_target(self):
        self.reorderer.move_before(self.get("a"), self.get("d"))
        self.assertEqual(self.order(), "bcade")

    def test_move_before_earlier_target(self):
        self.reorderer.move_before(self.get("e"), self.get("b"))
        self.assertEqual(self.order(), "aebcd")

    def test_move_before_is_idempotent(self):
        self.reorderer.move_before(self.get("a"), self.get("d"))
        once = self.order()
        self.reorderer.move_before(self.get("a"), self.get("d"))
        self.assertEqual(self.order(), once)

    def test_move_before_ignores_missing_or_same(self):
        self.reorderer.move_before(None, self.get("b"))
        self.reorderer.move_before(self.get("a"), None)
        self.reorderer.move_before(self.get("a"), self.get("a"))
        self.reorderer.move_before(Bookmark("zz", "/z", 0), self.get("a"))
        self.assertEqual(self.order(), "abcde")

    def test_move_many_before_keeps_relative_order(self):
        sources = [self.get("a"), self.get("e")]
        self.reorderer.move_many_before(sources, self.get("c"))
        self.assertEqual(self.order(), "baecd")
        self.assertEqual([s.label for s in sources], ["a", "e"])

    def test_move_to_back_places_before_last_entry(self):
        self.reorderer.move_to_back(self.get("a"))
        self.assertEqual(self.order(), "bcdae")

    def test_move_to_back_needs_two_entries(self):
        store = EntryStore([Bookmark("only", "/o", 0)])
        HierarchyReorderer(store).move_to_back(store.by_label("only"))
        self.assertEqual([e.label for e in store], ["only"])

    def test_move_many_to_back(self):
        self.reorderer.move_many_to_back([self.get("a"), self.get("b")])
        self.assertEqual(self.order(), "cdabe")


class TestReparent(unittest.TestCase):

    def setUp(self):
        # outer/ contains x and inner/, inner/ contains y; z is top level
        self.store = EntryStore([
            Group("outer"),
            Bookmark("x", "/x", 0, group="outer"),
            Group("inner", group="outer"),
            Bookmark("y", "/y", 0, group="inner"),
            Bookmark("z", "/z", 0),
        ])
        self.reorderer = HierarchyReorderer(self.store)

    def get(self, label):
        return self.store.by_label(label)

    def assert_acyclic(self):
        for entry in self.store:
            self.assertNotIn(entry.label, [a.label for a in self.store.ancestor_chain(entry)])

    def test_drop_on_group_moves_into_group(self):
        self.assertTrue(self.reorderer.reparent([self.get("z")], self.get("inner")))
        self.assertEqual(self.get("z").group, "inner")
        labels = self.reorderer.ordered_labels()
        self.assertEqual(labels.index("z") + 1, labels.index("inner"))

    def test_drop_on_bookmark_becomes_sibling(self):
        self.assertTrue(self.reorderer.reparent([self.get("z")], self.get("y")))
        self.assertEqual(self.get("z").group, "inner")
        self.assertEqual([e.label for e in self.store.children_of("inner")], ["z", "y"])

    def test_drop_outside_promotes_to_top_level(self):
        self.assertTrue(self.reorderer.reparent([self.get("y"), self.get("x")], None))
        self.assertIsNone(self.get("x").group)
        self.assertIsNone(self.get("y").group)
        self.assertEqual(self.reorderer.ordered_labels(), ["outer", "inner", "y", "x", "z"])

    def test_group_cannot_move_into_itself(self):
        before = self.store.serialize()
        self.assertFalse(self.reorderer.reparent([self.get("outer")], self.get("outer")))
        self.assertEqual(self.store.serialize(), before)

    def test_group_cannot_move_into_descendant(self):
        before = self.store.serialize()
        self.assertFalse(self.reorderer.reparent([self.get("z"), self.get("outer")], self.get("inner")))
        self.assertEqual(self.store.serialize(), before)
        self.assertEqual(self.get("z").group, None)

    def test_group_cannot_move_next_to_its_own_child(self):
        before = self.store.serialize()
        self.assertFalse(self.reorderer.reparent([self.get("inner")], self.get("y")))
        self.assertEqual(self.store.serialize(), before)

    def test_group_can_move_into_sibling_group(self):
        self.store.add(Group("other"))
        self.assertTrue(self.reorderer.reparent([self.get("inner")], self.get("other")))
        self.assertEqual(self.get("inner").group, "other")
        self.assertEqual([a.label for a in self.store.ancestor_chain(self.get("y"))], ["inner", "other"])
        self.assert_acyclic()

    def test_subgroup_can_move_to_ancestor(self):
        self.assertTrue(self.reorderer.reparent([self.get("inner")], self.get("outer")))
        self.assertEqual(self.get("inner").group, "outer")
        self.assert_acyclic()

    def test_sequence_of_drops_stays_acyclic(self):
        drops = [("outer", "z"), ("inner", "outer"), ("outer", "inner"), ("z", "inner"), ("outer", None),
                 ("inner", "x"), ("outer", "y")]
        for source, target in drops:
            self.reorderer.reparent([self.get(source)], self.get(target) if target else None)
            self.assert_acyclic()

    def test_empty_sources_are_rejected(self):
        self.assertFalse(self.reorderer.reparent([], self.get("outer")))


if __name__ == '__main__':
    unittest.main()
