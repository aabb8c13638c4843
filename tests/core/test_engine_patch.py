import pytest

from treepatch.core.exceptions import TreeConsistencyError
from treepatch.core.models import CreateAfter, RemoveRows, ReplaceTree


class TestScenarios:
    def test_single_root_renders_one_row(self, make_tree):
        tree = make_tree("A")
        block = tree.engine.render()

        assert block.ids == ["tree_0"]
        assert block.head.node is tree["A"]
        assert block.head.children == []
        assert block.head.level == 0

    def test_expanding_root_replaces_it_with_its_new_subtree(self, make_tree):
        tree = make_tree(("A", ["B", "C"]))
        tree.reconcile()

        tree.expand("A")
        patch = tree.reconcile()

        assert patch.removals() == []
        assert patch.creations() == []
        [replace] = patch.replacements()
        assert replace.row_id == "tree_0"
        assert [str(row.node) for row in replace.block] == ["A", "B", "C"]
        tree.assert_in_sync()

    def test_removing_last_child_redraws_new_last_sibling(self, make_tree):
        tree = make_tree(("A", ["B", "C"]))
        tree.expand("A")
        tree.reconcile()
        b_id, c_id = tree.row_id("B"), tree.row_id("C")

        tree.model.remove_node_from_parent(tree["C"])
        patch = tree.reconcile()

        assert patch.deleted_ids == [c_id]
        assert [r.row_id for r in patch.replacements()] == [b_id]
        # A still has a child, so it is not redrawn
        assert tree.row_id("A") not in [r.row_id for r in patch.replacements()]
        assert tree.renderer.connector(tree.engine.get_node_row(tree["B"])) == "└─"
        tree.assert_in_sync()

    def test_first_child_of_leaf_rebuilds_parent_level_and_expands(self, make_tree):
        tree = make_tree(("A", ["E", "F"]))
        tree.expand("A")
        tree.reconcile()
        old_e, old_f = tree.row_id("E"), tree.row_id("F")

        tree.model.insert_node_into(tree.node("D"), tree["E"], 0)

        assert tree.state.is_expanded(tree["E"])
        assert tree.engine.get_node_row(tree["A"]).children is None
        patch = tree.reconcile()

        assert sorted(patch.deleted_ids) == sorted([old_e, old_f])
        [replace] = patch.replacements()
        assert replace.row_id == tree.row_id("A")
        assert [str(row.node) for row in replace.block] == ["A", "E", "D", "F"]
        tree.assert_in_sync()

    def test_first_child_under_root_rebuilds_root(self, make_tree):
        tree = make_tree("A")
        tree.reconcile()

        tree.model.insert_node_into(tree.node("B"), tree["A"], 0)
        patch = tree.reconcile()

        [replace] = patch.replacements()
        assert replace.row_id == "tree_0"
        assert [str(row.node) for row in replace.block] == ["A", "B"]
        tree.assert_in_sync()


class TestCreation:
    def test_insert_in_the_middle_creates_after_previous_sibling(self, simple_tree):
        tree = simple_tree
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        patch = tree.reconcile()

        [create] = patch.creations()
        assert create.anchor_id == tree.row_id("B")
        assert create.row_id == tree.row_id("X")
        assert patch.replacements() == []
        tree.assert_in_sync()

    def test_insert_first_creates_after_parent(self, simple_tree):
        tree = simple_tree
        tree.model.insert_node_into(tree.node("X"), tree["A"], 0)
        patch = tree.reconcile()

        [create] = patch.creations()
        assert create.anchor_id == tree.row_id("A")
        tree.assert_in_sync()

    def test_anchor_is_deepest_last_descendant_of_previous_sibling(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()

        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        patch = tree.reconcile()

        [create] = patch.creations()
        assert create.anchor_id == tree.row_id("B2")
        tree.assert_in_sync()

    def test_insert_as_last_redraws_previous_last_sibling(self, simple_tree):
        tree = simple_tree
        c_id = tree.row_id("C")

        tree.model.insert_node_into(tree.node("X"), tree["A"], 2)
        patch = tree.reconcile()

        assert [c.row_id for c in patch.creations()] == [tree.row_id("X")]
        assert [r.row_id for r in patch.replacements()] == [c_id]
        tree.assert_in_sync()

    def test_anchors_waiting_on_pending_rows_are_resolved_in_later_passes(self, make_tree):
        tree = make_tree(("A", ["B"]))
        tree.expand("A")
        tree.reconcile()

        # Y first at the end, then X in front of it: Y is anchored on X
        tree.model.insert_node_into(tree.node("Y"), tree["A"], 1)
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        assert tree.engine.pending_create_ids == [tree.row_id("Y"), tree.row_id("X")]

        patch = tree.reconcile()

        creations = patch.creations()
        assert [(c.anchor_id, c.row_id) for c in creations] == [
            (tree.row_id("B"), tree.row_id("X")),
            (tree.row_id("X"), tree.row_id("Y")),
        ]
        tree.assert_in_sync()

    def test_every_pending_row_is_created_exactly_once(self, make_tree):
        tree = make_tree(("A", ["B"]))
        tree.expand("A")
        tree.reconcile()

        new_nodes = [tree.node(f"N{i}") for i in range(5)]
        # insert in reverse so each row is anchored on a later-created one
        for node in reversed(new_nodes):
            tree.model.insert_node_into(node, tree["A"], 1)
        patch = tree.reconcile()

        created = [c.row_id for c in patch.creations()]
        assert len(created) == 5
        assert len(set(created)) == 5
        tree.assert_in_sync()

    def test_created_row_carries_its_subtree(self, simple_tree):
        tree = simple_tree
        x = tree.node("X")
        x.add(tree.node("X1"))
        tree.model.insert_node_into(x, tree["A"], 1)
        tree.expand("X")
        patch = tree.reconcile()

        [create] = patch.creations()
        assert [str(row.node) for row in create.block] == ["X", "X1"]
        assert tree.engine.pending_create_ids == []
        tree.assert_in_sync()

    def test_pending_row_removed_again_leaves_no_trace(self, simple_tree):
        tree = simple_tree
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        x_id = tree.row_id("X")
        tree.model.remove_node_from_parent(tree["X"])

        patch = tree.reconcile()

        assert x_id not in patch.deleted_ids
        assert patch.creations() == []
        tree.assert_in_sync()

    def test_unresolvable_anchors_raise(self, simple_tree, monkeypatch):
        tree = simple_tree
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        monkeypatch.setattr(tree.engine, "insertion_anchor", lambda row: row)

        with pytest.raises(TreeConsistencyError):
            tree.reconcile()


class TestRemovalAndReplace:
    def test_removal_batch_comes_first_with_short_ids(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()
        b1_id = tree.row_id("B1")

        tree.model.remove_node_from_parent(tree["B1"])
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        patch = tree.reconcile()

        first = patch.instructions[0]
        assert isinstance(first, RemoveRows)
        assert first.prefix == "tree_"
        assert first.short_ids == (b1_id[len("tree_"):],)
        assert [type(i) for i in patch] == [RemoveRows, CreateAfter]
        assert patch.creations()[0].anchor_id == tree.row_id("B2")
        tree.assert_in_sync()

    def test_removing_node_removes_its_descendants(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()
        ids = {tree.row_id(label) for label in ("B", "B1", "B2")}

        tree.model.remove_node_from_parent(tree["B"])
        patch = tree.reconcile()

        assert set(patch.deleted_ids) == ids
        tree.assert_in_sync()

    def test_removing_last_child_turns_parent_into_leaf(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()

        tree.model.remove_children(tree["B"], [0, 1])
        patch = tree.reconcile()

        assert tree.row_id("B") in [r.row_id for r in patch.replacements()]
        assert tree.renderer.affordance(tree.engine.get_node_row(tree["B"])) == "·"
        tree.assert_in_sync()

    def test_collapsed_parent_losing_all_children_is_redrawn(self, simple_tree):
        tree = simple_tree
        tree.model.remove_children(tree["B"], [0, 1])
        patch = tree.reconcile()

        assert [r.row_id for r in patch.replacements()] == [tree.row_id("B")]
        tree.assert_in_sync()

    def test_collapse_deletes_child_rows(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()
        child_ids = [tree.row_id("B1"), tree.row_id("B2")]

        tree.collapse("B")
        patch = tree.reconcile()

        assert patch.deleted_ids == child_ids
        [replace] = patch.replacements()
        assert replace.block.ids == [tree.row_id("B")]
        tree.assert_in_sync()

    def test_content_change_replaces_single_row(self, simple_tree):
        tree = simple_tree
        tree["C"].user_object = "C2"
        tree.model.node_changed(tree["C"])
        patch = tree.reconcile()

        [replace] = patch.replacements()
        assert replace.row_id == tree.row_id("C")
        assert replace.block.head.content == "C2"
        tree.assert_in_sync()

    def test_root_content_change_refreshes_root(self, simple_tree):
        tree = simple_tree
        tree["A"].user_object = "Root"
        tree.model.node_changed(tree["A"])
        patch = tree.reconcile()

        [replace] = patch.replacements()
        assert replace.row_id == "tree_0"
        assert replace.block.ids == ["tree_0"]
        tree.assert_in_sync()

    def test_subtree_structure_change_rebuilds_subtree(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.reconcile()

        tree["B"].add(tree.node("B3"))
        tree.model.node_structure_changed(tree["B"])
        patch = tree.reconcile()

        [replace] = patch.replacements()
        assert [str(row.node) for row in replace.block] == ["B", "B1", "B2", "B3"]
        tree.assert_in_sync()

    def test_root_structure_change_is_full_render(self, simple_tree):
        tree = simple_tree
        tree.model.node_structure_changed(tree["A"])
        patch = tree.reconcile()

        assert patch.is_full_render
        assert isinstance(patch.instructions[0], ReplaceTree)
        tree.assert_in_sync()


class TestProperties:
    def test_second_reconcile_is_empty(self, simple_tree):
        tree = simple_tree
        tree.expand("B")
        tree.model.insert_node_into(tree.node("X"), tree["A"], 0)
        tree.reconcile()

        assert tree.reconcile().is_empty

    def test_first_reconcile_is_full_render(self, make_tree):
        tree = make_tree(("A", ["B"]))
        patch = tree.reconcile()

        assert patch.is_full_render
        assert len(patch) == 1
        tree.assert_in_sync()

    def test_full_redraw_matches_fresh_engine(self, make_tree):
        spec = ("A", [("B", ["B1", ("B2", ["B21"])]), ("C", ["C1"])])
        tree = make_tree(spec)
        tree.expand("A", "B", "B2")
        tree.reconcile()
        tree.collapse("B2")
        tree.expand("C")
        tree.reconcile()

        tree.engine.invalidate_all()
        block = tree.engine.render()

        fresh = make_tree(spec)
        fresh.expand("A", "B", "C")
        fresh_block = fresh.engine.render()
        shape = [(str(r.node), r.level, len(r.children or ())) for r in block]
        fresh_shape = [(str(r.node), r.level, len(r.children or ())) for r in fresh_block]
        assert shape == fresh_shape

    def test_rows_exist_exactly_for_visible_nodes(self, make_tree):
        tree = make_tree(("A", [("B", ["B1", ("B2", ["B21"])]), ("C", ["C1"])]))
        tree.expand("A", "B2")
        tree.reconcile()

        # B2 is expanded but hidden under collapsed B
        assert tree.engine.get_node_row(tree["B2"]) is None
        assert tree.engine.get_node_row(tree["B21"]) is None

        steps = [
            lambda: tree.expand("B"),
            lambda: tree.model.insert_node_into(tree.node("B0"), tree["B"], 0),
            lambda: tree.collapse("A"),
            lambda: tree.model.remove_node_from_parent(tree["C1"]),
            lambda: tree.expand("A"),
            lambda: tree.model.insert_node_into(tree.node("B22"), tree["B2"], 1),
            lambda: tree.model.remove_node_from_parent(tree["B1"]),
        ]
        for step in steps:
            step()
            tree.reconcile()
            tree.assert_in_sync()
            for label, node in tree.nodes.items():
                if node.parent is None and node is not tree.model.get_root():
                    continue
                assert (tree.engine.get_node_row(node) is not None) == (label in tree.expected_labels())


class TestForcedRefresh:
    def test_selection_refresh_keeps_row_id(self, simple_tree):
        tree = simple_tree
        row_before = tree.engine.get_node_row(tree["B"])

        tree.state.set_selected(tree["B"], True)
        row_after = tree.engine.get_node_row(tree["B"])
        patch = tree.reconcile()

        assert row_after is not row_before
        assert row_after.id == row_before.id
        assert row_after.children == row_before.children
        assert patch.deleted_ids == []
        assert [r.row_id for r in patch.replacements()] == [row_before.id]
        tree.assert_in_sync()

    def test_refreshed_pending_row_is_still_created(self, simple_tree):
        tree = simple_tree
        tree.model.insert_node_into(tree.node("X"), tree["A"], 1)
        x_id = tree.row_id("X")
        tree["X"].user_object = "X2"
        tree.model.node_changed(tree["X"])

        patch = tree.reconcile()

        assert [c.row_id for c in patch.creations()] == [x_id]
        assert x_id not in [r.row_id for r in patch.replacements()]
        assert patch.creations()[0].block.head.content == "X2"
        tree.assert_in_sync()
