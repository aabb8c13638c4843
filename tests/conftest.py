"""Test configuration and fixtures for the treepatch test-suite.

This module provides shared fixtures for building small trees, driving the
engine through complete cycles and comparing the engine's rows with an
in-memory remote view. All test files should use the fixtures defined here
for consistency.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from treepatch.config import ConfigManager
from treepatch.core.engine import TreeReconciler
from treepatch.core.models import DefaultTreeModel, DefaultTreeState, TreeNode, TreePatch
from treepatch.core.rendering import MirrorView, RowRenderer

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# A tree is written as "Label" for a leaf or ("Label", [children...])
TreeSpec = Union[str, Tuple[str, Sequence[Any]]]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the configuration at an empty per-test directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("TREEPATCH_CONFIG_DIR", str(config_dir))
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


class TreeHarness:
    """A model, a state, an engine and a mirror of the remote view."""

    def __init__(self, spec: TreeSpec, **engine_kwargs: Any) -> None:
        self.nodes: Dict[str, TreeNode] = {}
        self.model = DefaultTreeModel(self._build(spec))
        self.state = DefaultTreeState()
        self.engine = TreeReconciler("tree", self.model, self.state, **engine_kwargs)
        self.renderer = RowRenderer(self.engine)
        self.mirror = MirrorView(self.renderer)

    def _build(self, spec: TreeSpec) -> TreeNode:
        if isinstance(spec, str):
            label, children = spec, ()
        else:
            label, children = spec
        node = TreeNode(label)
        self.nodes[label] = node
        for child in children:
            node.add(self._build(child))
        return node

    def __getitem__(self, label: str) -> TreeNode:
        return self.nodes[label]

    def node(self, label: str) -> TreeNode:
        """Create a detached node and remember it by label."""
        node = TreeNode(label)
        self.nodes[label] = node
        return node

    def expand(self, *labels: str) -> None:
        for label in labels:
            self.state.expand(self.nodes[label])

    def collapse(self, *labels: str) -> None:
        for label in labels:
            self.state.collapse(self.nodes[label])

    def reconcile(self) -> TreePatch:
        return self.engine.reconcile(self.mirror)

    def row_id(self, label: str) -> str:
        row = self.engine.get_node_row(self.nodes[label])
        assert row is not None, f"{label} has no row"
        return row.id

    def visible_ids(self) -> List[str]:
        return [row.id for row in self.engine.visible_rows()]

    def visible_labels(self) -> List[str]:
        return [str(row.node) for row in self.engine.visible_rows() if not row.is_hidden_root]

    def expected_labels(self) -> List[str]:
        """Labels of the model nodes that should be visible, in document order."""
        labels: List[str] = []

        def walk(node: TreeNode, visible: bool) -> None:
            if not visible:
                return
            if not (self.engine.is_root_less() and node is self.model.get_root()):
                labels.append(str(node))
            open_ = self.engine.is_node_expanded(node)
            for child in node.children:
                walk(child, open_)

        walk(self.model.get_root(), True)
        return labels

    def assert_in_sync(self) -> None:
        """The mirror shows exactly the engine's rows, each as a fresh render would."""
        assert self.mirror.ids == self.visible_ids()
        assert self.visible_labels() == self.expected_labels()
        for row in self.engine.visible_rows():
            fresh = self.renderer.to_markup(self.renderer.render_row(row))
            assert self.mirror.markup_of(row.id) == fresh, row


@pytest.fixture
def make_tree():
    """Factory fixture: ``make_tree(spec, **engine_kwargs) -> TreeHarness``."""
    return TreeHarness


@pytest.fixture
def simple_tree():
    """Root A over B (with B1, B2) and C, A expanded, rendered once."""
    harness = TreeHarness(("A", [("B", ["B1", "B2"]), "C"]))
    harness.expand("A")
    harness.reconcile()
    return harness
