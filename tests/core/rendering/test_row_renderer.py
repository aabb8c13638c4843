from treepatch.core.rendering import RowRenderer


def _texts(tree):
    return [tree.renderer.row_text(row) for row in tree.engine.visible_rows()]


def test_connector_lines(make_tree):
    tree = make_tree(("A", [("B", ["B1", "B2"]), ("C", ["C1"])]))
    tree.expand("A", "B", "C")
    tree.reconcile()

    assert _texts(tree) == [
        "− A",
        "├─− B",
        "│ ├─· B1",
        "│ └─· B2",
        "└─− C",
        "  └─· C1",
    ]


def test_collapsed_affordance(simple_tree):
    assert _texts(simple_tree) == ["− A", "├─+ B", "└─· C"]


def test_rootless_first_level_has_no_guides(make_tree):
    tree = make_tree(("A", ["B", "C"]), root_less=True)
    tree.reconcile()

    assert _texts(tree) == ["", "├─· B", "└─· C"]


def test_render_row_markup(simple_tree):
    tree = simple_tree
    tree.state.set_selected(tree["B"], True)
    row = tree.engine.get_node_row(tree["B"])

    element = tree.renderer.render_row(row)

    assert element.get("id") == row.id
    assert element.get("class") == "tree-row selected"
    assert element.get("data-level") == "1"
    assert [span.get("class") for span in element] == ["tree-junction", "tree-affordance", "tree-label"]
    assert element[2].text == "B"


def test_hidden_root_markup(make_tree):
    tree = make_tree(("A", ["B"]), root_less=True)
    tree.reconcile()

    element = tree.renderer.render_row(tree.engine.root_row)

    assert "tree-root-hidden" in element.get("class")
    assert len(element) == 0


def test_render_tree_wraps_block(simple_tree):
    block = simple_tree.engine.render()
    element = simple_tree.renderer.render_tree(block)

    assert element.get("id") == "tree"
    assert [child.get("id") for child in element] == block.ids
    assert RowRenderer.to_markup(element).startswith('<div id="tree"')


def test_label_prefers_populated_content(simple_tree):
    row = simple_tree.engine.get_node_row(simple_tree["C"])
    row.content = "Custom"
    assert simple_tree.renderer.label(row) == "Custom"


def test_glyph_overrides(simple_tree, isolated_config):
    renderer = RowRenderer(simple_tree.engine, glyphs={"leaf": "o", "last": "`-"})

    row = simple_tree.engine.get_node_row(simple_tree["C"])
    assert renderer.row_text(row) == "`-o C"
    assert renderer.glyphs["branch"] == "├─"


def test_glyphs_from_configuration(simple_tree, isolated_config):
    from treepatch.config import ConfigManager

    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "engine.yml").write_text(
        "rendering:\n  glyphs:\n    collapsed: '>'\n", encoding="utf-8"
    )
    ConfigManager.reset()

    renderer = RowRenderer(simple_tree.engine)
    row = simple_tree.engine.get_node_row(simple_tree["B"])
    assert renderer.affordance(row) == ">"
