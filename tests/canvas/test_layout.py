from cf_canvas import (
    CanvasConfig,
    Layer,
    LayerBoard,
    OverviewConfig,
    find_parent_layer,
    overview_layout,
    place_branch,
)
from cf_tree import TreeStore


def _layer(layer_id, parent=None, x=0.0, y=0.0, z=1, color=None):
    return Layer(id=layer_id, root_parent_id=parent, x=x, y=y, width=480, height=360, z=z, color=color)


def test_place_branch_follows_sibling_row():
    parent = _layer("p", x=100, y=50)
    layers = [parent]
    cfg = CanvasConfig()
    positions = []
    for index in range(3):
        point = place_branch(parent, layers, cfg)
        positions.append(point)
        layers.append(_layer(f"c{index}", parent="p", x=point.x, y=point.y))

    center = 100 + 480 / 2
    for count, point in enumerate(positions):
        assert point.x == center - (count * 520) / 2 + count * 520
        assert point.y == 50 + 360 + 150

    # Half-spacing steps: default-sized siblings overlap on the free canvas.
    assert [point.x - center for point in positions] == [0, 260, 520]
    assert layers[1].overlaps(layers[2])


def test_find_parent_layer_tolerates_missing_parent():
    orphan = _layer("o", parent="gone")
    assert find_parent_layer(orphan, [orphan]) is None
    assert find_parent_layer(_layer("root"), []) is None


def test_board_reconcile_places_and_colors_branches():
    store = TreeStore()
    root = store.create_root()
    board = LayerBoard()
    board.reconcile(store)
    first = store.branch(root, None, "first")
    second = store.branch(root, None, "second")
    board.reconcile(store)

    root_layer = board.require(root)
    assert (root_layer.x, root_layer.y) == (80, 80)
    assert root_layer.color is None

    first_layer = board.require(first)
    second_layer = board.require(second)
    assert first_layer.color == 0
    assert second_layer.color == 1
    assert first_layer.y == second_layer.y == 80 + 360 + 150
    assert second_layer.x > first_layer.x
    assert root_layer.z < first_layer.z < second_layer.z


def test_board_keeps_manual_geometry_and_follows_structure():
    store = TreeStore()
    root = store.create_root()
    child = store.branch(root, None, "child")
    grandchild = store.branch(child, None, "grandchild")
    board = LayerBoard()
    board.reconcile(store)

    board.move_to(grandchild, 10, 20)
    board.resize_to(grandchild, 100, 100)
    store.merge(child)
    board.reconcile(store)

    moved = board.require(grandchild)
    assert (moved.x, moved.y) == (10, 20)
    assert (moved.width, moved.height) == (300, 250)
    assert moved.root_parent_id == root
    assert board.get(child) is None


def test_bring_to_front_uses_max_z_plus_one():
    board = LayerBoard()
    board.load([_layer("a", z=1), _layer("b", z=5), _layer("c", z=3)])
    layer = board.bring_to_front("a")
    assert layer.z == 6
    assert board.active_layer_id == "a"


def test_palette_wraps_after_eight_branches():
    store = TreeStore()
    root = store.create_root()
    board = LayerBoard()
    for index in range(9):
        store.branch(root, None, f"b{index}")
    board.reconcile(store)
    colors = [layer.color for layer in board.layers if layer.root_parent_id is not None]
    assert colors[:8] == list(range(8))
    assert colors[8] == 8 % 8


def test_overview_layout_is_rank_based_and_pure():
    store = TreeStore()
    root = store.create_root()
    children = [store.branch(root, None, f"c{index}") for index in range(3)]
    nested = store.branch(children[0], None, "nested")

    layers = {layer.id: layer for layer in overview_layout(store)}
    cfg = OverviewConfig()
    assert (layers[root].x, layers[root].y) == (80, 80)
    ys = [layers[child].y for child in children]
    assert ys == sorted(ys) and len(set(ys)) == 3
    assert all(layers[child].x == 80 + 400 for child in children)
    assert layers[nested].x == 80 + 2 * cfg.depth_spacing
    assert layers[nested].y == 80
    assert (layers[nested].width, layers[nested].height) == (280, 120)
    assert overview_layout(store) == overview_layout(store)


def test_overview_board_clamps_to_overview_minimums():
    store = TreeStore()
    root = store.create_root()
    board = LayerBoard.for_overview(store)
    resized = board.resize_to(root, 10, 10)
    assert (resized.width, resized.height) == (200, 100)
