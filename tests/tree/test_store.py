import pytest

from cf_tree import InvalidOperation, TreeStore
from tests.helpers import conversation_root


def _assert_rooted_tree(store: TreeStore) -> None:
    roots = [node for node in store.nodes() if node.parent_id is None]
    assert len(roots) == 1
    for node in store.nodes():
        seen = set()
        current = node
        while current.parent_id is not None:
            assert current.id not in seen
            seen.add(current.id)
            assert store.has_node(current.parent_id)
            current = store.get_node(current.parent_id)
        assert current.id == roots[0].id


def test_create_root_once():
    store = TreeStore()
    root = store.create_root()
    assert store.root_id() == root
    assert store.get_node(root).parent_id is None
    with pytest.raises(InvalidOperation):
        store.create_root()
    assert store.ensure_root() == root


def test_first_message_sets_title():
    store = TreeStore()
    root = store.create_root()
    store.send_message(root, "A" * 50, "user")
    assert store.get_node(root).title == "A" * 40
    store.send_message(root, "something else", "user")
    assert store.get_node(root).title == "A" * 40


def test_error_message_does_not_set_title():
    store = TreeStore()
    root = store.create_root()
    store.send_message(root, "Error: boom", "assistant", is_error=True)
    assert store.get_node(root).title == "Primary Chat"


def test_send_message_to_unknown_node_raises():
    store = TreeStore()
    store.create_root()
    with pytest.raises(InvalidOperation):
        store.send_message("missing", "hello")


def test_branch_title_is_literal_prefix():
    store = TreeStore()
    root, _hello, reply = conversation_root(store)
    text = "The quick brown fox jumps over the lazy dog and then some more text"
    child = store.branch(root, reply, text)
    node = store.get_node(child)
    assert node.title == text[:40]
    assert node.parent_id == root
    assert node.source_message_id == reply
    assert store.children_of(root) == [child]
    assert [m.content for m in store.messages_of(root)] == ["hello", "hi there"]


def test_branch_rejects_message_from_other_node():
    store = TreeStore()
    root, _hello, reply = conversation_root(store)
    child = store.branch(root, reply, "side")
    with pytest.raises(InvalidOperation):
        store.branch(child, reply, "wrong owner")
    assert store.children_of(child) == []


def test_merge_preserves_content_and_reparents():
    store = TreeStore()
    a = store.create_root()
    m0 = store.send_message(a, "m0")
    b = store.branch(a, None, "b")
    m1 = store.send_message(b, "m1")
    m2 = store.send_message(b, "m2", "assistant")
    c = store.branch(b, m2, "c")

    result = store.merge(b)

    assert result == a
    assert [m.id for m in store.messages_of(a)] == [m0, m1, m2]
    assert all(m.chat_id == a for m in store.messages_of(a))
    assert not store.has_node(b)
    assert store.get_node(c).parent_id == a
    assert store.children_of(a) == [c]
    _assert_rooted_tree(store)


def test_merge_keeps_creation_order_of_children():
    store = TreeStore()
    root = store.create_root()
    first = store.branch(root, None, "first")
    nested = store.branch(first, None, "nested")
    last = store.branch(root, None, "last")

    store.merge(first)

    assert store.children_of(root) == [nested, last]


def test_merge_and_prune_reject_root():
    store = TreeStore()
    root = store.create_root()
    store.send_message(root, "hello")
    with pytest.raises(InvalidOperation):
        store.merge(root)
    with pytest.raises(InvalidOperation):
        store.prune(root)
    assert [m.content for m in store.messages_of(root)] == ["hello"]


def test_prune_removes_whole_subtree():
    store = TreeStore()
    root = store.create_root()
    keep = store.branch(root, None, "keep")
    keep_msg = store.send_message(keep, "kept")
    doomed = store.branch(root, None, "doomed")
    doomed_msg = store.send_message(doomed, "bye")
    grandchild = store.branch(doomed, doomed_msg, "grandchild")
    great = store.branch(grandchild, None, "great")
    great_msg = store.send_message(great, "deep")

    assert store.prune(doomed) == root

    for node_id in (doomed, grandchild, great):
        assert not store.has_node(node_id)
    for message_id in (doomed_msg, great_msg):
        with pytest.raises(InvalidOperation):
            store.get_message(message_id)
    assert store.children_of(root) == [keep]
    assert store.get_message(keep_msg).content == "kept"
    _assert_rooted_tree(store)


def test_rename_allows_empty_title():
    store = TreeStore()
    root = store.create_root()
    store.rename(root, "")
    assert store.get_node(root).title == ""


def test_append_if_present_drops_stale_reply():
    store = TreeStore()
    root = store.create_root()
    child = store.branch(root, None, "child")
    store.prune(child)
    assert store.append_if_present(child, "late reply") is None
    assert not store.has_node(child)


def test_history_excludes_error_messages():
    store = TreeStore()
    root = store.create_root()
    store.send_message(root, "question")
    store.send_message(root, "Error: down", "assistant", is_error=True)
    assert store.history_of(root) == [{"role": "user", "content": "question"}]


def test_load_messages_skips_system_and_requires_empty_node():
    store = TreeStore()
    root = store.create_root()
    added = store.load_messages(
        root,
        [
            {"role": "system", "content": "be nice"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ],
    )
    assert len(added) == 2
    assert [m.role for m in store.messages_of(root)] == ["user", "assistant"]
    with pytest.raises(InvalidOperation):
        store.load_messages(root, [{"role": "user", "content": "again"}])


def test_listeners_receive_events():
    store = TreeStore()
    events = []
    unsubscribe = store.subscribe(events.append)
    root = store.create_root()
    child = store.branch(root, None, "child")
    store.merge(child)
    unsubscribe()
    store.rename(root, "ignored")

    assert [event["type"] for event in events] == ["node_created", "node_created", "node_merged"]
    assert events[-1]["parent_id"] == root


def test_random_mutations_keep_tree_invariant():
    import random

    rng = random.Random(7)
    store = TreeStore()
    root = store.create_root()
    for step in range(300):
        node_ids = [node.id for node in store.nodes()]
        target = rng.choice(node_ids)
        action = rng.random()
        if action < 0.5 or target == root:
            store.branch(target, None, f"n{step}")
        elif action < 0.75:
            store.merge(target)
        else:
            store.prune(target)
        _assert_rooted_tree(store)


def test_branch_reply_and_merge_back_into_root():
    store = TreeStore()
    root, hello, reply = conversation_root(store)
    branch = store.branch(root, reply, "hi there")
    assert store.get_node(branch).source_message_id == reply

    question = store.send_message(branch, "tell me more", "user")
    answer = store.send_message(branch, "Here is more.", "assistant")
    assert store.merge(branch) == root

    assert [(m.id, m.role) for m in store.messages_of(root)] == [
        (hello, "user"),
        (reply, "assistant"),
        (question, "user"),
        (answer, "assistant"),
    ]
    assert not store.has_node(branch)
