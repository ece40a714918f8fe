import types
from datetime import datetime

from instabids.utils.sender_labels import (
    assign_labels, classify, contractor_display_name, extend_aliases, label_messages, matching_signal
)


def msg(sender_id, content="hello", is_own=None, metadata=None, id=None):
    return {"id": id, "sender_id": sender_id, "content": content, "is_own": is_own, "metadata": metadata or {}}


def test_labels_follow_first_appearance_and_are_stable():
    messages = [
        msg("X", metadata={"is_from_contractor": True}),
        msg("Y", metadata={"is_from_contractor": True}),
        msg("X", metadata={"is_from_contractor": True}),
    ]
    first = assign_labels(messages)
    assert first == {"X": "1", "Y": "2"}
    assert assign_labels(messages) == first


def test_non_contractor_senders_get_no_label():
    messages = [msg("H", is_own=True), msg("C", is_own=False)]
    assert assign_labels(messages) == {"C": "1"}


def test_word_contractor_in_content_classifies_as_contractor():
    # heuristic false positive kept on purpose
    message = msg("H", content="ok, contractor, sounds good", is_own=True)
    assert classify(message)
    assert matching_signal(message) == "mentions_contractor"


def test_signals_are_checked_in_order():
    message = msg("C", content="hi", is_own=False, metadata={"force_contractor_display": True})
    assert matching_signal(message) == "force_contractor_display"
    assert matching_signal(msg("C", is_own=False)) == "is_own_false"
    assert matching_signal(msg("H", is_own=True)) is None


def test_is_own_unknown_is_not_a_signal():
    assert not classify(msg("H", is_own=None))


def test_works_on_objects():
    message = types.SimpleNamespace(id="m1", sender_id="C", content="", is_own=False, metadata=None)
    assert classify(message)


def test_label_messages_decorates_each_message():
    messages = [
        msg("H", content="When can you start?", is_own=True),
        msg("C1", content="Next week", is_own=False),
        msg("C2", content="Monday", is_own=False),
        msg("C1", content="Or sooner", is_own=False),
    ]
    decorated = label_messages(messages)
    assert [m["is_from_contractor"] for m in decorated] == [False, True, True, True]
    assert [m["sender_alias"] for m in decorated] == [None, "1", "2", "1"]
    assert decorated[0]["content"] == "When can you start?"


def test_display_name():
    assert contractor_display_name("3") == "Contractor 3"


def test_extend_aliases_orders_by_first_interaction():
    interactions = [
        ("X", datetime(2026, 5, 3)),
        ("Y", datetime(2026, 5, 1)),
        ("X", datetime(2026, 5, 2)),
        ("Z", None),
    ]
    assert extend_aliases({}, interactions) == {"Z": "1", "Y": "2", "X": "3"}


def test_extend_aliases_never_renumbers_existing():
    added = extend_aliases({"Y": "1", "Q": "4"}, [("X", datetime(2026, 1, 1)), ("Y", datetime(2025, 1, 1))])
    assert added == {"X": "5"}


def test_stored_aliases_take_precedence_over_heuristic():
    messages = [
        msg("H", content="When can you start?", is_own=True),
        msg("C2", content="Monday", is_own=False),
        msg("C9", content="Tuesday", is_own=False),
        msg("C1", content="plain text", is_own=True),
    ]
    decorated = label_messages(messages, aliases={"C1": "1", "C2": "2"})
    assert [m["is_from_contractor"] for m in decorated] == [False, True, True, True]
    assert [m["sender_alias"] for m in decorated] == [None, "2", "3", "1"]
