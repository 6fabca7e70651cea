def test_save_computes_derived_fields(db, alice):
    conv = db.conversations.save("42", [
        {"role": "user", "content": "I love programming"},
        {"role": "assistant", "content": "Code is great and amazing, and music too"},
    ])
    assert len(conv.id) == 16
    assert conv.sentiment == 1.5
    assert conv.topics == ["art", "tech"]
    assert len(conv.vector) == 8
    assert db.conversations.get(conv.id) == conv


def test_empty_conversation_has_neutral_sentiment(db):
    conv = db.conversations.save("42", [])
    assert conv.sentiment == 0.0
    assert conv.topics == []


def test_same_content_gives_same_fingerprint(db):
    msgs = [{"role": "user", "content": "hello"}]
    assert db.conversations.save("1", msgs).vector == db.conversations.save("2", msgs).vector


def test_list_by_user(db):
    db.conversations.save("1", [{"role": "user", "content": "a"}])
    db.conversations.save("2", [{"role": "user", "content": "b"}])
    assert [c.user_id for c in db.conversations.list_by_user("1")] == ["1"]
