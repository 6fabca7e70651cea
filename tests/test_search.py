def test_search_covers_favorites_tickets_and_replies(db, alice):
    db.favorites.add("42", "A recipe for lemon cake")
    ticket = db.tickets.create("42", "Alice", "Lemon icon looks broken")
    db.tickets.add_reply(ticket.id, "The lemon icon is fixed")

    hits = db.search("LEMON", user_id="42")
    assert sorted(h.type for h in hits) == ["favorite", "reply", "ticket"]
    reply = next(h for h in hits if h.type == "reply")
    assert reply.ticket_id == ticket.id


def test_favorites_are_private(db, alice):
    db.users.register("7")
    db.favorites.add("7", "secret lemon")
    assert db.search("lemon", user_id="42") == []
    assert db.search("lemon") == []


def test_search_by_ticket_id(db, alice):
    ticket = db.tickets.create("42", "Alice", "anything")
    assert [h.id for h in db.search(ticket.id.lower())] == [ticket.id]


def test_blank_query_and_limit(db, alice):
    for i in range(5):
        db.tickets.create("42", "Alice", f"printer jam {i}")
    assert db.search("   ") == []
    assert len(db.search("printer", limit=3)) == 3
