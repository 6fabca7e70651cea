from talkmate.storage.aggregator import HOUR_MS


def test_empty_store_reports_zeros(db):
    stats = db.aggregator.stats()
    assert stats.users.total == 0
    assert stats.tickets.total == 0
    assert stats.favorites.avg_per_user == 0.0
    assert stats.predictions.recommended_response_time == "0ms"


def test_user_activity_windows(db):
    now = 1_700_000_000_000
    for uid, last_seen in (("1", now - HOUR_MS), ("2", now - 48 * HOUR_MS), ("3", now - 200 * HOUR_MS)):
        db.users.register(uid)
        user = db.users.get(uid)
        db.put("users", f"user:{uid}", user.model_copy(update={
            "first_seen": last_seen, "last_seen": last_seen,
        }))

    users = db.aggregator.stats(at_ms=now).users
    assert users.total == 3
    assert users.active_24h == 1
    assert users.active_7d == 2
    assert users.new_24h == 1


def test_ticket_counts_and_response_time(db, alice):
    urgent = db.tickets.create("42", "Alice", "URGENT help")
    db.tickets.create("42", "Alice", "feature idea")
    closed = db.tickets.create("42", "Alice", "old issue")
    db.tickets.add_reply(urgent.id, "on it")
    db.tickets.close(closed.id)

    tickets = db.aggregator.stats().tickets
    assert tickets.total == 3
    assert tickets.open == 1
    assert tickets.in_progress == 1
    assert tickets.closed == 1
    assert tickets.urgent == 1
    assert tickets.avg_response_minutes >= 0


def test_favorites_and_projections(db, alice):
    db.users.register("7")
    for text in ("a", "b", "c", "d"):
        db.favorites.add("42", text)

    stats = db.aggregator.stats()
    assert stats.favorites.total == 4
    assert stats.favorites.avg_per_user == 2.0
    assert stats.predictions.user_growth_next_week == 2
    assert stats.predictions.recommended_response_time == "1ms"
    assert 0 <= stats.predictions.peak_activity_hour < 24


def test_performance_block_reflects_cache(db, alice):
    db.users.get("42")
    perf = db.aggregator.stats().performance
    assert perf.cache_entries >= 1
    assert perf.cache_hits >= 1
    assert perf.tracked_keys == 1


def test_totals_follow_the_directory_listing(db, alice):
    (db.base_dir / "users" / "user:13.json").write_text("{{{", encoding="utf-8")
    users = db.aggregator.stats().users
    assert users.total == 2
    assert users.active_24h == 1
