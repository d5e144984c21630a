"""
User / Note / NoteSet lifecycle against the test database.
"""
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from dumpnote.db import get_conn
from dumpnote.domain import Note, NoteSet, SetType, User, user_cache
from dumpnote.repository import Predicate


@pytest.fixture()
def user():
    return User.create_or_get("g1", "Ada", "ada@example.com")


def _count(sql, params=()):
    with get_conn() as conn:
        return conn.execute(sql, params).fetchone()[0]


class TestUser:
    def test_create_or_get_allocates_dense_ids(self):
        a = User.create_or_get("g1", "Ada", "ada@example.com")
        b = User.create_or_get("g2", "Bob", "bob@example.com")
        assert (a.id, b.id) == (0, 1)
        assert User.get_next_id() == 2

    def test_create_or_get_returns_existing_row(self, user):
        user_cache().clear()
        again = User.create_or_get("g1", "Other", "other@example.com")
        assert again == user
        assert _count("SELECT COUNT(*) FROM users WHERE gid='g1'") == 1

    def test_resolve(self, user):
        user_cache().clear()
        assert User.resolve(user.id) == user
        assert User.resolve(999) is None

    def test_resolve_is_served_from_cache(self, user):
        assert User.resolve(user.id) is user
        with get_conn() as conn:
            conn.execute("UPDATE users SET name='Changed' WHERE id=?", (user.id,))
        # out-of-band writes are not seen until the entry is invalidated
        assert User.resolve(user.id).name == "Ada"

    def test_edit_invalidates_both_cache_indexes(self, user):
        user.edit({"name": "Ada L."})
        assert user_cache().get(user.id) is None
        assert user_cache().get_by_key("g1") is None
        assert User.resolve(user.id).name == "Ada L."

    def test_resolve_does_not_cache_row_read_before_edit(self, user):
        user_cache().clear()
        real_fetch = User._fetch_one

        def fetch_then_edit(predicate):
            row = real_fetch(predicate)
            user.edit({"name": "Renamed"})  # lands between the read and the cache fill
            return row

        with patch.object(User, "_fetch_one", side_effect=fetch_then_edit):
            assert User.resolve(user.id).name == "Ada"
        assert user_cache().get(user.id) is None
        assert User.resolve(user.id).name == "Renamed"

    def test_concurrent_create_or_get_yields_one_row(self):
        def login(_):
            return User.create_or_get("g-race", "Race", "race@example.com").id

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(login, range(16)))
        assert len(set(ids)) == 1
        assert _count("SELECT COUNT(*) FROM users WHERE gid='g-race'") == 1


class TestNotes:
    def test_post_note_then_fetch_matches(self, user):
        note = user.post_note("hello", None)
        fetched = Note.get_note(note.id)
        assert fetched.serialize() == note.serialize()
        assert fetched.serialize()["set"] is None
        assert fetched.marked is False
        # the sentinel is what is stored
        assert _count('SELECT "set" FROM notes WHERE id=?', (note.id,)) == -1

    def test_get_note_missing(self):
        assert Note.get_note(42) is None

    def test_scenario_filter_by_set(self, user):
        daily = user.create_set("Daily", "daily")
        assert daily.id == 0
        first = user.post_note("in set", daily)
        second = user.post_note("no set", None)

        only_set = user.get_notes([Predicate("set", "=", 0)])
        assert [n.id for n in only_set] == [first.id]
        both = user.get_notes([])
        assert [n.id for n in both] == [first.id, second.id]

    def test_get_notes_is_scoped_to_owner(self, user):
        other = User.create_or_get("g2", "Bob", None)
        user.post_note("mine", None)
        other.post_note("theirs", None)
        assert [n.body for n in user.get_notes()] == ["mine"]
        assert [n.body for n in other.get_notes()] == ["theirs"]

    def test_get_notes_pagination_and_order(self, user):
        for i in range(5):
            user.post_note(f"n{i}", None)
        with get_conn() as conn:
            # make timestamps distinct and reversed relative to ids
            for i in range(5):
                conn.execute("UPDATE notes SET timestamp=? WHERE id=?", (1000 - i, i))
        page = user.get_notes(page_size=2, offset=2)
        assert [n.id for n in page] == [2, 3]
        newest = user.get_notes(newest_first=True, page_size=5)
        assert [n.id for n in newest] == [0, 1, 2, 3, 4]

    def test_edit_changes_only_given_fields(self, user):
        note = user.post_note("draft", None)
        note.edit({"marked": True})
        after = Note.get_note(note.id)
        assert after.marked is True
        assert after.body == "draft"
        assert after.timestamp == note.timestamp
        # the snapshot itself is not mutated
        assert note.marked is False

    def test_edit_set_to_none_stores_sentinel(self, user):
        s = user.create_set("S", SetType.UNTIMED)
        note = user.post_note("x", s)
        assert Note.get_note(note.id).set == s.id
        note.edit({"set": None})
        assert Note.get_note(note.id).set is None

    def test_delete(self, user):
        note = user.post_note("bye", None)
        note.delete()
        assert Note.get_note(note.id) is None

    def test_concurrent_posts_get_distinct_ids(self, user):
        with ThreadPoolExecutor(max_workers=8) as pool:
            notes = list(pool.map(lambda i: user.post_note(f"c{i}", None), range(20)))
        assert sorted(n.id for n in notes) == list(range(20))


class TestNoteSets:
    def test_create_and_fetch(self, user):
        s = user.create_set("Monthly", "monthly")
        fetched = NoteSet.get_set(s.id)
        assert fetched.serialize() == {"id": s.id, "owner": user.id, "name": "Monthly", "type": "monthly"}
        assert NoteSet.get_set(99) is None

    def test_invalid_type_rejected(self, user):
        with pytest.raises(ValueError):
            user.create_set("Weekly", "weekly")

    def test_ids_are_allocated_per_table(self, user):
        user.post_note("a", None)
        user.post_note("b", None)
        assert NoteSet.get_next_id() == 0
        assert Note.get_next_id() == 2

    def test_list_sets(self, user):
        user.create_set("A", "daily")
        user.create_set("B", "untimed")
        assert [s.name for s in user.get_note_sets()] == ["A", "B"]
        assert [s.name for s in user.get_note_sets(offset=1)] == ["B"]

    def test_edit(self, user):
        s = user.create_set("Old", "daily")
        s.edit({"name": "New"})
        after = NoteSet.get_set(s.id)
        assert after.name == "New"
        assert after.type is SetType.DAILY

    def test_delete_cascades_to_notes(self, user):
        s = user.create_set("Trash", "daily")
        keep = user.post_note("keep", None)
        for i in range(3):
            user.post_note(f"t{i}", s)
        assert len(s.get_notes()) == 3

        s.delete()
        assert NoteSet.get_set(s.id) is None
        assert _count('SELECT COUNT(*) FROM notes WHERE "set"=?', (s.id,)) == 0
        assert Note.get_note(keep.id) is not None
