"""Tests for reading clubs."""

import re

import pytest

from shelfclub.clubs import ClubManager, generate_invite_code
from shelfclub.db.schemas import ClubReadingStatus, ClubRole, ReactionEmoji
from shelfclub.errors import DuplicateRecordError, InvalidInputError, RecordNotFoundError

HEART = ReactionEmoji.HEART.value
IDEA = ReactionEmoji.IDEA.value


@pytest.fixture
def clubs(db, resolver):
    return ClubManager(db, resolver)


@pytest.fixture
def club(clubs):
    return clubs.create_club("alice", "Tuesday Readers", "We meet on Tuesdays")


class TestInviteCodes:
    """Tests for invite code generation."""

    def test_code_format(self):
        for _ in range(50):
            assert re.fullmatch(r"[A-Z0-9]{6}", generate_invite_code())


class TestMembership:
    """Tests for creating, joining and leaving clubs."""

    def test_creator_is_admin(self, clubs, club):
        members = clubs.members(club.id)

        assert [m.user_id for m in members] == ["alice"]
        assert members[0].role == ClubRole.ADMIN.value

    def test_blank_name_rejected(self, clubs):
        with pytest.raises(InvalidInputError):
            clubs.create_club("alice", "   ")

    def test_join_by_invite_case_insensitive(self, clubs, club):
        joined = clubs.join_by_invite("bob", club.invite_code.lower())

        assert joined.id == club.id
        assert clubs.is_member("bob", club.id)
        bob = [m for m in clubs.members(club.id) if m.user_id == "bob"][0]
        assert bob.role == ClubRole.MEMBER.value

    def test_join_unknown_code(self, clubs, club):
        with pytest.raises(RecordNotFoundError):
            clubs.join_by_invite("bob", "not-a-code")

    def test_join_twice(self, clubs, club):
        clubs.join_by_invite("bob", club.invite_code)
        with pytest.raises(DuplicateRecordError):
            clubs.join_by_invite("bob", club.invite_code)

    def test_leave_club(self, clubs, club):
        clubs.join_by_invite("bob", club.invite_code)

        assert clubs.leave_club("bob", club.id) is True
        assert clubs.leave_club("bob", club.id) is False
        assert not clubs.is_member("bob", club.id)

    def test_clubs_for_user(self, clubs, club):
        other = clubs.create_club("bob", "Another Club")
        clubs.join_by_invite("alice", other.invite_code)

        assert [c.name for c in clubs.clubs_for_user("alice")] == ["Another Club", "Tuesday Readers"]
        assert clubs.clubs_for_user("carol") == []


class TestClubReadings:
    """Tests for shared readings."""

    def test_start_reading(self, clubs, club, gatsby):
        reading = clubs.start_reading(club.id, "alice", gatsby, target_date="2024-09-01")

        assert reading.status == ClubReadingStatus.ACTIVE.value
        assert reading.book.title == "The Great Gatsby"
        assert reading.target_date == "2024-09-01"
        assert clubs.current_reading(club.id).id == reading.id

    def test_new_reading_finishes_previous(self, db, clubs, club, gatsby, dune):
        from shelfclub.clubs.models import ClubReading

        first = clubs.start_reading(club.id, "alice", gatsby)
        second = clubs.start_reading(club.id, "alice", dune)

        assert clubs.current_reading(club.id).id == second.id
        with db.get_session() as session:
            assert session.get(ClubReading, first.id).status == ClubReadingStatus.FINISHED.value

    def test_reading_uses_canonical_book(self, clubs, club, resolver, gatsby, gatsby_id):
        reading = clubs.start_reading(club.id, "alice", gatsby)
        assert reading.book_id == gatsby_id

    def test_only_members_start_readings(self, clubs, club, gatsby):
        with pytest.raises(RecordNotFoundError):
            clubs.start_reading(club.id, "mallory", gatsby)

    def test_no_current_reading(self, clubs, club):
        assert clubs.current_reading(club.id) is None


class TestAnnotations:
    """Tests for annotations and reactions."""

    def test_add_annotation(self, clubs, club, gatsby_id):
        note = clubs.add_annotation(
            "alice", gatsby_id, "  The green light!  ", club_id=club.id, page_number=20
        )

        assert note.content == "The green light!"
        assert note.reactions == []

    def test_blank_annotation_rejected(self, clubs, gatsby_id):
        with pytest.raises(InvalidInputError):
            clubs.add_annotation("alice", gatsby_id, "   ")

    def test_annotation_for_unknown_book(self, clubs):
        with pytest.raises(RecordNotFoundError):
            clubs.add_annotation("alice", "missing", "Hello")

    def test_non_member_cannot_annotate_for_club(self, clubs, club, gatsby_id):
        with pytest.raises(RecordNotFoundError):
            clubs.add_annotation("mallory", gatsby_id, "Hi", club_id=club.id)

    def test_club_annotations_hide_spoilers(self, clubs, club, gatsby_id):
        clubs.join_by_invite("bob", club.invite_code)
        clubs.add_annotation("alice", gatsby_id, "Early note", club_id=club.id, page_number=5)
        clubs.add_annotation("alice", gatsby_id, "He dies", club_id=club.id, page_number=170, is_spoiler=True)
        clubs.add_annotation("bob", gatsby_id, "My spoiler", club_id=club.id, page_number=160, is_spoiler=True)

        for_bob = clubs.annotations_for_book(gatsby_id, "bob", club_id=club.id, hide_spoilers=True)
        assert [a.content for a in for_bob] == ["Early note", "My spoiler"]

        everything = clubs.annotations_for_book(gatsby_id, "bob", club_id=club.id)
        assert len(everything) == 3

    def test_outsiders_cannot_read_club_annotations(self, clubs, club, gatsby_id):
        clubs.add_annotation("alice", gatsby_id, "members only", club_id=club.id, is_spoiler=True)

        with pytest.raises(RecordNotFoundError):
            clubs.annotations_for_book(gatsby_id, "mallory", club_id=club.id)

    def test_former_member_loses_access(self, clubs, club, gatsby_id):
        clubs.join_by_invite("bob", club.invite_code)
        clubs.add_annotation("alice", gatsby_id, "Chapter one", club_id=club.id)
        assert len(clubs.annotations_for_book(gatsby_id, "bob", club_id=club.id)) == 1

        clubs.leave_club("bob", club.id)
        with pytest.raises(RecordNotFoundError):
            clubs.annotations_for_book(gatsby_id, "bob", club_id=club.id)

    def test_personal_annotations_are_private(self, clubs, gatsby_id):
        clubs.add_annotation("alice", gatsby_id, "Mine")
        assert clubs.annotations_for_book(gatsby_id, "bob") == []
        assert len(clubs.annotations_for_book(gatsby_id, "alice")) == 1

    def test_toggle_reaction(self, clubs, gatsby_id):
        note = clubs.add_annotation("alice", gatsby_id, "Lovely")

        assert clubs.toggle_reaction(note.id, "bob", HEART) is True
        assert clubs.toggle_reaction(note.id, "bob", HEART) is False
        assert clubs.annotations_for_book(gatsby_id, "alice")[0].reactions == []

    def test_one_reaction_per_user(self, clubs, gatsby_id):
        note = clubs.add_annotation("alice", gatsby_id, "Lovely")
        clubs.toggle_reaction(note.id, "bob", HEART)
        clubs.toggle_reaction(note.id, "bob", IDEA)
        clubs.toggle_reaction(note.id, "carol", IDEA)

        reloaded = clubs.annotations_for_book(gatsby_id, "alice")[0]
        assert ClubManager.reaction_counts(reloaded) == {IDEA: 2}

    def test_unsupported_reaction(self, clubs, gatsby_id):
        note = clubs.add_annotation("alice", gatsby_id, "Lovely")
        with pytest.raises(InvalidInputError):
            clubs.toggle_reaction(note.id, "bob", "👎")
