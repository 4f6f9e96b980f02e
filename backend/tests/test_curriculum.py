"""
Tests for rosters, the default curriculum and profile edits
"""
from classroom.curriculum import STUDENTS_BY_GRADE, CurriculumStore, default_curriculum, roster_for
from classroom.schemas import GRADES


def test_each_grade_has_full_roster():
    assert len(roster_for("Grade 3 O")) == 26
    assert len(roster_for("Grade 3 P")) == 26
    assert roster_for("Grade 3 O")[0] == "Bander Mohammed A Al Barrak"
    assert roster_for("Grade 3 P")[-1] == "Adam Mohamed Tarek Elsabbagh"


def test_roster_names_unique_within_grade():
    for names in STUDENTS_BY_GRADE.values():
        assert len(set(names)) == len(names)


def test_rosters_cover_every_grade():
    assert set(STUDENTS_BY_GRADE) == set(GRADES)
    assert roster_for("Grade 9 Z") == []


def test_roster_for_returns_a_copy():
    roster_for("Grade 3 O").clear()
    assert len(roster_for("Grade 3 O")) == 26


def test_default_curriculum_topics():
    curriculum = default_curriculum()
    assert curriculum.grammar_topics[0] == "Singular & Plural Nouns"
    assert "Vocabulary in Context" in curriculum.reading_skills
    assert all(curriculum.feature_toggles.values())


def test_special_needs_only_counts_roster_members(store):
    curriculum = CurriculumStore(store)
    member = roster_for("Grade 3 O")[3]
    curriculum.upsert_profile(member, {"isSpecialNeeds": True})
    curriculum.upsert_profile("Someone Else", {"isSpecialNeeds": True})
    assert curriculum.special_needs("Grade 3 O") == {member}
    assert curriculum.special_needs("Grade 3 P") == set()


def test_upsert_keeps_other_profile_fields(store):
    curriculum = CurriculumStore(store)
    name = roster_for("Grade 3 P")[0]
    curriculum.upsert_profile(name, {"primaryLanguage": "Urdu"})
    profile = curriculum.complete_baseline(name, "Mastery")
    assert profile.primary_language == "Urdu"
    assert profile.baseline_taken is True
    assert profile.mastery_level == "Mastery"
