"""QuestionBank loading, catalog authoring checks, and gating smoke tests.

Validates that the packaged onboarding catalog loads, satisfies its
authoring rules, and gates the conditional sections on the answers that
drive them.

Expected counts (from data/onboarding.yaml):
    72 questions, 31 conditional, 12 sections
"""

import pytest

from bayb_interview.models.question import PredicateCondition, QuestionDefinition
from bayb_interview.question_bank import QuestionBank, find_authoring_errors, load_yaml
from bayb_interview.sequencer import compute_active_sequence

# Questions gated on hasPeriods alone
PERIOD_QIDS = [
    "q7", "q8", "q9", "q10", "q11", "q12", "q14",
    "q15_intro", "q15", "q16", "q17", "q20", "q21",
]
CHILDREN_QIDS = ["q23", "q24"]
SCHOOL_EMAIL_QIDS = ["q25", "q26"]
WORK_QIDS = ["q28", "q29", "q30", "q31", "q32", "q33", "q34", "q35", "q36", "q37"]

ALL_CONDITIONAL_QIDS = (
    PERIOD_QIDS
    + ["q13", "q13_instructions", "q18", "q19"]
    + CHILDREN_QIDS
    + SCHOOL_EMAIL_QIDS
    + WORK_QIDS
)


def _active_ids(bank, answers):
    return [q.id for q in compute_active_sequence(bank.questions, answers)]


def _q(qid, field, condition=None):
    data = {"id": qid, "prompt": f"{qid}?", "answer_field": field, "section": "Test"}
    if condition is not None:
        data["condition"] = condition
    return QuestionDefinition(**data)


def _gate(field, *values):
    return {"kind": "predicate", "when": [
        {"field": field, "op": "contains_any", "value": list(values)},
    ]}


# =====================================================================
# Loading tests
# =====================================================================


class TestLoading:

    def test_loads_all_questions(self, bank):
        """All 72 catalog entries load in file order."""
        assert len(bank) == 72, f"Expected 72 questions, got {len(bank)}"
        assert bank.questions[0].id == "intro"
        assert bank.questions[-1].id == "completion"

    def test_conditional_questions_match_gated_sections(self, bank):
        """Exactly the period, children, school-email and work questions are gated."""
        conditional = {q.id for q in bank if q.is_conditional}
        assert conditional == set(ALL_CONDITIONAL_QIDS)
        assert len(conditional) == 31

    def test_sections_in_catalog_order(self, bank):
        assert bank.sections[0] == "Introduction"
        assert bank.sections[1] == "Getting to Know You"
        assert bank.sections[-1] == "Welcome to BAYB"
        assert len(bank.sections) == 12

    def test_get_and_index_of(self, bank):
        q = bank.get("q6")
        assert q.answer_field == "hasPeriods"
        assert bank.questions[bank.index_of("q6")] is q

    def test_get_unknown_raises_key_error(self, bank):
        with pytest.raises(KeyError):
            bank.get("q999")

    def test_iteration_matches_questions(self, bank):
        assert list(bank) == list(bank.questions)

    def test_shared_conditions_parse_from_yaml_anchors(self, bank):
        """Aliased conditions load as equal, independent predicate models."""
        assert bank.get("q8").condition == bank.get("q7").condition
        assert bank.get("q37").condition == bank.get("q28").condition


class TestLoadErrors:

    def test_missing_file_raises(self, tmp_path):
        bank = QuestionBank(tmp_path / "absent.yaml")
        with pytest.raises(FileNotFoundError):
            bank.load()

    def test_non_list_catalog_raises(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("intro: hello\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a list"):
            QuestionBank(path).load()

    def test_invalid_entry_raises(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("- id: intro\n  prompt: Hi\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid question #0"):
            QuestionBank(path).load()

    def test_unknown_condition_kind_raises(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "- id: intro\n"
            "  prompt: Hi\n"
            "  answer_field: ready\n"
            "  section: Intro\n"
            "  condition: {kind: sometimes}\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError):
            QuestionBank(path).load()

    def test_duplicate_ids_raise(self):
        with pytest.raises(ValueError, match="Duplicate question id"):
            QuestionBank.from_questions([_q("intro", "ready"), _q("intro", "again")])

    def test_load_yaml_accepts_str_path(self, tmp_path):
        path = tmp_path / "x.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        assert load_yaml(str(path)) == [1, 2]


# =====================================================================
# Authoring checks
# =====================================================================


class TestAuthoringChecks:

    def test_packaged_catalog_has_no_authoring_errors(self, bank):
        assert find_authoring_errors(bank.questions) == []

    def test_answer_fields_are_unique(self, bank):
        fields = [q.answer_field for q in bank]
        assert len(fields) == len(set(fields))

    def test_conditions_only_reference_earlier_fields(self, bank):
        """Forward-only dependency holds for every conditional question."""
        seen = set()
        for q in bank:
            assert q.referenced_fields <= seen, (
                f"{q.id} references {q.referenced_fields - seen} before they are collected"
            )
            seen.add(q.answer_field)

    def test_reports_forward_reference(self):
        questions = [
            _q("intro", "ready"),
            _q("q1", "first", _gate("second", "yes")),
            _q("q2", "second"),
        ]
        errors = find_authoring_errors(questions)
        assert len(errors) == 1
        assert "q1" in errors[0] and "second" in errors[0]

    def test_reports_duplicate_id_and_field(self):
        questions = [_q("intro", "ready"), _q("q1", "name"), _q("q1", "name")]
        errors = find_authoring_errors(questions)
        assert any("duplicate question id 'q1'" in e for e in errors)
        assert any("answer field 'name'" in e for e in errors)

    def test_reports_bad_first_question(self):
        errors = find_authoring_errors([_q("q1", "name"), _q("intro", "ready")])
        assert any("first question" in e for e in errors)

    def test_reports_conditional_intro(self):
        questions = [_q("intro", "ready", _gate("ready", "yes"))]
        errors = find_authoring_errors(questions)
        assert any("first question" in e for e in errors)

    def test_reports_empty_catalog(self):
        assert find_authoring_errors([]) == ["catalog is empty"]


# =====================================================================
# Marker questions
# =====================================================================


class TestMarkers:

    @pytest.mark.parametrize("qid", ["intro", "completion", "q6_intro", "q15_intro", "q62_intro"])
    def test_markers_do_not_require_answer(self, bank, qid):
        assert bank.get(qid).requires_answer is False

    @pytest.mark.parametrize("qid", ["q1", "q6", "q13_instructions", "q62"])
    def test_regular_questions_require_answer(self, bank, qid):
        assert bank.get(qid).requires_answer is True


# =====================================================================
# Gating against the real catalog
# =====================================================================


class TestGating:

    def test_empty_answers_give_unconditional_questions(self, bank):
        ids = _active_ids(bank, {})
        assert ids[0] == "intro"
        assert ids == [q.id for q in bank if not q.is_conditional]
        assert not set(ids) & set(ALL_CONDITIONAL_QIDS)

    def test_has_periods_yes_activates_cycle_questions(self, bank):
        ids = _active_ids(bank, {"hasPeriods": "yes"})
        active_period = [qid for qid in ids if qid in PERIOD_QIDS]
        assert active_period == PERIOD_QIDS

    def test_has_periods_still_activates_cycle_questions(self, bank):
        ids = _active_ids(bank, {"hasPeriods": "I STILL do, unfortunately"})
        assert set(PERIOD_QIDS) <= set(ids)

    def test_has_periods_no_excludes_cycle_questions(self, bank):
        ids = _active_ids(bank, {"hasPeriods": "no"})
        assert not set(PERIOD_QIDS) & set(ids)

    def test_data_integration_needs_periods_and_tracker(self, bank):
        assert "q13" in _active_ids(bank, {"hasPeriods": "yes", "usesPeriodTracker": "yes"})
        assert "q13" not in _active_ids(bank, {"hasPeriods": "yes", "usesPeriodTracker": "no"})
        # "still" counts for the cycle questions but not for integration
        assert "q13" not in _active_ids(
            bank, {"hasPeriods": "still", "usesPeriodTracker": "yes"}
        )

    def test_integration_instructions_follow_wants_integration(self, bank):
        assert "q13_instructions" in _active_ids(bank, {"wantsDataIntegration": "Yeah sure"})
        assert "q13_instructions" not in _active_ids(bank, {"wantsDataIntegration": "nope"})

    def test_energy_phase_questions(self, bank):
        answers = {"hasPeriods": "yes", "energyChanges": "yes, definitely"}
        ids = _active_ids(bank, answers)
        assert ids.index("q17") < ids.index("q18") < ids.index("q19") < ids.index("q20")

        ids = _active_ids(bank, {"hasPeriods": "yes", "energyChanges": "not really"})
        assert "q18" not in ids and "q19" not in ids

    def test_children_no_kids_excludes_childcare(self, bank):
        ids = _active_ids(bank, {"children": "no kids"})
        assert not set(CHILDREN_QIDS + SCHOOL_EMAIL_QIDS) & set(ids)

    @pytest.mark.parametrize("answer", ["None", "I don't have any", "NO"])
    def test_children_negative_answers_exclude_childcare(self, bank, answer):
        assert not set(CHILDREN_QIDS) & set(_active_ids(bank, {"children": answer}))

    def test_children_present_includes_childcare(self, bank):
        ids = _active_ids(bank, {"children": "one, age 5"})
        assert set(CHILDREN_QIDS) <= set(ids)
        # School-email details still need the scan answer
        assert not set(SCHOOL_EMAIL_QIDS) & set(ids)

    def test_school_email_details(self, bank):
        ids = _active_ids(bank, {"children": "two girls", "scanSchoolEmails": "yes please"})
        assert set(SCHOOL_EMAIL_QIDS) <= set(ids)

        ids = _active_ids(bank, {"children": "none", "scanSchoolEmails": "yes"})
        assert not set(SCHOOL_EMAIL_QIDS) & set(ids)

    @pytest.mark.parametrize("answer", ["I have a job", "I WORK from home", "both"])
    def test_work_questions_active(self, bank, answer):
        ids = _active_ids(bank, {"workSituation": answer})
        assert [qid for qid in ids if qid in WORK_QIDS] == WORK_QIDS

    def test_work_questions_inactive(self, bank):
        ids = _active_ids(bank, {"workSituation": "I stay at home with the kids"})
        assert not set(WORK_QIDS) & set(ids)

    def test_conditions_are_predicate_conditions(self, bank):
        for qid in ALL_CONDITIONAL_QIDS:
            assert isinstance(bank.get(qid).condition, PredicateCondition)
