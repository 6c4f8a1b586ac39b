"""Tests for the algorithm traversal engine."""

import pytest

from algorithms import registry
from algorithms.definitions import COMBINED_CV_RISK_ALGORITHM, CV_RISK_ALGORITHM
from algorithms.errors import (
    MissingParametersError,
    NavigationHistoryError,
    NoMatchingBranchError,
    TraversalError,
    UnknownNodeError,
)
from algorithms.navigator import (
    DECISION_KEY,
    AlgorithmNavigator,
    is_terminal,
    next_node,
    start,
    traverse,
)
from api.algorithm_models import AlgorithmDefinition, AlgorithmNode, Branch, NodeType
from api.calculator_models import ParameterDefinition, ParameterType
from api.condition_models import always, eq, gt
from calculators.errors import InputDomainError
from storage.parameter_store import ParameterStore


def _choice_algorithm() -> AlgorithmDefinition:
    """Decision node without parameters, then a numeric question."""
    nodes = [
        AlgorithmNode(
            id="choose",
            type=NodeType.DECISION,
            content="Which pathway?",
            branches=[
                Branch(condition_id="fast", label="Fast track", condition=always(), next_node_id="done-fast"),
                Branch(condition_id="full", label="Full workup", condition=always(), next_node_id="score"),
            ],
        ),
        AlgorithmNode(
            id="score",
            type=NodeType.QUESTION,
            content="Enter the score",
            parameters=[ParameterDefinition(id="score", name="Score", type=ParameterType.NUMBER, min_value=0)],
            branches=[
                Branch(condition_id="over-ten", label=">10", condition=gt("score", 10), next_node_id="done-high"),
                Branch(condition_id="is-five", label="5", condition=eq("score", 5), next_node_id="done-low"),
            ],
        ),
        AlgorithmNode(id="done-fast", type=NodeType.RESULT, content="Fast"),
        AlgorithmNode(id="done-high", type=NodeType.RESULT, content="High"),
        AlgorithmNode(id="done-low", type=NodeType.RESULT, content="Low"),
    ]
    return AlgorithmDefinition(
        id="choice",
        name="Choice",
        description="",
        category="Test",
        start_node_id="choose",
        nodes={n.id: n for n in nodes},
    )


@pytest.fixture
def store() -> ParameterStore:
    return ParameterStore()


class TestPureFunctions:
    def test_start_and_terminal(self):
        assert start(CV_RISK_ALGORITHM) == "initial-assessment"
        assert not is_terminal(CV_RISK_ALGORITHM, "initial-assessment")
        assert is_terminal(CV_RISK_ALGORITHM, "secondary-prevention")

    def test_next_node_first_match(self):
        assert next_node(CV_RISK_ALGORITHM, "initial-assessment", {"established-cvd": True}) == "secondary-prevention"
        assert next_node(CV_RISK_ALGORITHM, "initial-assessment", {"established-cvd": False}) == "primary-prevention"

    @pytest.mark.parametrize("risk,target", [
        (4.99, "low-risk"),
        (5, "borderline-risk"),
        (7.5, "intermediate-risk"),
        ("19.9", "intermediate-risk"),
        (20, "high-risk"),
    ])
    def test_numeric_branch_boundaries(self, risk, target):
        assert next_node(CV_RISK_ALGORITHM, "primary-prevention", {"ascvd-risk": risk}) == target

    def test_missing_parameter_reported_by_name(self):
        with pytest.raises(MissingParametersError) as exc_info:
            next_node(CV_RISK_ALGORITHM, "primary-prevention", {"ascvd-risk": ""})
        assert exc_info.value.missing_ids == ["ascvd-risk"]
        assert "ASCVD Risk Score" in str(exc_info.value)

    def test_missing_reports_exactly_blank_parameters(self):
        inputs = {"cad": False, "cerebroVD": None}
        with pytest.raises(MissingParametersError) as exc_info:
            next_node(COMBINED_CV_RISK_ALGORITHM, "initial-assessment", inputs)
        assert exc_info.value.missing_ids == ["cerebroVD", "pad"]

    def test_no_matching_branch(self):
        # 7 is neither over ten nor exactly five
        with pytest.raises(NoMatchingBranchError) as exc_info:
            next_node(_choice_algorithm(), "score", {"score": 7})
        assert str(exc_info.value) == "Could not determine the next step. Please check your inputs."
        assert exc_info.value.node_id == "score"

    @pytest.mark.parametrize("value", ["maybe", "true", 1])
    def test_non_boolean_answer_rejected(self, value):
        with pytest.raises(InputDomainError) as exc_info:
            next_node(CV_RISK_ALGORITHM, "initial-assessment", {"established-cvd": value})
        assert "must be true or false" in str(exc_info.value)

    def test_domain_violation(self):
        with pytest.raises(InputDomainError):
            next_node(CV_RISK_ALGORITHM, "primary-prevention", {"ascvd-risk": -3})

    def test_result_node_has_no_next(self):
        with pytest.raises(TraversalError):
            next_node(CV_RISK_ALGORITHM, "low-risk", {})

    def test_unknown_node(self):
        with pytest.raises(UnknownNodeError) as exc_info:
            next_node(CV_RISK_ALGORITHM, "nowhere", {})
        assert exc_info.value.node_id == "nowhere"
        with pytest.raises(KeyError):
            CV_RISK_ALGORITHM.node("nowhere")
        assert CV_RISK_ALGORITHM.node("low-risk").type == NodeType.RESULT

    def test_decision_node_reads_choice(self):
        algorithm = _choice_algorithm()
        assert next_node(algorithm, "choose", {DECISION_KEY: "full"}) == "score"
        with pytest.raises(MissingParametersError) as exc_info:
            next_node(algorithm, "choose", {})
        assert exc_info.value.missing_ids == [DECISION_KEY]
        with pytest.raises(NoMatchingBranchError):
            next_node(algorithm, "choose", {DECISION_KEY: "other"})


class TestTraverse:
    def test_full_walk(self):
        path, inputs = traverse(CV_RISK_ALGORITHM, {
            "established-cvd": False, "ascvd-risk": "10", "risk-decision": "cac", "cac-score": "zero",
        })
        assert path == ["initial-assessment", "primary-prevention", "intermediate-risk", "cac-scoring", "cac-zero"]
        assert inputs["ascvd-risk"] == 10.0

    def test_idempotent(self):
        inputs = {"established-cvd": False, "ascvd-risk": 6, "risk-enhancers": True}
        assert traverse(CV_RISK_ALGORITHM, inputs) == traverse(CV_RISK_ALGORITHM, inputs)

    def test_error_carries_partial_path(self):
        with pytest.raises(MissingParametersError) as exc_info:
            traverse(CV_RISK_ALGORITHM, {"established-cvd": False})
        assert exc_info.value.path == ["initial-assessment", "primary-prevention"]

    def test_combined_framingham_route(self):
        inputs = {
            "cad": False, "cerebroVD": False, "pad": False,
            "dm1": False, "dm2": False,
            "tcOver7_5": False, "ldlOver5_0": False, "egfr": 90,
            "coronaryAtheroma": False, "carotidAtheroma": False, "lowerLimbAtheroma": False,
            "age": 55, "gender": "male", "totalCholesterol": 5.0, "hdlCholesterol": 1.3,
            "systolicBP": 125, "onHypertensionTreatment": False, "smoker": False,
            "framinghamRisk": 6, "currentLDL": 2.8,
        }
        path, _ = traverse(COMBINED_CV_RISK_ALGORITHM, inputs)
        assert path[-2:] == ["framingham-result", "moderate-risk-treatment"]

    def test_combined_severe_ckd(self):
        inputs = {
            "cad": False, "cerebroVD": False, "pad": False, "dm1": False, "dm2": False,
            "tcOver7_5": False, "ldlOver5_0": False, "egfr": 25,
        }
        path, _ = traverse(COMBINED_CV_RISK_ALGORITHM, inputs)
        assert path[-1] == "very-high-risk"


class TestNavigator:
    def test_initial_state(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        state = nav.state()
        assert state.path == ["initial-assessment"]
        assert state.can_go_back is False
        assert state.completed is False
        assert state.result is None

    def test_walk_to_result(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": False})
        nav.submit({"ascvd-risk": 3})
        assert nav.completed
        result = nav.result()
        assert result.path == ["initial-assessment", "primary-prevention", "low-risk"]
        assert result.final_node.id == "low-risk"
        assert result.inputs == {"established-cvd": False, "ascvd-risk": 3.0}

    def test_rejected_step_leaves_state_unchanged(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": False})
        with pytest.raises(MissingParametersError):
            nav.submit({})
        assert nav.current_node_id == "primary-prevention"
        assert nav.inputs == {"established-cvd": False}

    def test_back_keeps_inputs(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": False})
        nav.submit({"ascvd-risk": 6})
        nav.back()
        assert nav.current_node_id == "primary-prevention"
        assert nav.path == ["initial-assessment", "primary-prevention"]
        assert nav.prefill() == {"ascvd-risk": 6.0}

    def test_back_then_forward_reaches_same_node(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": False})
        first = nav.submit({"ascvd-risk": 12})
        nav.back()
        assert nav.submit({"ascvd-risk": 12}) == first

    def test_back_at_start_raises(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        with pytest.raises(NavigationHistoryError):
            nav.back()

    def test_submit_after_completion_raises(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": True})
        with pytest.raises(TraversalError):
            nav.submit({})

    def test_reset(self):
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
        nav.submit({"established-cvd": True})
        nav.reset()
        assert nav.path == ["initial-assessment"]
        assert nav.inputs == {}

    def test_prefill_prefers_entered_values(self, store):
        store.add("ascvd-risk", "ASCVD Risk Score", 15.0)
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM, store=store)
        nav.submit({"established-cvd": False})
        assert nav.prefill() == {"ascvd-risk": 15.0}
        nav.submit({"ascvd-risk": 3})
        nav.back()
        assert nav.prefill() == {"ascvd-risk": 3.0}

    def test_stored_value_used_when_not_entered(self, store):
        store.add("established-cvd", "Established CVD", True)
        nav = AlgorithmNavigator(CV_RISK_ALGORITHM, store=store)
        assert nav.submit({}) == "secondary-prevention"

    def test_decision_choice_remembered(self):
        nav = AlgorithmNavigator(_choice_algorithm())
        nav.submit({DECISION_KEY: "full"})
        assert nav.current_node_id == "score"
        assert DECISION_KEY not in nav.inputs
        nav.back()
        assert nav.prefill() == {DECISION_KEY: "full"}

    def test_decision_then_no_match(self):
        nav = AlgorithmNavigator(_choice_algorithm())
        nav.submit({DECISION_KEY: "full"})
        with pytest.raises(NoMatchingBranchError):
            nav.submit({"score": 7})
        assert nav.submit({"score": "5"}) == "done-low"

    def test_replay_same_sequence_same_result(self):
        steps = [{"established-cvd": False}, {"ascvd-risk": 8}, {"risk-decision": "enhancers"}]
        outcomes = []
        for _ in range(2):
            nav = AlgorithmNavigator(CV_RISK_ALGORITHM)
            for step in steps:
                nav.submit(step)
            outcomes.append((nav.path, nav.current_node_id))
        assert outcomes[0] == outcomes[1]
        assert outcomes[0][1] == "intermediate-with-enhancers"


class TestRegistry:
    def test_builtin_algorithms_registered(self):
        assert set(registry.ids()) == {"cv-risk", "combined-cv-risk"}

    def test_list_by_category(self):
        assert len(registry.list_algorithms("cardiology")) == 2
        assert registry.list_algorithms("neurology") == []
