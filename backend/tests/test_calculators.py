"""Tests for the calculator formulas, banding and input validation."""

import math

import pytest

from api.calculator_models import InterpretationRange, Severity
from calculators import registry
from calculators.cha2ds2_vasc import Cha2ds2VascCalculator
from calculators.cv_risk import CombinedCvRiskCalculator, CvRiskCalculator
from calculators.cv_risk.criteria import HIGH, VERY_HIGH, risk_tier, treatment_recommendation
from calculators.das28 import Das28Calculator
from calculators.das28.handler import classify as das28_classify
from calculators.errors import InputDomainError, InvalidOptionError, MissingParametersError
from calculators.fib4 import Fib4Calculator
from calculators.fib4.handler import classify as fib4_classify
from calculators.framingham import FraminghamCalculator
from calculators.framingham import tables
from calculators.has_bled import HasBledCalculator
from calculators.registry import CalculatorRegistry, check_interpretation_ranges


def _all_false(calculator, **overrides):
    """Inputs with every boolean False, then the given overrides."""
    inputs = {p.id: False for p in calculator.parameters if p.type.value == "boolean"}
    inputs.update(overrides)
    return inputs


FRAMINGHAM_MALE_55 = {
    "age": 55,
    "gender": "male",
    "totalCholesterol": 5.0,
    "hdlCholesterol": 1.3,
    "systolicBP": 125,
    "onHypertensionTreatment": False,
    "smoker": False,
}


# --- Registry ---

class TestRegistry:
    def test_all_calculators_registered(self):
        assert set(registry.ids()) == {
            "has-bled", "cha2ds2-vasc", "fib-4", "das28",
            "framingham-risk", "cv-risk", "combined-cv-risk",
        }

    def test_filter_by_category_is_case_insensitive(self):
        ids = {c["id"] for c in registry.list_calculators("cardiology")}
        assert "has-bled" in ids
        assert "fib-4" not in ids

    def test_unknown_id_returns_none(self):
        assert registry.get("nope") is None
        assert "nope" not in registry

    def test_overwrite_logs_warning(self, caplog):
        reg = CalculatorRegistry()
        reg.register(HasBledCalculator())
        with caplog.at_level("WARNING"):
            reg.register(HasBledCalculator())
        assert len(reg) == 1
        assert "Overwriting" in caplog.text

    def test_definition_includes_form_metadata(self):
        definition = registry.get("fib-4").get_definition()
        assert [p.id for p in definition.parameters] == ["age", "ast", "alt", "platelets"]
        assert len(definition.screening_questions) == 2
        assert definition.references


class TestInterpretationRanges:
    def test_contiguous_point_ranges(self):
        assert check_interpretation_ranges(HasBledCalculator().interpretation_ranges) == []

    def test_contiguous_decimal_ranges(self):
        assert check_interpretation_ranges(Fib4Calculator().interpretation_ranges) == []

    def test_gap_reported(self):
        ranges = [
            InterpretationRange(min=0, max=1, interpretation="a"),
            InterpretationRange(min=3, max=5, interpretation="b"),
        ]
        warnings = check_interpretation_ranges(ranges)
        assert len(warnings) == 1
        assert "Gap" in warnings[0]

    def test_overlap_reported(self):
        ranges = [
            InterpretationRange(min=0, max=2, interpretation="a"),
            InterpretationRange(min=2, max=5, interpretation="b"),
        ]
        assert any("overlap" in w for w in check_interpretation_ranges(ranges))

    def test_inverted_bounds_reported(self):
        ranges = [InterpretationRange(min=5, max=1, interpretation="a")]
        assert any("above max" in w for w in check_interpretation_ranges(ranges))


# --- Validation ---

class TestValidation:
    def test_missing_parameters_named(self):
        calc = Fib4Calculator()
        with pytest.raises(MissingParametersError) as exc_info:
            calc.evaluate({"age": 50, "ast": 40})
        assert exc_info.value.missing_ids == ["alt", "platelets"]
        assert str(exc_info.value) == "Please fill in all required fields: ALT, Platelet Count"

    def test_blank_string_counts_as_missing(self):
        calc = Fib4Calculator()
        with pytest.raises(MissingParametersError) as exc_info:
            calc.evaluate({"age": 50, "ast": 40, "alt": "  ", "platelets": 150})
        assert exc_info.value.missing_ids == ["alt"]

    def test_false_is_an_answer(self):
        calc = HasBledCalculator()
        result = calc.evaluate(_all_false(calc, age=40))
        assert result.score == 0

    def test_detail_lists_ids_and_names(self):
        with pytest.raises(MissingParametersError) as exc_info:
            Das28Calculator().evaluate({})
        detail = exc_info.value.to_detail()
        assert detail["missing"][0] == {"id": "tenderJoints", "name": "Tender Joint Count"}
        assert len(detail["missing"]) == 4

    def test_non_numeric_rejected(self):
        with pytest.raises(InputDomainError):
            Fib4Calculator().evaluate({"age": "fifty", "ast": 40, "alt": 30, "platelets": 150})

    def test_invalid_select_option_rejected(self):
        calc = Cha2ds2VascCalculator()
        with pytest.raises(InvalidOptionError):
            calc.evaluate(_all_false(calc, age=50, gender="other"))

    @pytest.mark.parametrize("value", ["true", 1, "yes"])
    def test_non_boolean_criterion_rejected(self, value):
        calc = HasBledCalculator()
        with pytest.raises(InputDomainError) as exc_info:
            calc.evaluate(_all_false(calc, age=80, hypertension=value))
        assert "Hypertension must be true or false" in str(exc_info.value)

    def test_calculate_without_validation_reads_absent_as_zero(self):
        result = HasBledCalculator().calculate({})
        assert result.score == 0


# --- HAS-BLED ---

class TestHasBled:
    calc = HasBledCalculator()

    def test_no_risk_factors(self):
        result = self.calc.evaluate(_all_false(self.calc, age=40))
        assert result.score == 0
        assert result.severity == Severity.LOW

    def test_age_point_is_strictly_over_65(self):
        assert self.calc.evaluate(_all_false(self.calc, age=65)).score == 0
        assert self.calc.evaluate(_all_false(self.calc, age=66)).score == 1

    @pytest.mark.parametrize("score,severity", [
        (1, Severity.LOW),
        (2, Severity.MODERATE),
        (3, Severity.MODERATE),
        (4, Severity.HIGH),
    ])
    def test_banding(self, score, severity):
        criteria = ["hypertension", "renalDisease", "liverDisease", "strokeHistory"][:score]
        inputs = _all_false(self.calc, age=40, **{c: True for c in criteria})
        result = self.calc.evaluate(inputs)
        assert result.score == score
        assert result.severity == severity

    def test_maximum_score(self):
        inputs = {p.id: True for p in self.calc.parameters}
        inputs["age"] = 80
        result = self.calc.evaluate(inputs)
        assert result.score == 9
        assert result.severity == Severity.HIGH


# --- CHA2DS2-VASc ---

class TestCha2ds2Vasc:
    calc = Cha2ds2VascCalculator()

    def test_zero_is_low(self):
        result = self.calc.evaluate(_all_false(self.calc, age=50, gender="male"))
        assert result.score == 0
        assert result.severity == Severity.LOW

    def test_one_point_is_still_low(self):
        result = self.calc.evaluate(_all_false(self.calc, age=50, gender="female"))
        assert result.score == 1
        assert result.severity == Severity.LOW

    def test_age_bands(self):
        assert self.calc.evaluate(_all_false(self.calc, age=64, gender="male")).score == 0
        assert self.calc.evaluate(_all_false(self.calc, age=65, gender="male")).score == 1
        result = self.calc.evaluate(_all_false(self.calc, age=75, gender="male"))
        assert result.score == 2
        assert result.severity == Severity.HIGH

    def test_maximum_score(self):
        inputs = {p.id: True for p in self.calc.parameters}
        inputs.update(age=80, gender="female")
        assert self.calc.evaluate(inputs).score == 9


# --- FIB-4 ---

class TestFib4:
    calc = Fib4Calculator()

    def test_reference_example(self):
        result = self.calc.evaluate({"age": 50, "ast": 40, "alt": 30, "platelets": 150})
        expected = (50 * 40) / (150 * math.sqrt(30))
        assert result.score == round(expected, 2)
        assert result.severity == Severity.MODERATE

    def test_under_65_thresholds(self):
        assert fib4_classify(1.2, 50)[1] == Severity.LOW
        assert fib4_classify(3.0, 50)[1] == Severity.HIGH
        assert fib4_classify(1.30, 50)[1] == Severity.MODERATE
        assert fib4_classify(2.67, 50)[1] == Severity.MODERATE

    def test_65_and_over_thresholds(self):
        assert fib4_classify(1.9, 65)[1] == Severity.LOW
        assert fib4_classify(3.0, 70)[1] == Severity.MODERATE
        assert fib4_classify(4.1, 70)[1] == Severity.HIGH

    def test_classified_on_unrounded_index(self):
        # 1.2996 displays as 1.30 but is below the 1.30 cut-off
        assert fib4_classify(1.2996, 50)[1] == Severity.LOW

    def test_numeric_strings_accepted(self):
        result = self.calc.evaluate({"age": "50", "ast": "40", "alt": "30", "platelets": "150"})
        assert result.score == round((50 * 40) / (150 * math.sqrt(30)), 2)

    @pytest.mark.parametrize("field", ["alt", "platelets"])
    def test_zero_denominator_rejected(self, field):
        inputs = {"age": 50, "ast": 40, "alt": 30, "platelets": 150, field: 0}
        with pytest.raises(InputDomainError) as exc_info:
            self.calc.evaluate(inputs)
        assert "greater than 0" in str(exc_info.value)

    def test_negative_ast_rejected(self):
        with pytest.raises(InputDomainError):
            self.calc.evaluate({"age": 50, "ast": -1, "alt": 30, "platelets": 150})


# --- DAS28 ---

class TestDas28:
    calc = Das28Calculator()

    def test_reference_example(self):
        result = self.calc.evaluate(
            {"tenderJoints": 5, "swollenJoints": 3, "esr": 20, "patientGlobal": 50}
        )
        expected = 0.56 * math.sqrt(5) + 0.28 * math.sqrt(3) + 0.70 * math.log(20) + 0.014 * 50
        assert result.score == round(expected, 2)
        assert result.severity == Severity.MODERATE

    @pytest.mark.parametrize("score,interpretation", [
        (2.6, "Remission"),
        (2.61, "Low disease activity"),
        (3.2, "Low disease activity"),
        (3.21, "Moderate disease activity"),
        (5.1, "Moderate disease activity"),
        (5.11, "High disease activity"),
    ])
    def test_banding_upper_bounds_inclusive(self, score, interpretation):
        assert das28_classify(score)[0] == interpretation

    def test_zero_esr_rejected(self):
        with pytest.raises(InputDomainError):
            self.calc.evaluate({"tenderJoints": 5, "swollenJoints": 3, "esr": 0, "patientGlobal": 50})

    def test_negative_joint_count_rejected(self):
        with pytest.raises(InputDomainError):
            self.calc.evaluate({"tenderJoints": -1, "swollenJoints": 3, "esr": 20, "patientGlobal": 50})

    def test_screening_elimination_warns_without_blocking(self):
        screening = self.calc.screen({"rheumatoidArthritis": False, "esrAvailable": True})
        assert screening.eligible is False
        assert screening.all_answered is True
        assert len(screening.warnings) == 1

    def test_screening_unanswered(self):
        screening = self.calc.screen({})
        assert screening.eligible is True
        assert screening.unanswered == ["rheumatoidArthritis", "esrAvailable"]


# --- Framingham ---

class TestFramingham:
    calc = FraminghamCalculator()

    def test_point_sum_and_risk(self):
        result = self.calc.evaluate(FRAMINGHAM_MALE_55)
        assert result.additional_data["points"] == 10
        assert result.score == 6
        assert result.severity == Severity.MODERATE

    def test_high_points_saturate(self):
        inputs = dict(
            FRAMINGHAM_MALE_55,
            age=79, totalCholesterol=8.0, hdlCholesterol=0.8,
            systolicBP=170, onHypertensionTreatment=True, smoker=True,
        )
        result = self.calc.evaluate(inputs)
        assert result.additional_data["points"] == 20
        assert result.score == 30
        assert result.severity == Severity.VERY_HIGH

    def test_low_points_saturate(self):
        inputs = dict(FRAMINGHAM_MALE_55, age=20, totalCholesterol=3.0, hdlCholesterol=2.0, systolicBP=110)
        result = self.calc.evaluate(inputs)
        assert result.additional_data["points"] == -10
        assert result.score == 1

    def test_women_use_their_own_table(self):
        men = self.calc.evaluate(FRAMINGHAM_MALE_55).additional_data["points"]
        women = self.calc.evaluate(dict(FRAMINGHAM_MALE_55, gender="female")).additional_data["points"]
        assert men != women

    def test_risk_percent_saturates_at_table_ends(self):
        assert tables.risk_percent(tables.MEN, -50) == 1
        assert tables.risk_percent(tables.MEN, 50) == 30
        assert tables.risk_percent(tables.WOMEN, 0) == 1
        assert tables.risk_percent(tables.WOMEN, 40) == 30

    def test_age_band_below_first_band_uses_first(self):
        assert tables.age_band_index(10) == 0
        assert tables.age_band_index(90) == len(tables.AGE_BAND_STARTS) - 1


# --- CV risk ---

class TestCvRisk:
    calc = CvRiskCalculator()

    def _inputs(self, **overrides):
        inputs = _all_false(self.calc, age=35, egfr=90)
        inputs.update(overrides)
        return inputs

    def test_no_criteria_needs_framingham(self):
        result = self.calc.evaluate(self._inputs())
        assert result.score == 0
        assert result.additional_data["risk_factors"] == []

    def test_established_cvd_is_very_high(self):
        result = self.calc.evaluate(self._inputs(cad=True))
        assert result.score == 2
        assert result.severity == Severity.VERY_HIGH
        assert result.additional_data["ldl_target"] == "<1.4 mmol/L"

    def test_t2dm_with_age_over_40_is_high(self):
        assert self.calc.evaluate(self._inputs(dm2=True, age=41)).score == 1
        assert self.calc.evaluate(self._inputs(dm2=True, age=40)).score == 0

    def test_first_match_wins(self):
        # Severe CKD is checked before the T2DM high-risk criteria
        inputs = self._inputs(dm2=True, smoking=True, egfr=20)
        assert risk_tier(inputs) == VERY_HIGH
        assert "T2DM with risk factors" in self.calc.evaluate(inputs).additional_data["risk_factors"]

    @pytest.mark.parametrize("overrides", [
        {"tcOver7_5": True},
        {"ldlOver5_0": True},
        {"egfr": 45},
        {"carotidAtheroma": True},
    ])
    def test_high_criteria(self, overrides):
        assert risk_tier(self._inputs(**overrides)) == HIGH

    def test_egfr_boundaries(self):
        assert risk_tier(self._inputs(egfr=29.9)) == VERY_HIGH
        assert risk_tier(self._inputs(egfr=30)) == HIGH
        assert risk_tier(self._inputs(egfr=60)) is None


class TestCombinedCvRisk:
    calc = CombinedCvRiskCalculator()

    def _inputs(self, **overrides):
        base = _all_false(self.calc, egfr=90, currentLDL=2.8)
        base.update(FRAMINGHAM_MALE_55)
        base.update(overrides)
        return base

    def test_very_high_uses_nominal_risk(self):
        result = self.calc.evaluate(self._inputs(pad=True, currentLDL=1.0))
        assert result.score == 30
        assert result.severity == Severity.VERY_HIGH
        assert result.additional_data["treatment_recommendation"] == "Lifestyle"
        assert result.additional_data["is_very_high_risk"] is True
        assert "framingham_points" not in result.additional_data

    def test_high_uses_nominal_risk(self):
        result = self.calc.evaluate(self._inputs(ldlOver5_0=True))
        assert result.score == 15
        assert result.additional_data["ldl_target"] == "<1.8 mmol/L"
        assert result.additional_data["treatment_recommendation"] == "Lifestyle + statin"

    def test_falls_through_to_framingham(self):
        result = self.calc.evaluate(self._inputs())
        assert result.score == 6
        assert result.severity == Severity.MODERATE
        assert result.interpretation == "Moderate cardiovascular risk"
        assert result.additional_data["needs_framingham"] is True
        assert result.additional_data["framingham_points"] == 10
        assert result.additional_data["treatment_recommendation"] == "Lifestyle ± statin"

    def test_parameters_are_unique(self):
        ids = [p.id for p in self.calc.parameters]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("cls,ldl,expected", [
        ("low", 2.9, "Lifestyle"),
        ("low", 4.0, "Lifestyle ± statin"),
        ("low", 5.0, "Lifestyle + statin"),
        ("moderate", 2.5, "Lifestyle"),
        ("moderate", 2.9, "Lifestyle ± statin"),
        ("high", 1.7, "Lifestyle"),
        ("high", 1.8, "Lifestyle + statin"),
        ("very-high", 1.4, "Lifestyle + statin"),
    ])
    def test_treatment_matrix(self, cls, ldl, expected):
        assert treatment_recommendation(cls, ldl) == expected
