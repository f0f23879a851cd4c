"""
Tests: field validation rules and month normalisation.

Pure functions — no database rows are written.
"""

import pytest

from command_center.core.exceptions import ValidationError
from command_center.services.validation import clean, month_param, normalize_month, require_object, text, validate


class TestNormalizeMonth:
    @pytest.mark.parametrize("raw", ["2025-01", "Jan 2025", "January 2025", "2025-01-15", " 2025-01 "])
    def test_accepted_formats(self, raw):
        assert normalize_month(raw) == "2025-01"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            normalize_month("sometime")

    def test_month_param_raises_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            month_param("13/2025")
        assert "month" in exc.value.details


class TestProject:
    def test_defaults_filled_on_create(self):
        fields = validate("project", {"name": "Alpha"})
        assert fields == {"name": "Alpha", "budget": 0, "actual_cost": 0, "cogs": 0, "status": "On Track"}

    def test_name_required(self):
        with pytest.raises(ValidationError) as exc:
            validate("project", {"name": "   "})
        assert exc.value.details["name"] == "Project name is required"

    def test_name_too_long(self):
        with pytest.raises(ValidationError) as exc:
            validate("project", {"name": "x" * 201})
        assert "name" in exc.value.details

    def test_negative_budget_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate("project", {"name": "Alpha", "budget": -1})
        assert "budget" in exc.value.details

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate("project", {"name": "Alpha", "status": "Done"})
        assert "status" in exc.value.details

    def test_all_field_errors_reported_together(self):
        with pytest.raises(ValidationError) as exc:
            validate("project", {"name": "", "budget": "abc", "status": "Nope"})
        assert set(exc.value.details) == {"name", "budget", "status"}

    def test_partial_checks_only_present_keys(self):
        assert validate("project", {"status": "At Risk"}, partial=True) == {"status": "At Risk"}


class TestAllocation:
    def test_percentage_range(self):
        base = {"team_member_id": 1, "project_id": 1, "month": "2025-01"}
        assert validate("allocation", {**base, "allocation_percentage": 100})["allocation_percentage"] == 100
        with pytest.raises(ValidationError) as exc:
            validate("allocation", {**base, "allocation_percentage": 101})
        assert "allocation_percentage" in exc.value.details

    def test_month_normalised_and_cost_type_defaults(self):
        fields = validate("allocation", {
            "team_member_id": 1, "month": "Mar 2025", "allocation_percentage": 50,
        })
        assert fields["month"] == "2025-03"
        assert fields["cost_type"] == "hpp"

    def test_fractional_percentage_rejected(self):
        with pytest.raises(ValidationError):
            validate("allocation", {"team_member_id": 1, "month": "2025-01", "allocation_percentage": 50.5})

    def test_boolean_is_not_a_number(self):
        with pytest.raises(ValidationError):
            validate("allocation", {"team_member_id": 1, "month": "2025-01", "allocation_percentage": True})


class TestLead:
    def test_defaults(self):
        fields = validate("lead", {"company_name": "Acme", "project_name": "Portal"})
        assert fields["stage"] == "gathering_requirement"
        assert fields["source"] == "other"
        assert fields["probability"] == 0
        assert fields["contact_email"] is None

    def test_invalid_email(self):
        with pytest.raises(ValidationError) as exc:
            validate("lead", {"company_name": "Acme", "project_name": "Portal", "contact_email": "not-an-email"})
        assert exc.value.details["contact_email"] == "Invalid email format"

    def test_probability_over_100(self):
        with pytest.raises(ValidationError) as exc:
            validate("lead", {"company_name": "Acme", "project_name": "Portal", "probability": 120})
        assert "probability" in exc.value.details

    def test_bad_close_date(self):
        with pytest.raises(ValidationError) as exc:
            validate("lead", {"company_name": "Acme", "project_name": "Portal", "expected_close_date": "soon"})
        assert "expected_close_date" in exc.value.details


class TestOtherRecords:
    def test_survey_data_scores_bounded(self):
        with pytest.raises(ValidationError) as exc:
            validate("survey_data", {"date": "2025-01-31", "csat": 101})
        assert "csat" in exc.value.details

    def test_daily_task_duration_bounded(self):
        with pytest.raises(ValidationError) as exc:
            validate("daily_task", {"team_member_id": 1, "task_date": "2025-01-02", "task_name": "x", "duration": 25})
        assert "duration" in exc.value.details

    def test_team_member_employment_status(self):
        assert validate("team_member", {"name": "A", "employment_status": "Vendor"})["employment_status"] == "Vendor"
        with pytest.raises(ValidationError):
            validate("team_member", {"name": "A", "employment_status": "Intern"})

    def test_team_member_active_from_string(self):
        assert validate("team_member", {"name": "A", "is_active": "false"})["is_active"] is False

    def test_opex_consumption_quarter(self):
        with pytest.raises(ValidationError) as exc:
            validate("opex_consumption", {
                "year": 2025, "quarter": "Q5", "allocation_description": "Cloud", "amount": 10,
            })
        assert "quarter" in exc.value.details

    def test_monthly_financial_year_range(self):
        with pytest.raises(ValidationError) as exc:
            validate("monthly_financial", {"month": "Jan", "year": 2019})
        assert "year" in exc.value.details

    def test_csat_score_range(self):
        assert validate("csat_response", {"csat_score": 5})["csat_score"] == 5
        with pytest.raises(ValidationError):
            validate("csat_response", {"csat_score": 0})

    def test_lead_history_requires_changed_by(self):
        with pytest.raises(ValidationError) as exc:
            validate("lead_history", {"lead_id": 1, "new_stage": "proposal"})
        assert "changed_by" in exc.value.details

    def test_survey_data_requires_both_scores(self):
        with pytest.raises(ValidationError) as exc:
            validate("survey_data", {"date": "2025-01-31", "csat": 90})
        assert set(exc.value.details) == {"esat"}

    def test_project_revenue_accepts_decimals(self):
        fields = validate("project_revenue", {"project_id": 1, "amount": 1250.75, "date": "2025-01-31"})
        assert fields["amount"] == 1250.75
        with pytest.raises(ValidationError):
            validate("project_revenue", {"project_id": 1, "amount": -0.5, "date": "2025-01-31"})

    def test_lead_proposal_date(self):
        fields = validate("lead", {"company_name": "Acme", "project_name": "Portal", "proposal_date": "2025-03-01"})
        assert fields["proposal_date"].isoformat() == "2025-03-01"
        assert validate("lead", {"company_name": "Acme", "project_name": "Portal"})["proposal_date"] is None
        with pytest.raises(ValidationError) as exc:
            validate("lead", {"company_name": "Acme", "project_name": "Portal", "proposal_date": "next week"})
        assert "proposal_date" in exc.value.details


class TestNonObjectInput:
    @pytest.mark.parametrize("payload", [["a"], "text", 42])
    def test_non_dict_rejected(self, payload):
        with pytest.raises(ValidationError) as exc:
            validate("project", payload)
        assert exc.value.details == {"body": "must be an object"}

    def test_clean_reports_field(self):
        with pytest.raises(ValidationError) as exc:
            clean(text("Name", 5, required=True), None, "name")
        assert exc.value.details == {"name": "Name is required"}

    def test_require_object(self):
        assert require_object({"a": 1}, "items[0]") == {"a": 1}
        with pytest.raises(ValidationError) as exc:
            require_object("a", "items[0]")
        assert exc.value.details == {"items[0]": "must be an object"}
