import logging

import pytest

from modules.onboarding import allowlist


def test_verified_email_matches_case_insensitively(roster_file):
    result = allowlist.verify_paid_learner("  jane.doe@example.COM ", path=roster_file)

    assert result.is_verified
    assert result.learner is not None
    assert result.learner.name == "Jane Doe"
    assert result.learner.program == "Data Science"
    assert result.learner.batch == "2025-A"


def test_optional_fields_default_to_empty(roster_file):
    result = allowlist.verify_paid_learner("ravi@example.org", path=roster_file)

    assert result.is_verified
    assert result.learner.program == ""
    assert result.learner.batch == ""


def test_unknown_email_is_not_verified(roster_file):
    result = allowlist.verify_paid_learner("stranger@example.com", path=roster_file)

    assert not result.is_verified
    assert result.learner is None


def test_blank_email_is_not_verified(roster_file):
    assert not allowlist.verify_paid_learner("   ", path=roster_file).is_verified


def test_missing_roster_fails_closed(tmp_path, caplog):
    caplog.set_level(logging.ERROR, logger="learnerbot.onboarding.allowlist")

    result = allowlist.verify_paid_learner("jane.doe@example.com", path=tmp_path / "nope.json")

    assert not result.is_verified
    assert any("roster not found" in record.getMessage() for record in caplog.records)


def test_malformed_roster_fails_closed(tmp_path):
    path = tmp_path / "paidLearners.json"
    path.write_text("{not json", encoding="utf-8")

    assert not allowlist.verify_paid_learner("jane.doe@example.com", path=path).is_verified


def test_load_roster_rejects_non_list(tmp_path):
    path = tmp_path / "paidLearners.json"
    path.write_text('{"email": "x@example.com"}', encoding="utf-8")

    with pytest.raises(ValueError):
        allowlist.load_roster(path)


def test_roster_is_reread_on_each_call(roster_file):
    assert not allowlist.verify_paid_learner("new@example.com", path=roster_file).is_verified

    roster_file.write_text('[{"name": "New", "email": "new@example.com"}]', encoding="utf-8")

    assert allowlist.verify_paid_learner("new@example.com", path=roster_file).is_verified


def test_default_path_comes_from_config(roster_file, monkeypatch):
    from shared import config

    monkeypatch.setattr(config, "get_paid_learners_path", lambda: roster_file)

    assert allowlist.verify_paid_learner("ravi@example.org").is_verified


def test_verification_logs_masked_email(roster_file, caplog):
    caplog.set_level(logging.INFO, logger="learnerbot.onboarding.allowlist")

    allowlist.verify_paid_learner("jane.doe@example.com", path=roster_file)

    emails = [getattr(record, "email", "") for record in caplog.records]
    assert emails and all("jane.doe" not in value for value in emails)
