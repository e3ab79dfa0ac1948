from __future__ import annotations

import json

import pytest

from resident_import.models import ImportStatus
from resident_import.services.importer import (
    InputMissingError,
    MalformedInputError,
    NoValidRowsError,
    PersistenceError,
    import_csv,
)

"""JSON shapes of import outcomes and terminal errors."""

FEEDBACK_KEYS = {
    "totalRows",
    "validRows",
    "skippedRows",
    "detectedColumns",
    "columnMapping",
    "skippedDetails",
}
OUTCOME_KEYS = FEEDBACK_KEYS | {
    "status",
    "ownerId",
    "persistedCount",
    "persistedRecords",
    "aliasVersion",
    "elapsedSeconds",
}
MAPPING_KEYS = {"firstName", "lastName", "fullName", "id", "email", "room"}


def test_outcome_dict_keys(example_csv):
    data = import_csv(example_csv, "ra-1").to_dict()
    assert set(data) == OUTCOME_KEYS
    assert set(data["columnMapping"]) == MAPPING_KEYS
    assert set(data["skippedDetails"][0]) == {"row", "reason", "originalRow"}
    assert data["skippedDetails"][0]["originalRow"]["Last Name"] == "Smith"
    json.dumps(data)


def test_no_valid_rows_error_dict():
    with pytest.raises(NoValidRowsError) as e:
        import_csv("Name\nJane\n", "ra-1")
    data = e.value.to_dict()
    assert set(data) == {"error", "errorType", "stage", "feedback", "suggestion"}
    assert set(data["feedback"]) == FEEDBACK_KEYS


def test_malformed_input_error_dict():
    with pytest.raises(MalformedInputError) as e:
        import_csv('Name,ID\n"Jane,1\n', "ra-1")
    data = e.value.to_dict()
    assert set(data) == {"error", "errorType", "stage", "details"}
    assert data["errorType"] == "MALFORMED_INPUT"
    assert data["details"][0]["type"] == "ParserError"


def test_input_missing_error_dict():
    assert InputMissingError().to_dict() == {
        "error": "No file provided",
        "errorType": "INPUT_MISSING",
        "stage": "parsing",
    }


def test_errors_report_the_stage_they_stopped_in(fake_cursor, example_csv):
    with pytest.raises(MalformedInputError) as malformed:
        import_csv("Name,ID\nJane\n", "ra-1")
    with pytest.raises(NoValidRowsError) as no_rows:
        import_csv("Name,ID\n,\n", "ra-1")
    fake_cursor.fail_on_upsert = RuntimeError("deadlock detected")
    with pytest.raises(PersistenceError) as persist:
        import_csv(example_csv, "ra-1", fake_cursor)

    assert malformed.value.stage is ImportStatus.PARSING
    assert no_rows.value.stage is ImportStatus.NORMALIZING
    assert persist.value.stage is ImportStatus.PERSISTING
    assert persist.value.to_dict()["stage"] == "persisting"
    assert persist.value.outcome.status is ImportStatus.REJECTED
