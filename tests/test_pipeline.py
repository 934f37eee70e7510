from __future__ import annotations

import pytest

from swagify.base import DESCRIPTION_PLACEHOLDER, ResponseCode, UnparseableStatusCode, UnrecognizedResponseForm
from swagify.config import SwagifyConfig
from swagify.pipeline import SwagifyPipeline
from swagify.syntax import Annotation, identifier, string_literal
from tests.builders import attribute, call, new, returns, status, swagger


@pytest.fixture
def pipeline() -> SwagifyPipeline:
    return SwagifyPipeline()


def declared_of(pipeline, annotations):
    return pipeline.extractor.extract_declared(annotations)


def test_type_overwrite(pipeline):
    annotations = (swagger("OK", "The user", "LegacyDto"),)
    result = pipeline.run(returns(call("Ok", new("UserDto"))), annotations)

    entry = declared_of(pipeline, result)[ResponseCode.OK]
    assert entry.payload_type == "UserDto"
    assert entry.description == "The user"


def test_new_conflict_entry_uses_placeholder_without_type(pipeline):
    annotations = (swagger("OK", "Found", "UserDto"),)
    result = pipeline.run(returns(call("Ok", new("UserDto")), call("Conflict")), annotations)

    declared = declared_of(pipeline, result)
    assert list(declared) == [ResponseCode.OK, ResponseCode.Conflict]
    assert declared[ResponseCode.Conflict].description == DESCRIPTION_PLACEHOLDER
    assert declared[ResponseCode.Conflict].payload_type is None


def test_in_sync_method_needs_no_edit(pipeline):
    annotations = (attribute("HttpGet"), swagger("OK", "Found", "UserDto"))
    assert pipeline.run(returns(call("Ok", new("UserDto"))), annotations) is None


def test_idempotent(pipeline):
    body = returns(call("Ok", new("UserDto")), call("StatusCode", status("Conflict")), identifier("x"))
    first = pipeline.run(body, (attribute("HttpPost"), swagger("OK", "Found", "LegacyDto")))
    assert first is not None
    assert pipeline.run(body, first) is None


def test_descriptions_are_preserved(pipeline):
    annotations = (swagger("OK", "Hand written", "LegacyDto"), swagger("NotFound", "Also hand written"))
    result = pipeline.run(returns(call("Ok", new("UserDto")), call("Conflict")), annotations)

    declared = declared_of(pipeline, result)
    assert declared[ResponseCode.OK].description == "Hand written"
    assert declared[ResponseCode.NotFound].description == "Also hand written"


def test_existing_order_is_preserved(pipeline):
    annotations = (
        swagger("NotFound", "Missing"),
        attribute("HttpGet"),
        swagger("OK", "Found", "LegacyDto"),
    )
    result = pipeline.run(returns(call("Ok", new("UserDto")), call("BadRequest")), annotations)

    assert [a.name for a in result] == ["SwaggerResponse", "HttpGet", "SwaggerResponse", "SwaggerResponse"]
    assert list(declared_of(pipeline, result)) == [
        ResponseCode.NotFound, ResponseCode.OK, ResponseCode.BadRequest,
    ]


def test_unrecognized_helper_produces_no_output(pipeline):
    annotations = (swagger("OK", "Found"),)
    with pytest.raises(UnrecognizedResponseForm, match="The Teapot return is not supported"):
        pipeline.run(returns(call("Ok"), call("Teapot")), annotations)


def test_unreadable_declared_code_produces_no_output(pipeline):
    annotations = (Annotation("SwaggerResponse", (string_literal("OK"), string_literal("Found"))),)
    with pytest.raises(UnparseableStatusCode):
        pipeline.run(returns(call("Ok")), annotations)


def test_result_reports_added_and_retyped(pipeline):
    result = pipeline.reconcile_method(
        returns(call("Ok", new("UserDto")), call("Conflict")),
        (swagger("OK", "Found", "LegacyDto"),),
    )
    assert result.changed
    assert result.added == ["Conflict"]
    assert result.retyped == ["OK"]

    report = result.to_dict()
    assert report["responses"][1] == {
        "code": "Conflict", "status": 409, "description": DESCRIPTION_PLACEHOLDER, "type": None,
    }


def test_unchanged_result_has_no_annotations(pipeline):
    result = pipeline.reconcile_method(returns(call("NotFound")), (swagger("NotFound", "Missing"),))
    assert not result.changed
    assert result.annotations is None


def test_config_drives_names():
    config = SwagifyConfig(annotation_name="ProducesResponse", description_placeholder="Describe me")
    pipeline = SwagifyPipeline(config)
    result = pipeline.run(returns(call("Conflict")), (swagger("OK", "Ignored", name="SwaggerResponse"),))

    assert result[0].name == "SwaggerResponse"
    assert result[1].name == "ProducesResponse"
    assert result[1].arguments[1].name == "Describe me"
