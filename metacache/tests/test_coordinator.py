"""
End-to-end tests for a validation pass.

Coverage matrix:

  no cache element                 -> warning "Cached metdata not present."   + source
  cache without payload            -> error   "Metadata not found ..."        + source
  cache with invalid JSON          -> error   "Invalid JSON ..."              + source
  cache diverges from tests        -> error   "Cached metadata out of sync."  + source
  cache matches tests              -> nothing reported, no source
"""

import json

import pytest

from metacache.app.checks.cache_reader import load_cached_metadata
from metacache.app.config import MetacacheConfig
from metacache.app.coordinator.coordinator import MetadataCacheCoordinator
from metacache.app.schemas.diagnostics import DiagnosticCode, Severity
from metacache.app.schemas.test_record import HarnessStatus, TestRecord
from metacache.app.schemas.validation_report import ValidationOutcome
from metacache.app.sinks import MemoryDiagnosticSink
from metacache.tests.fixtures.document_factory import (
    document_with_cache,
    document_without_cache,
)


@pytest.fixture
def coordinator():
    return MetadataCacheCoordinator(MetacacheConfig())


@pytest.fixture
def tests():
    return [
        TestRecord(name="t1", properties={"help": ["h"], "assert": ["a"]}),
    ]


# ---------------------------------------------------------------------------
# Scenario A: cache not present
# ---------------------------------------------------------------------------

def test_missing_cache_warns_and_offers_source(coordinator, tests):
    sink = MemoryDiagnosticSink()

    report = coordinator.process(
        tests,
        HarnessStatus(status=0),
        document=document_without_cache(),
        sink=sink,
    )

    assert report.outcome is ValidationOutcome.NOT_PRESENT
    assert report.issue.severity is Severity.WARNING
    assert report.issue.message == "Cached metdata not present. "
    assert sink.messages == ["Cached metdata not present. "]
    assert report.source_available is True

    assert sink.source is not None
    reparsed = json.loads(
        sink.source[sink.source.index("{"):sink.source.rindex("}") + 1]
    )
    assert reparsed == {"t1": {"help": ["h"], "assert": ["a"]}}
    assert sink.instructions.startswith("Copy the following")


# ---------------------------------------------------------------------------
# Scenario B: cache in sync
# ---------------------------------------------------------------------------

def test_matching_cache_is_silent(coordinator, tests):
    sink = MemoryDiagnosticSink()
    document = document_with_cache({"t1": {"help": ["h"], "assert": ["a"]}})

    report = coordinator.process(tests, document=document, sink=sink)

    assert report.outcome is ValidationOutcome.IN_SYNC
    assert report.in_sync is True
    assert report.issue is None
    assert report.diagnostics == []
    assert report.source_available is False
    assert sink.diagnostics == []
    assert sink.source is None


def test_regenerated_source_round_trips_to_in_sync(coordinator, tests):
    sink = MemoryDiagnosticSink()
    coordinator.process(tests, document=document_without_cache(), sink=sink)

    html = "<html><head>" + sink.source + "</head><body></body></html>"
    report = coordinator.process(tests, document=html)

    assert report.outcome is ValidationOutcome.IN_SYNC


# ---------------------------------------------------------------------------
# Scenario C: cache out of sync
# ---------------------------------------------------------------------------

def test_divergent_cache_is_out_of_sync(coordinator, tests):
    sink = MemoryDiagnosticSink()
    document = document_with_cache({"t1": {"help": ["different"]}})

    report = coordinator.process(tests, document=document, sink=sink)

    assert report.outcome is ValidationOutcome.OUT_OF_SYNC
    assert report.issue.code is DiagnosticCode.CACHE_OUT_OF_SYNC
    assert report.issue.severity is Severity.ERROR
    assert report.issue.message == "Cached metadata out of sync. "
    assert sink.instructions.startswith("Replace the existing")


def test_stale_cached_test_is_out_of_sync(coordinator, tests):
    document = document_with_cache(
        {
            "t1": {"help": ["h"], "assert": ["a"]},
            "removed test": {"help": ["h"]},
        }
    )

    report = coordinator.process(tests, document=document)

    assert report.outcome is ValidationOutcome.OUT_OF_SYNC


# ---------------------------------------------------------------------------
# Malformed caches
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "payload, code, message",
    [
        (
            "no payload here",
            DiagnosticCode.CACHE_NO_PAYLOAD,
            "Metadata not found in cache element. ",
        ),
        (
            "{not json}",
            DiagnosticCode.CACHE_INVALID_PAYLOAD,
            "Invalid JSON in Cached metadata. ",
        ),
        (
            '{"t1": {"help": [NaN]}}',
            DiagnosticCode.CACHE_INVALID_PAYLOAD,
            "Invalid JSON in Cached metadata. ",
        ),
    ],
)
def test_malformed_cache_is_an_error(coordinator, tests, payload, code, message):
    sink = MemoryDiagnosticSink()

    report = coordinator.process(
        tests,
        document=document_with_cache(payload=payload),
        sink=sink,
    )

    assert report.outcome is ValidationOutcome.MALFORMED
    assert report.issue.code is code
    assert report.issue.severity is Severity.ERROR
    assert report.issue.message == message
    assert sink.source is not None
    assert sink.instructions.startswith("Replace the existing")


# ---------------------------------------------------------------------------
# Diagnostics emitted during extraction
# ---------------------------------------------------------------------------

def test_extraction_diagnostics_precede_cache_issue(coordinator):
    sink = MemoryDiagnosticSink()
    tests = [
        TestRecord(name="t1", properties={"author": ["nobody"]}),
        TestRecord(name="t1", properties={"help": ["h"]}),
    ]

    report = coordinator.process(
        tests, document=document_without_cache(), sink=sink
    )

    assert [d.code for d in report.diagnostics] == [
        DiagnosticCode.INVALID_CONTACT,
        DiagnosticCode.DUPLICATE_TEST_NAME,
        DiagnosticCode.CACHE_NOT_PRESENT,
    ]
    assert [d.code for d in sink.diagnostics] == [
        d.code for d in report.diagnostics
    ]
    assert report.test_count == 1


def test_in_sync_pass_still_reports_advisory_diagnostics(coordinator):
    tests = [TestRecord(name="t1", properties={"author": ["nobody"]})]
    document = document_with_cache({"t1": {"author": ["nobody"]}})

    report = coordinator.process(tests, document=document)

    assert report.outcome is ValidationOutcome.IN_SYNC
    assert [d.code for d in report.diagnostics] == [
        DiagnosticCode.INVALID_CONTACT
    ]


def test_no_tests_with_empty_cache_is_in_sync(coordinator):
    report = coordinator.process([], document=document_with_cache({}))

    assert report.outcome is ValidationOutcome.IN_SYNC


# ---------------------------------------------------------------------------
# Pass context and source regeneration
# ---------------------------------------------------------------------------

def test_each_pass_has_its_own_context(coordinator, tests):
    first = coordinator.build_context(
        tests, document=document_without_cache(), sink=MemoryDiagnosticSink()
    )
    second = coordinator.build_context(
        [], document=document_without_cache(), sink=MemoryDiagnosticSink()
    )

    assert first.pass_id != second.pass_id
    assert first.current_metadata == {"t1": {"help": ["h"], "assert": ["a"]}}
    assert second.current_metadata == {}


def test_render_source_is_idempotent(coordinator, tests):
    context = coordinator.build_context(
        tests, document=document_without_cache(), sink=MemoryDiagnosticSink()
    )

    assert coordinator.render_source(context) == coordinator.render_source(context)


def test_pass_id_is_propagated(coordinator, tests):
    report = coordinator.process(
        tests, document=document_without_cache(), pass_id="pass-001"
    )

    assert report.pass_id == "pass-001"


def test_configured_element_id_is_used(tests):
    coordinator = MetadataCacheCoordinator(
        MetacacheConfig(CACHE_ELEMENT_ID="meta_cache")
    )
    metadata = {"t1": {"help": ["h"], "assert": ["a"]}}
    sink = MemoryDiagnosticSink()

    report = coordinator.process(
        tests,
        document=document_with_cache(metadata, element_id="meta_cache"),
        sink=sink,
    )
    assert report.outcome is ValidationOutcome.IN_SYNC

    coordinator.process(tests, document=document_without_cache(), sink=sink)
    assert sink.source.startswith('<script id="meta_cache">')
    assert load_cached_metadata(
        "<head>" + sink.source + "</head>", "meta_cache"
    ).metadata == metadata


def test_classify_requires_loaded_cache_state(coordinator):
    from metacache.app.coordinator.context import ValidationPassContext

    with pytest.raises(RuntimeError):
        coordinator.classify(ValidationPassContext(element_id="metadata_cache"))
