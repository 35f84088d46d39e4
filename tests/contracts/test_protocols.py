"""Tests for protocol definitions.

Tests that the production components and stub implementations satisfy
the Protocol definitions.
"""

from __future__ import annotations

from eas_pipeline.contracts.bundles import ParsedFileBundle
from eas_pipeline.contracts.protocols import (
    BusinessRuleValidatorProtocol,
    CrossRecordValidatorProtocol,
    ReferenceDataProtocol,
    SchemaParserProtocol,
    SubmissionBuilderProtocol,
    SubmissionStoreProtocol,
)
from eas_pipeline.engine import (
    BusinessRuleValidator,
    CrossRecordValidator,
    EasFileParser,
    InMemoryReferenceData,
    InMemorySubmissionStore,
    SubmissionBuilder,
)


class StubParser:
    """Stub implementation of SchemaParserProtocol."""

    def parse(self, stream) -> ParsedFileBundle:
        return ParsedFileBundle()


class TestProtocolCompliance:
    """Production components should satisfy their protocols."""

    def test_parser(self):
        assert isinstance(EasFileParser(), SchemaParserProtocol)
        assert isinstance(StubParser(), SchemaParserProtocol)

    def test_validators(self):
        assert isinstance(BusinessRuleValidator(), BusinessRuleValidatorProtocol)
        assert isinstance(CrossRecordValidator(), CrossRecordValidatorProtocol)

    def test_builder(self):
        assert isinstance(SubmissionBuilder(), SubmissionBuilderProtocol)

    def test_reference_data(self):
        assert isinstance(InMemoryReferenceData(), ReferenceDataProtocol)

    def test_store(self):
        assert isinstance(InMemorySubmissionStore(), SubmissionStoreProtocol)

    def test_non_compliant_object(self):
        assert not isinstance(object(), SubmissionStoreProtocol)
