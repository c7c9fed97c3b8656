"""Tests for dns/synthesizer.py."""

# pylint: disable=missing-function-docstring

import dns.flags
import dns.message
import dns.name
import dns.opcode
import dns.rdataclass
import dns.rcode
import dns.rdatatype
import dns.rrset
import pytest

from conftest import make_query
from doh_responder.dns.resolver import (
    Answered,
    MalformedName,
    NotFound,
    TransientFailure,
)
from doh_responder.dns.synthesizer import Blocked, synthesize_response


class TestCommonFields:
    """Fields every synthesized response carries."""

    @pytest.mark.parametrize(
        "outcome", [Blocked(), NotFound(), MalformedName(), Answered(())]
    )
    def test_copies_id_question_and_sets_flags(self, outcome):
        query = make_query("example.com.", "TXT", query_id=31337)

        response = synthesize_response(query, outcome)

        assert response.id == 31337
        assert response.question == query.question
        assert response.flags & dns.flags.QR
        assert response.flags & dns.flags.RA
        assert response.flags & dns.flags.RD
        assert response.opcode() == dns.opcode.QUERY

    def test_only_first_question_is_kept(self):
        query = make_query("first.example.com.", "A")
        query.question.append(
            dns.rrset.RRset(
                dns.name.from_text("second.example.com."),
                dns.rdataclass.IN,
                dns.rdatatype.A,
            )
        )

        response = synthesize_response(query, Blocked())

        assert len(response.question) == 1
        assert response.question[0].name.to_text() == "first.example.com."

    def test_echoes_edns(self):
        query = make_query()
        query.use_edns(0, payload=1232)

        response = synthesize_response(query, NotFound())

        assert response.edns == 0


class TestNxDomainOutcomes:
    """Blocked, NotFound and MalformedName look identical on the wire."""

    @pytest.mark.parametrize("outcome", [Blocked(), NotFound(), MalformedName()])
    def test_nxdomain_with_empty_answer(self, outcome):
        response = synthesize_response(make_query(), outcome)

        assert response.rcode() == dns.rcode.NXDOMAIN
        assert response.answer == []

    def test_blocked_and_not_found_are_indistinguishable(self):
        query = make_query("ads.example.com.", "A", query_id=5)

        blocked = synthesize_response(query, Blocked()).to_wire()
        missing = synthesize_response(query, NotFound()).to_wire()

        assert blocked == missing


class TestAnswered:
    """Upstream answers are copied verbatim."""

    def test_appends_records_in_order(self):
        cname = dns.rrset.from_text(
            "www.example.com.", 300, "IN", "CNAME", "cdn.example.net."
        )
        a = dns.rrset.from_text(
            "cdn.example.net.", 60, "IN", "A", "198.51.100.7", "198.51.100.3"
        )
        query = make_query("www.example.com.", "A")

        response = synthesize_response(query, Answered((cname, a)))

        assert response.rcode() == dns.rcode.NOERROR
        assert response.answer == [cname, a]
        assert [rd.to_text() for rd in response.answer[1]] == [
            "198.51.100.7",
            "198.51.100.3",
        ]

    def test_empty_answer_is_noerror(self):
        response = synthesize_response(make_query(), Answered(()))

        assert response.rcode() == dns.rcode.NOERROR
        assert response.answer == []


class TestRejectedOutcomes:
    """Outcomes that must never become a DNS response."""

    def test_transient_failure_is_rejected(self):
        with pytest.raises(ValueError):
            synthesize_response(make_query(), TransientFailure(TimeoutError()))

    def test_unknown_outcome_is_rejected(self):
        with pytest.raises(TypeError):
            synthesize_response(make_query(), object())  # type: ignore[arg-type]
