"""
Security tests for CertiChain.

Tests specifically for tampering and forgery scenarios:
- Payload edits without rehashing
- Partial re-mining by an attacker
- Forged appends
- Genesis protection
"""

import dataclasses

import pytest

from certichain.blockchain.errors import PreconditionError, ValidationError
from certichain.blockchain.records import CertificateRecord
from certichain.core_crypto.content_hash import compute_hash
from certichain.integration.event_logger import LedgerEventType

from tests.helpers import make_cert


def forged_degree(block):
    return dataclasses.replace(block.data, degree="Ph.D. Forged Studies", gpa="4.0")


class TestScenarios:
    """Issue, tamper, detect, repair."""

    def test_scenario_a_issue(self, ledger):
        """Genesis at 0 with sentinel link; two issued blocks; chain valid."""
        genesis = ledger.block(0)
        assert genesis.index == 0
        assert genesis.previous_hash == "0"

        a = ledger.issue(make_cert("Alice"))
        b = ledger.issue(make_cert("Bob"))
        assert (a.index, b.index) == (1, 2)
        assert ledger.validate() == (True, -1)

    def test_scenario_b_tamper(self, ledger):
        """Tampering block 1 is detected at 1 and flagged by lookup."""
        ledger.issue(make_cert("Alice"))
        ledger.issue(make_cert("Bob"))

        ledger.tamper(1, forged_degree(ledger.block(1)))
        assert ledger.validate() == (False, 1)

        result = ledger.lookup(ledger.block(1).hash)
        assert result.found
        assert result.integrity_valid is False

    def test_scenario_c_repair(self, ledger):
        """Repairing from 1 restores validity and relinks block 2."""
        ledger.issue(make_cert("Alice"))
        ledger.issue(make_cert("Bob"))
        bob_data = ledger.block(2).data
        old_link = ledger.block(2).previous_hash

        ledger.tamper(1, forged_degree(ledger.block(1)))
        tampered_data = ledger.block(1).data
        ledger.repair(1)

        assert ledger.validate() == (True, -1)
        chain = ledger.chain
        assert chain[2].previous_hash == chain[1].hash
        assert chain[2].previous_hash != old_link
        assert chain[2].data == bob_data
        assert chain[1].data == tampered_data
        assert chain[1].is_tampered


class TestAttackScenarios:
    """Attacks that must still be detected."""

    def test_attacker_rehashes_only_edited_block(self, ledger):
        """Rehashing the edited block moves the break to its successor."""
        for name in ("Alice", "Bob", "Carol"):
            ledger.issue(make_cert(name))

        chain = ledger.chain
        target = chain[1]
        forged = dataclasses.replace(target, data=forged_degree(target))
        forged = dataclasses.replace(
            forged,
            hash=compute_hash(forged.index, forged.previous_hash, forged.timestamp,
                              forged.data, forged.nonce),
        )
        chain[1] = forged
        assert ledger.validator.validate(chain) == (False, 2)

    def test_tamper_is_sticky_across_repairs(self, ledger):
        ledger.issue(make_cert("Alice"))
        ledger.tamper(1, forged_degree(ledger.block(1)))
        ledger.repair(1)
        ledger.repair(0)
        assert ledger.block(1).is_tampered

    def test_genesis_tamper_refused(self, ledger):
        with pytest.raises(PreconditionError):
            ledger.tamper(0, make_cert("Mallory"))
        assert not ledger.block(0).is_tampered

    def test_tamper_out_of_range(self, ledger):
        with pytest.raises(PreconditionError):
            ledger.tamper(5, make_cert("Mallory"))

    def test_forged_append_bad_link(self, ledger):
        """A block that does not link to the tail is refused."""
        ledger.issue(make_cert("Alice"))
        tail = ledger.last_block
        forged = dataclasses.replace(tail, index=2, previous_hash="f" * 64)
        with pytest.raises(PreconditionError):
            ledger.append(forged)
        assert ledger.length == 2

    def test_forged_append_bad_index(self, ledger):
        ledger.issue(make_cert("Alice"))
        forged = dataclasses.replace(ledger.last_block, index=7, previous_hash=ledger.last_block.hash)
        with pytest.raises(PreconditionError):
            ledger.append(forged)

    def test_forged_append_stale_hash(self, ledger):
        """A correctly linked block whose hash does not match its data is refused."""
        tail = ledger.last_block
        forged = dataclasses.replace(
            tail, index=1, previous_hash=tail.hash, data=make_cert("Mallory"),
            is_genesis=False,
        )
        with pytest.raises(PreconditionError):
            ledger.append(forged)

    def test_empty_student_name_rejected(self, ledger):
        with pytest.raises(ValidationError):
            ledger.issue(CertificateRecord("", "B.Sc."))
        assert ledger.length == 1

    def test_empty_degree_rejected(self, ledger):
        with pytest.raises(ValidationError):
            ledger.issue(CertificateRecord("Alice", " "))
        assert ledger.length == 1

    def test_repair_out_of_range(self, ledger):
        with pytest.raises(PreconditionError):
            ledger.repair(1)
        with pytest.raises(PreconditionError):
            ledger.repair(-1)

    @pytest.mark.parametrize("payload", [None, "Mallory", 42, {'studentName': ["M"], 'degree': "X"}])
    def test_malformed_tamper_leaves_chain_untouched(self, ledger, payload):
        """A rejected tamper payload is never committed."""
        ledger.issue(make_cert("Alice"))
        before = ledger.chain

        with pytest.raises(ValidationError):
            ledger.tamper(1, payload)

        assert ledger.chain == before
        assert not ledger.block(1).is_tampered
        assert ledger.validate() == (True, -1)
        assert not ledger.events.get_events(LedgerEventType.BLOCK_TAMPERED)

    def test_tamper_with_mapping(self, ledger):
        """A mapping of certificate fields is accepted as the forged payload."""
        ledger.issue(make_cert("Alice"))
        block = ledger.tamper(1, {'studentName': "Mallory", 'degree': "Ph.D."})
        assert block.data == CertificateRecord("Mallory", "Ph.D.")
        assert ledger.validate() == (False, 1)

    def test_mapping_missing_name_rejected(self, ledger):
        """A dict with an empty studentName is a ValidationError, and is logged."""
        with pytest.raises(ValidationError):
            ledger.issue({'studentName': '', 'degree': 'X'})
        assert ledger.length == 1
        assert len(ledger.events.get_events(LedgerEventType.ISSUANCE_REJECTED)) == 1

    @pytest.mark.parametrize("payload", ["Alice", 7, ("Alice", "B.Sc."), {'studentName': 1, 'degree': 'X'}])
    def test_non_record_issuance_rejected(self, ledger, payload):
        with pytest.raises(ValidationError):
            ledger.issue(payload)
        assert ledger.length == 1

    def test_issue_from_mapping(self, ledger):
        block = ledger.issue({'studentName': "Alice", 'degree': "B.Sc.", 'gpa': "3.9"})
        assert block.data.student_name == "Alice"
        assert block.data.gpa == "3.9"
        assert ledger.validate() == (True, -1)
