"""
Unit tests for block content hashing.

Tests:
- Canonical serialization
- SHA-256 digest output
- Alternative 256-bit digests
- Error wrapping
- Avalanche effect (statistical)
"""

import hashlib
import random
import string

import pytest

from certichain.blockchain.errors import HashComputationError
from certichain.blockchain.records import CertificateRecord
from certichain.core_crypto.content_hash import (
    BlockHasher, canonical_payload, compute_hash,
    hamming_distance, avalanche_ratio, SUPPORTED_ALGORITHMS,
)

from tests.helpers import FIXED_TIME, make_cert


class TestCanonicalPayload:
    """Tests for canonical serialization."""

    def test_exact_layout(self):
        """Fields appear in the documented order, compact JSON."""
        payload = canonical_payload(1, "abc", FIXED_TIME, make_cert(), 7)
        expected = (
            '{"index":1,"previousHash":"abc","timestamp":"2024-06-01T12:00:00.000Z",'
            '"data":{"studentName":"Alice Johnson","degree":"B.Sc. Computer Science",'
            '"university":"University of Technology","graduationDate":"2024-05-30",'
            '"gpa":"3.8","issuanceDate":"2024-06-01T12:00:00.000Z"},"nonce":7}'
        )
        assert payload == expected.encode('utf-8')

    def test_mapping_key_order_ignored(self):
        """A mapping payload is reordered into the declared field order."""
        cert = make_cert()
        forward = cert.to_dict()
        backward = dict(reversed(list(forward.items())))
        assert canonical_payload(1, "x", FIXED_TIME, backward, 0) == \
            canonical_payload(1, "x", FIXED_TIME, cert, 0)

    def test_non_ascii_kept_as_utf8(self):
        """Non-ASCII text is encoded as UTF-8, not escaped."""
        cert = make_cert(name="José Müller")
        payload = canonical_payload(1, "x", FIXED_TIME, cert, 0)
        assert "José Müller".encode('utf-8') in payload

    def test_distinct_fields_not_ambiguous(self):
        """Moving text between fields changes the payload."""
        a = CertificateRecord(student_name="AB", degree="C")
        b = CertificateRecord(student_name="A", degree="BC")
        assert canonical_payload(1, "x", FIXED_TIME, a, 0) != \
            canonical_payload(1, "x", FIXED_TIME, b, 0)


class TestComputeHash:
    """Tests for the default SHA-256 block hash."""

    def test_matches_reference_sha256(self):
        """Hash is SHA-256 of the canonical payload."""
        cert = make_cert()
        payload = canonical_payload(3, "prev", FIXED_TIME, cert, 42)
        assert compute_hash(3, "prev", FIXED_TIME, cert, 42) == hashlib.sha256(payload).hexdigest()

    def test_lowercase_hex_256_bits(self):
        """Output is 64 lowercase hex characters."""
        digest = compute_hash(0, "0", FIXED_TIME, make_cert(), 0)
        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)

    def test_deterministic(self):
        """Identical inputs give identical hashes."""
        cert = make_cert()
        assert compute_hash(1, "p", FIXED_TIME, cert, 5) == compute_hash(1, "p", FIXED_TIME, cert, 5)

    @pytest.mark.parametrize("change", ["index", "previous_hash", "timestamp", "data", "nonce"])
    def test_every_field_is_hashed(self, change):
        """Changing any single field changes the hash."""
        args = {
            'index': 1,
            'previous_hash': "p",
            'timestamp': FIXED_TIME,
            'data': make_cert(),
            'nonce': 5,
        }
        base = compute_hash(**args)
        args[change] = {
            'index': 2,
            'previous_hash': "q",
            'timestamp': "2024-06-01T12:00:00.001Z",
            'data': make_cert(gpa="3.9"),
            'nonce': 6,
        }[change]
        assert compute_hash(**args) != base


class TestBlockHasher:
    """Tests for configurable digest algorithms."""

    @pytest.mark.parametrize("algorithm", sorted(SUPPORTED_ALGORITHMS))
    def test_all_algorithms_256_bit(self, algorithm):
        """Every supported algorithm yields a 256-bit digest."""
        hasher = BlockHasher(algorithm)
        assert len(hasher(1, "p", FIXED_TIME, make_cert(), 0)) == 64

    def test_algorithms_differ(self):
        """Different algorithms give different hashes."""
        cert = make_cert()
        digests = {BlockHasher(a)(1, "p", FIXED_TIME, cert, 0) for a in SUPPORTED_ALGORITHMS}
        assert len(digests) == len(SUPPORTED_ALGORITHMS)

    def test_sha3_matches_reference(self):
        """SHA3-256 matches hashlib."""
        payload = canonical_payload(1, "p", FIXED_TIME, make_cert(), 0)
        assert BlockHasher('sha3_256').digest_hex(payload) == hashlib.sha3_256(payload).hexdigest()

    def test_unknown_algorithm_rejected(self):
        """Unknown algorithm should raise ValueError."""
        with pytest.raises(ValueError):
            BlockHasher('md5')


class TestHashErrors:
    """Serialization and digest failures become HashComputationError."""

    def test_unserializable_nonce(self):
        with pytest.raises(HashComputationError):
            compute_hash(1, "p", FIXED_TIME, make_cert(), object())

    def test_nan_rejected(self):
        with pytest.raises(HashComputationError):
            compute_hash(1, "p", FIXED_TIME, make_cert(), float('nan'))

    def test_unencodable_text(self):
        """Lone surrogates cannot be UTF-8 encoded."""
        with pytest.raises(HashComputationError):
            compute_hash(1, "p", FIXED_TIME, make_cert(name="\ud800"), 0)

    def test_wrong_payload_type(self):
        with pytest.raises(HashComputationError):
            compute_hash(1, "p", FIXED_TIME, 12345, 0)

    def test_error_is_chained(self):
        """The original exception is kept as the cause."""
        with pytest.raises(HashComputationError) as info:
            compute_hash(1, "p", FIXED_TIME, make_cert(), object())
        assert isinstance(info.value.__cause__, TypeError)


class TestAvalanche:
    """Statistical avalanche tests."""

    def test_hamming_distance_bounds(self):
        assert hamming_distance("00" * 32, "00" * 32) == 0
        assert hamming_distance("00" * 32, "ff" * 32) == 256
        assert avalanche_ratio("00" * 32, "0f" * 32) == 0.5

    def test_hamming_length_mismatch(self):
        with pytest.raises(ValueError):
            hamming_distance("00", "0000")

    def test_single_character_change(self):
        """
        One-character edits flip about half of the output bits.

        Per-trial distance is Binomial(256, 0.5): mean 128, sd 8.
        """
        rng = random.Random(1234)
        distances = []
        for trial in range(200):
            name = "".join(rng.choice(string.ascii_letters) for _ in range(12))
            pos = rng.randrange(len(name))
            replacement = rng.choice([c for c in string.ascii_letters if c != name[pos]])
            edited = name[:pos] + replacement + name[pos + 1:]

            h1 = compute_hash(trial, "p", FIXED_TIME, make_cert(name=name), 0)
            h2 = compute_hash(trial, "p", FIXED_TIME, make_cert(name=edited), 0)

            distances.append(hamming_distance(h1, h2))
            # no shared prefix/suffix of 8 hex characters
            assert h1[:8] != h2[:8]
            assert h1[-8:] != h2[-8:]

        mean = sum(distances) / len(distances)
        assert 120 < mean < 136
        assert min(distances) > 80
