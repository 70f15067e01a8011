import hashlib

import pytest

from securelink.domain.errors import InvalidSecurePathError
from securelink.domain.secure_links import SecurePath, SecurePathCodec, to_base36
from securelink.domain.secure_links.codec import SECURE_ID_ALPHABET
from tests.fixtures import DEFAULT_NOW, create_mapping


class TestBase36:
    def test_small_values(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_matches_int_parsing(self):
        value = 1738324800000
        assert int(to_base36(value), 36) == value

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)


class TestSecurePathCodec:
    def test_generated_id_is_16_url_safe_characters(self):
        codec = SecurePathCodec()
        secure_id = codec.generate_secure_id()
        assert len(secure_id) == 16
        assert set(secure_id) <= set(SECURE_ID_ALPHABET)

    def test_generated_ids_differ(self):
        codec = SecurePathCodec()
        ids = {codec.generate_secure_id() for _ in range(200)}
        assert len(ids) == 200

    def test_timestamp_is_millis_in_base36(self):
        encoded = SecurePathCodec.encode_timestamp(DEFAULT_NOW)
        assert int(encoded, 36) == int(DEFAULT_NOW.timestamp() * 1000)

    def test_hash_is_prefix_of_sha256(self):
        expected = hashlib.sha256(b"privatea/b.pdfk1x2y3").hexdigest()[:8]
        assert SecurePathCodec.compute_hash("private", "a/b.pdf", "k1x2y3") == expected

    def test_mint_binds_hash_to_object_and_timestamp(self):
        codec = SecurePathCodec()
        path = codec.mint("private", "a/b.pdf", DEFAULT_NOW)
        assert path.timestamp == codec.encode_timestamp(DEFAULT_NOW)
        assert path.hash == codec.compute_hash("private", "a/b.pdf", path.timestamp)

    def test_verify_accepts_matching_segments(self):
        codec = SecurePathCodec()
        mapping = create_mapping(bucket_name="private", object_key="a/b.pdf")
        timestamp = codec.encode_timestamp(DEFAULT_NOW)
        hash = codec.compute_hash("private", "a/b.pdf", timestamp)
        assert codec.verify(mapping, timestamp, hash) is True

    def test_verify_rejects_tampered_hash_and_timestamp(self):
        codec = SecurePathCodec()
        mapping = create_mapping(bucket_name="private", object_key="a/b.pdf")
        timestamp = codec.encode_timestamp(DEFAULT_NOW)
        hash = codec.compute_hash("private", "a/b.pdf", timestamp)

        flipped = ("0" if hash[0] != "0" else "1") + hash[1:]
        assert codec.verify(mapping, timestamp, flipped) is False
        assert codec.verify(mapping, timestamp + "0", hash) is False

    def test_verify_rejects_hash_of_other_object(self):
        codec = SecurePathCodec()
        mapping = create_mapping(bucket_name="private", object_key="a/b.pdf")
        timestamp = codec.encode_timestamp(DEFAULT_NOW)
        other = codec.compute_hash("private", "a/c.pdf", timestamp)
        assert codec.verify(mapping, timestamp, other) is False

    def test_verify_rejects_empty_segments(self):
        codec = SecurePathCodec()
        mapping = create_mapping()
        assert codec.verify(mapping, "", "abcd1234") is False
        assert codec.verify(mapping, "k1x2y3", "") is False


class TestParsePath:
    def test_build_path(self):
        assert SecurePathCodec.build_path("id", "ts", "hash") == "/secure/id/ts/hash"

    def test_parse_plain_path(self):
        parsed = SecurePathCodec.parse_path("/secure/AbCdEfGhIjKlMnOp/m6k3x0a8/1a2b3c4d")
        assert parsed == SecurePath("AbCdEfGhIjKlMnOp", "m6k3x0a8", "1a2b3c4d")

    def test_parse_ignores_url_prefix(self):
        parsed = SecurePathCodec.parse_path("https://files.example/api/v1/secure/id/ts/hash")
        assert parsed == SecurePath("id", "ts", "hash")

    @pytest.mark.parametrize("path", [
        "",
        "/files/id/ts/hash",
        "/secure/id/ts",
        "/secure/id/ts/hash/extra",
        "/secure/id//hash",
    ])
    def test_parse_rejects_malformed_paths(self, path):
        with pytest.raises(InvalidSecurePathError):
            SecurePathCodec.parse_path(path)
