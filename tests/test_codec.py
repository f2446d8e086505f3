"""
Tests for transport encodings and canonical serialization
"""

import os
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from cryptokit.services.crypto.codec import (
    Encoding,
    decode,
    decode_text,
    deserialize,
    encode,
    encode_text,
    serialize,
)
from cryptokit.services.crypto.errors import MalformedEncoding, SerializationError


class TestEncodeDecode:
    """Test lossless byte/text encodings"""

    @pytest.mark.parametrize("encoding", list(Encoding))
    def test_round_trip_random_bytes(self, encoding):
        """Test that arbitrary bytes survive encode/decode"""
        for size in (0, 1, 2, 3, 16, 255):
            data = os.urandom(size)
            assert decode(encode(data, encoding), encoding) == data

    def test_empty_input(self):
        """Test that empty bytes encode to an empty string"""
        assert encode(b"") == ""
        assert decode("") == b""

    def test_hex_is_default(self):
        """Test hex default encoding"""
        assert encode(b"\x00\xff") == "00ff"
        assert decode("00ff") == b"\x00\xff"

    def test_encoding_name_case_insensitive(self):
        """Test that encoding names are matched case-insensitively"""
        assert encode(b"\x01", "HEX") == "01"
        assert Encoding("Base64Url") is Encoding.BASE64URL

    def test_base64url_is_unpadded(self):
        """Test base64url output carries no padding"""
        assert encode(b"a", Encoding.BASE64URL) == "YQ"
        assert decode("YQ", Encoding.BASE64URL) == b"a"

    @pytest.mark.parametrize("encoding", list(Encoding))
    def test_reserved_separators_never_emitted(self, encoding):
        """Test that '.' and ':' never appear in encoded output"""
        text = encode(os.urandom(300), encoding)
        assert "." not in text
        assert ":" not in text

    @pytest.mark.parametrize("text", ["abc", "0g", "00 ff", " 00", "zz"])
    def test_invalid_hex(self, text):
        """Test that odd-length, whitespace and non-hex text is rejected"""
        with pytest.raises(MalformedEncoding):
            decode(text, "hex")

    @pytest.mark.parametrize("text", ["YQ", "Y Q=", "YQ=!", "a.bc"])
    def test_invalid_base64(self, text):
        """Test that malformed base64 is rejected"""
        with pytest.raises(MalformedEncoding):
            decode(text, "base64")

    @pytest.mark.parametrize("text", ["Y", "YQ==", "a+b/", "a.b"])
    def test_invalid_base64url(self, text):
        """Test that malformed base64url is rejected"""
        with pytest.raises(MalformedEncoding):
            decode(text, "base64url")

    def test_unsupported_encoding(self):
        """Test that non-lossless encodings are refused"""
        with pytest.raises(MalformedEncoding, match="Unsupported encoding"):
            encode(b"x", "utf8")

    def test_malformed_encoding_is_value_error(self):
        """Test that MalformedEncoding can be caught as ValueError"""
        with pytest.raises(ValueError):
            decode("xyz")

    def test_text_helpers(self):
        """Test UTF-8 text helpers"""
        assert decode_text(encode_text("héllo")) == "héllo"

    def test_decode_text_rejects_invalid_utf8(self):
        """Test that non-UTF-8 bytes fail text decoding"""
        with pytest.raises(MalformedEncoding, match="UTF-8"):
            decode_text("ff")


class TestSerialize:
    """Test canonical JSON serialization"""

    def test_string_payload_is_json_encoded(self):
        """Test that bare strings are wrapped in quotes"""
        assert serialize("abc") == '"abc"'

    def test_serializing_serialized_string_wraps_again(self):
        """Test that strings are always encoded, even JSON-looking ones"""
        once = serialize({"id": "abc"})
        assert serialize(once) == '"{\\"id\\":\\"abc\\"}"'

    def test_keys_sorted_and_compact(self):
        """Test deterministic key order and separators"""
        assert serialize({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
        assert serialize({"a": 1, "b": 2}) == serialize({"b": 2, "a": 1})

    def test_primitives(self):
        """Test primitive payloads"""
        assert serialize(None) == "null"
        assert serialize(42) == "42"
        assert serialize(True) == "true"
        assert serialize([1, "x"]) == '[1,"x"]'

    def test_unicode_preserved(self):
        """Test that non-ASCII text is kept verbatim"""
        assert serialize("ü") == '"ü"'

    def test_datetime_and_model(self):
        """Test serialization of datetimes and pydantic models"""
        class Claims(BaseModel):
            sub: str

        moment = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert serialize({"at": moment}) == '{"at":"2026-01-01T00:00:00+00:00"}'
        assert serialize(Claims(sub="u1")) == '{"sub":"u1"}'

    def test_unserializable_payload(self):
        """Test that objects without a JSON form are rejected"""
        with pytest.raises(SerializationError):
            serialize(object())

    def test_nan_rejected(self):
        """Test that NaN is not emitted"""
        with pytest.raises(SerializationError):
            serialize(float("nan"))

    def test_deserialize_round_trip(self):
        """Test that deserialize inverts serialize"""
        payload = {"id": "abc", "n": [1, 2, {"x": None}]}
        assert deserialize(serialize(payload)) == payload

    def test_deserialize_invalid(self):
        """Test that invalid JSON raises MalformedEncoding"""
        with pytest.raises(MalformedEncoding):
            deserialize("{not json")
