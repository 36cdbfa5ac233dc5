"""Tests for Envelope parsing."""

import pytest

from x10stream.envelope import Envelope, EnvelopeType


class TestEnvelope:
    """Unit tests for envelope classification."""

    def test_parses_known_type(self):
        """Test that a known type string maps to its member."""
        env = Envelope.from_dict({"type": "DELTA", "data": {"m": "BTC-USD"}, "ts": 10, "seq": 3})
        assert env.type is EnvelopeType.DELTA
        assert env.data == {"m": "BTC-USD"}
        assert env.ts == 10
        assert env.seq == 3

    def test_unknown_type(self):
        """Test that unrecognised or missing types map to UNKNOWN."""
        assert Envelope.from_dict({"type": "HEARTBEAT"}).type is EnvelopeType.UNKNOWN
        assert Envelope.from_dict({}).type is EnvelopeType.UNKNOWN

    def test_missing_ts_and_seq(self):
        """Test that absent or zero ts/seq become None."""
        env = Envelope.from_dict({"type": "SNAPSHOT", "ts": 0})
        assert env.ts is None
        assert env.seq is None

    def test_non_object_data_dropped(self):
        """Test that a non-object payload is treated as absent."""
        env = Envelope.from_dict({"type": "ORDER", "data": [1, 2]})
        assert env.data is None

    def test_error_field(self):
        """Test that the server error field is kept."""
        env = Envelope.from_dict({"type": "UNKNOWN", "error": "bad market"})
        assert env.error == "bad market"

    def test_snapshot_flag(self):
        """Test the isSnapshot payload flag."""
        assert Envelope.from_dict({"type": "ORDER", "data": {"isSnapshot": True}}).is_snapshot_payload
        assert not Envelope.from_dict({"type": "ORDER", "data": {"isSnapshot": False}}).is_snapshot_payload
        assert not Envelope.from_dict({"type": "ORDER", "data": {}}).is_snapshot_payload
        assert not Envelope.from_dict({"type": "ORDER"}).is_snapshot_payload

    def test_rejects_non_object(self):
        """Test that a non-object message raises TypeError."""
        with pytest.raises(TypeError):
            Envelope.from_dict(["SNAPSHOT"])

    def test_immutability(self):
        """Test that Envelope is immutable."""
        env = Envelope.from_dict({"type": "DELTA"})
        with pytest.raises(AttributeError):
            env.seq = 5
