"""Tests for src.data.models — Member dataclass."""

from src.data.models import Member


class TestMember:
    def test_fields(self):
        m = Member(id="U1", name="Alice")
        assert m.id == "U1"
        assert m.name == "Alice"

    def test_label_uses_name(self):
        assert Member(id="U1", name="王小明").label == "王小明"

    def test_label_falls_back_to_id(self):
        assert Member(id="U1", name="").label == "U1"

    def test_equality(self):
        assert Member(id="U1", name="A") == Member(id="U1", name="A")
