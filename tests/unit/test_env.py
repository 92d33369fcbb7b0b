"""Tests for argform/lib/env.py - .env files and override rows."""

from __future__ import annotations

from pathlib import Path

import pytest

from argform.lib.env import merge_env_pairs, read_env_file, seed_env_pairs
from argform.lib.errors import ArgformError


class TestReadEnvFile:
    def test_reads_pairs_in_order(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        path.write_text(
            "# comment\n"
            "B=2\n"
            "A=\"quoted value\"\n"
            "export C=3\n"
            "BARE\n",
            encoding="utf-8",
        )
        assert read_env_file(path) == [
            ("B", "2"),
            ("A", "quoted value"),
            ("C", "3"),
            ("BARE", ""),
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ArgformError, match="not found"):
            read_env_file(tmp_path / "absent.env")


class TestMergeEnvPairs:
    def test_existing_keys_replaced_in_place(self) -> None:
        merged = merge_env_pairs([("A", "1"), ("B", "2")], [("B", "20"), ("C", "3")])
        assert merged == [("A", "1"), ("B", "20"), ("C", "3")]

    def test_empty_current(self) -> None:
        assert merge_env_pairs([], [("A", "1")]) == [("A", "1")]


def test_seed_env_pairs() -> None:
    assert seed_env_pairs(["TOKEN", "REGION"]) == [("TOKEN", ""), ("REGION", "")]
