#!/usr/bin/env python3
"""
Tests for the pypejoint command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from pypejoint.interactive import cli


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


def _chain(closing=False):
    """Two pipes joined by a coupler; ``closing`` adds a connection that cannot be satisfied."""
    p1_connections = {"end": {"id": "c1", "jointId": "J1", "holeId": 0}}
    p2_connections = {"start": {"id": "c2", "jointId": "J1", "holeId": 1}}
    joints = [{"id": "J1", "name": "coupler"}]
    if closing:
        p2_connections["end"] = {"id": "c3", "jointId": "J2", "holeId": 0}
        p1_connections["start"] = {"id": "c4", "jointId": "J2", "holeId": 1}
        joints.append({"id": "J2", "name": "coupler"})
    return {
        "pipes": [
            {"id": "P1", "diameter": 0.022, "length": 1.0, "connections": p1_connections},
            {"id": "P2", "diameter": 0.022, "length": 1.0, "connections": p2_connections},
            {"id": "P3", "diameter": 0.022, "length": 1.0},
        ],
        "joints": joints,
    }


@pytest.fixture
def runner():
    return CliRunner()


class TestCatalogCommand:
    def test_lists_default_types(self, runner):
        result = runner.invoke(cli, ["catalog"])
        assert result.exit_code == 0
        assert "pla_joints:" in result.output
        assert "end-cap (1 holes)" in result.output
        assert "THROUGH" in result.output
        assert "Pipe stock:" in result.output

    def test_custom_catalog(self, runner, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "categories:\n"
            "  - name: mine\n"
            "    types:\n"
            "      - name: plug\n"
            "        holes:\n"
            "          - {through: false, to: [0, 0, 1]}\n"
        )
        result = runner.invoke(cli, ["catalog", "--catalog", str(path)])
        assert result.exit_code == 0
        assert "mine:" in result.output
        assert "plug (1 holes)" in result.output


class TestSolveCommand:
    def test_prints_poses(self, runner, tmp_path):
        path = _write(tmp_path / "chain.json", _chain())
        result = runner.invoke(cli, ["solve", str(path)])
        assert result.exit_code == 0
        assert "Root: P1" in result.output
        assert "J1:" in result.output
        assert "(0.0000, 0.0000, 1.0150)" in result.output
        assert "Unresolved: P3" in result.output

    def test_unknown_root(self, runner, tmp_path):
        path = _write(tmp_path / "chain.json", _chain())
        result = runner.invoke(cli, ["solve", str(path), "--root", "P9"])
        assert result.exit_code != 0
        assert "Unknown root pipe" in result.output

    def test_writes_output(self, runner, tmp_path):
        path = _write(tmp_path / "chain.json", _chain())
        out = tmp_path / "solved.yaml"
        result = runner.invoke(cli, ["solve", str(path), "--root", "P2", "-o", str(out)])
        assert result.exit_code == 0
        assert out.exists()
        assert "pipeId: P2" in out.read_text()


class TestValidateCommand:
    def test_valid_structure(self, runner, tmp_path):
        path = _write(tmp_path / "chain.json", _chain())
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 0
        assert "All connections within tolerance" in result.output

    def test_invalid_structure(self, runner, tmp_path):
        """Closing a straight chain back onto its start cannot be satisfied."""
        path = _write(tmp_path / "loop.json", _chain(closing=True))
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "invalid connection(s)" in result.output

    def test_bad_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"pipes": [{"id": "P1"}]}))
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code != 0
        assert "Invalid structure file" in result.output

    def test_malformed_yaml(self, runner, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("pipes: [\n  {id: P1\n")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid structure file" in result.output

    def test_top_level_list(self, runner, tmp_path):
        path = _write(tmp_path / "list.json", [1, 2])
        result = runner.invoke(cli, ["solve", str(path)])
        assert result.exit_code == 1
        assert "Invalid structure file" in result.output

    def test_rejected_values(self, runner, tmp_path):
        data = _chain()
        data["pipes"][0]["length"] = -1.0
        path = _write(tmp_path / "negative.json", data)
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "must be positive" in result.output


class TestReachCommand:
    def test_lists_connected(self, runner, tmp_path):
        path = _write(tmp_path / "chain.json", _chain())
        result = runner.invoke(cli, ["reach", str(path), "P1"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[:3] == ["P1", "P2", "J1"]
        assert "Not connected: P3" in result.output
