"""
Tests for the command-line entry point.
"""

import json
import sys
from pathlib import Path

import httpx
import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import main as cli


class TestParser:
    """Test argument parsing."""

    def test_check_takes_two(self):
        args = cli.create_parser().parse_args(["--check", "x", "x"])
        assert args.check == ["x", "x"]

    def test_formats(self):
        parser = cli.create_parser()
        assert parser.parse_args(["-f", "json"]).format == "json"
        with pytest.raises(SystemExit):
            parser.parse_args(["-f", "latex"])

    def test_pdf_requires_solve(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["sketchsolve", "--pdf", "out.pdf"])
        with pytest.raises(SystemExit):
            cli.main()


class TestCheckCommand:
    """Test --check output and exit codes."""

    def test_equivalent(self, capsys):
        assert cli.check_cli("(x+1)^2", "x^2+2x+1", "text") == 0
        assert "equivalent" in capsys.readouterr().out

    def test_different(self, capsys):
        assert cli.check_cli("x+1", "x+2", "text") == 1
        assert "Symbolic difference: -1" in capsys.readouterr().out

    def test_error(self, capsys):
        assert cli.check_cli("", "x", "text") == 2

    def test_json(self, capsys):
        cli.check_cli("x+1", "x+2", "json")
        data = json.loads(capsys.readouterr().out)

        assert data["verdict"] == "different"
        assert data["residual"] == "-1"
        assert data["method"] == "numeric"


class TestSolveCommand:
    """Test --solve against a mocked relay."""

    @pytest.fixture
    def image_path(self, tmp_path):
        path = tmp_path / "problem.png"
        Image.new("RGB", (400, 200), (255, 255, 255)).save(path)
        return path

    @pytest.fixture(autouse=True)
    def isolated(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))

    def mock_relay(self, monkeypatch, handler):
        from sketchsolve.relay import client as client_module

        original = client_module.RelayClient.__init__

        def patched(self, base_url=None, timeout=60.0, transport=None):
            original(self, base_url, timeout, httpx.MockTransport(handler))

        monkeypatch.setattr(client_module.RelayClient, "__init__", patched)

    def test_prints_solution(self, monkeypatch, capsys, image_path):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"content": "$x = 1$"})

        self.mock_relay(monkeypatch, handler)

        assert cli.solve_cli(str(image_path), "text", None, None, None, False) == 0
        assert capsys.readouterr().out.strip() == "$x = 1$"
        assert seen[0]["dataUrl"].startswith("data:image/png;base64,")
        assert seen[0]["provider"] == "openai"

    def test_provider_override(self, monkeypatch, capsys, image_path):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"content": "ok"})

        self.mock_relay(monkeypatch, handler)
        cli.solve_cli(str(image_path), "json", None, "openrouter", None, False)

        assert seen[0]["model"] == "openai/gpt-4o-mini"
        assert json.loads(capsys.readouterr().out)["provider"] == "openrouter"

    def test_writes_pdf(self, monkeypatch, image_path, tmp_path):
        self.mock_relay(monkeypatch, lambda r: httpx.Response(200, json={"content": "ok"}))
        out = tmp_path / "report.pdf"

        assert cli.solve_cli(str(image_path), "text", str(out), None, None, False) == 0
        assert out.read_bytes().startswith(b"%PDF")

    def test_relay_error(self, monkeypatch, capsys, image_path):
        self.mock_relay(
            monkeypatch, lambda r: httpx.Response(500, json={"error": "API key not configured"})
        )

        assert cli.solve_cli(str(image_path), "text", None, None, None, False) == 1
        assert "API key not configured" in capsys.readouterr().err

    def test_unknown_provider(self, capsys, image_path):
        assert cli.solve_cli(str(image_path), "text", None, "acme", None, False) == 1

    def test_bad_image(self, capsys, tmp_path):
        path = tmp_path / "bad.png"
        path.write_bytes(b"nope")

        assert cli.solve_cli(str(path), "text", None, None, None, False) == 1
        assert "Error:" in capsys.readouterr().err
