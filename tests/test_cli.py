from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from cardrender.renderer import CANVAS_SIZE
from cardsnap import cli, server


@pytest.fixture
def payload_file(tmp_path: Path) -> Path:
    path = tmp_path / "card.json"
    path.write_text(
        json.dumps(
            {
                "name": "Shadow Clone",
                "category": "忍术",
                "tags": ["fire", "clone"],
                "abilitySlot1": {"mode": "attack", "cost": "2", "description": "Split in two."},
                "note": "Promo",
                "copyright": "(c) Studio",
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return path


def test_parse_args_defaults() -> None:
    args = cli.parse_args([])
    assert args.mode == "render"
    assert args.format == "png"
    assert args.cursor_advance == "measured"
    assert args.port == server.DEFAULT_PORT


def test_render_png(payload_file, icon_dir, tmp_path, capsys) -> None:
    output = tmp_path / "out" / "card.png"
    code = cli.main(
        [
            "--input",
            str(payload_file),
            "--output",
            str(output),
            "--icon-dir",
            str(icon_dir),
            "--no-font-download",
        ]
    )
    assert code == 0
    assert Image.open(output).size == CANVAS_SIZE
    assert "Generated card" in capsys.readouterr().out


def test_render_pdf(payload_file, icon_dir, tmp_path) -> None:
    output = tmp_path / "card.pdf"
    code = cli.main(
        [
            "--input",
            str(payload_file),
            "--output",
            str(output),
            "--format",
            "pdf",
            "--page-size",
            "a4",
            "--icon-dir",
            str(icon_dir),
            "--no-font-download",
        ]
    )
    assert code == 0
    assert output.read_bytes().startswith(b"%PDF")


def test_validation_error_exit_code(tmp_path, capsys) -> None:
    payload = tmp_path / "bad.json"
    payload.write_text(json.dumps({"category": "忍术"}), encoding="utf-8")
    code = cli.main(["--input", str(payload), "--output", str(tmp_path / "x.png")])
    assert code == 1
    assert "name" in capsys.readouterr().err
    assert not (tmp_path / "x.png").exists()


def test_input_required_in_render_mode() -> None:
    with pytest.raises(SystemExit):
        cli.main(["--mode", "render"])


def test_missing_payload_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        cli.main(["--input", str(tmp_path / "missing.json")])


def test_serve_mode_passes_config(monkeypatch, icon_dir) -> None:
    calls = {}

    def fake_serve(host, port, config):
        calls.update(host=host, port=port, config=config)

    monkeypatch.setattr(server, "serve", fake_serve)
    code = cli.main(
        ["--mode", "serve", "--port", "8080", "--icon-dir", str(icon_dir), "--cursor-advance", "estimated"]
    )
    assert code == 0
    assert calls["port"] == 8080
    assert calls["config"]["ICON_DIR"] == icon_dir
    assert calls["config"]["CURSOR_ADVANCE"] == "estimated"
    assert "FONT_PATH" not in calls["config"]
