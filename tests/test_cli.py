"""Tests for the solarsite CLI."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from solarsite.cli import app

UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a throwaway database and upload directory."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setenv("SOLARSITE_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("SOLARSITE_UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("SOLARSITE_LOG_LEVEL", "WARNING")
    return upload_dir


@pytest.fixture
def image_dir(tmp_path: Path, make_image) -> Path:
    source = tmp_path / "incoming"
    source.mkdir()
    (source / "roof.jpg").write_bytes(make_image(1500, 1000))
    (source / "logo.png").write_bytes(make_image(120, 120, "PNG"))
    (source / "notes.txt").write_text("not an image")
    return source


def _ingest_ids(output: str) -> list[str]:
    return UUID_RE.findall(output)


def test_init_db(cli_env: Path) -> None:
    result = runner.invoke(app, ["init-db"])

    assert result.exit_code == 0
    assert "Database initialized" in result.output


def test_ingest_directory(cli_env: Path, image_dir: Path) -> None:
    result = runner.invoke(app, ["ingest", str(image_dir)])

    assert result.exit_code == 0, result.output
    assert "2 ingested, 0 failed" in result.output
    assert len(_ingest_ids(result.output)) == 2
    # roof: canonical + large + medium + thumb; logo: canonical + thumb
    assert len(list(cli_env.iterdir())) == 6


def test_ingest_reports_failures(cli_env: Path, image_dir: Path) -> None:
    (image_dir / "broken.jpg").write_bytes(b"not really a jpeg")

    result = runner.invoke(app, ["ingest", str(image_dir)])

    assert result.exit_code == 1
    assert "2 ingested, 1 failed" in result.output


def test_ingest_missing_path(cli_env: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["ingest", str(tmp_path / "nowhere")])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_list_and_show(cli_env: Path, image_dir: Path) -> None:
    ingested = runner.invoke(app, ["ingest", str(image_dir / "roof.jpg"), "--alt", "Roof array"])
    [asset_id] = _ingest_ids(ingested.output)

    listed = runner.invoke(app, ["list"])
    shown = runner.invoke(app, ["show", asset_id[:8]])

    assert listed.exit_code == 0
    assert "Media assets (1)" in listed.output
    assert shown.exit_code == 0, shown.output
    assert asset_id in shown.output
    assert "Roof array" in shown.output
    assert "thumbnail" in shown.output


def test_show_unknown_prefix(cli_env: Path) -> None:
    runner.invoke(app, ["init-db"])

    result = runner.invoke(app, ["show", "ffffffff"])

    assert result.exit_code == 1
    assert "No media asset found" in result.output


def test_verify_detects_missing_files(cli_env: Path, image_dir: Path) -> None:
    runner.invoke(app, ["ingest", str(image_dir / "roof.jpg")])

    healthy = runner.invoke(app, ["verify"])
    next(p for p in cli_env.iterdir() if p.name.endswith("-thumb.webp")).unlink()
    broken = runner.invoke(app, ["verify"])

    assert healthy.exit_code == 0
    assert "0 with missing files" in healthy.output
    assert broken.exit_code == 1
    assert "1 with missing files" in broken.output


def test_delete(cli_env: Path, image_dir: Path) -> None:
    ingested = runner.invoke(app, ["ingest", str(image_dir / "roof.jpg")])
    [asset_id] = _ingest_ids(ingested.output)

    result = runner.invoke(app, ["delete", asset_id, "--yes"])

    assert result.exit_code == 0, result.output
    assert "Deleted" in result.output
    assert list(cli_env.iterdir()) == []
    assert "No media assets" in runner.invoke(app, ["list"]).output


def test_serve_uses_app_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda *args, **kwargs: calls.append((args, kwargs)))

    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0, result.output
    [(args, kwargs)] = calls
    assert args == ("solarsite.app:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9000
