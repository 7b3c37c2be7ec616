from __future__ import annotations

from pathlib import Path

from icabanken_export.portal import PlaywrightAgent


class _Page:
    def content(self) -> str:
        return "<html><td>9270 12 34567</td></html>"

    def screenshot(self, *, full_page: bool) -> bytes:
        assert full_page is True
        return b"\x89PNG"


def test_save_debug_writes_owner_only_files(tmp_path: Path) -> None:
    agent = PlaywrightAgent()
    agent._page = _Page()
    debug_dir = tmp_path / "debug"

    agent.save_debug(debug_dir=str(debug_dir), name_prefix="failure_x")

    assert debug_dir.stat().st_mode & 0o777 == 0o700
    html = debug_dir / "failure_x.html"
    png = debug_dir / "failure_x.png"
    assert "9270 12 34567" in html.read_text(encoding="utf-8")
    assert png.read_bytes() == b"\x89PNG"
    assert html.stat().st_mode & 0o777 == 0o600
    assert png.stat().st_mode & 0o777 == 0o600


def test_save_debug_tightens_existing_file(tmp_path: Path) -> None:
    stale = tmp_path / "failure_x.html"
    stale.write_text("old", encoding="utf-8")
    stale.chmod(0o644)
    agent = PlaywrightAgent()
    agent._page = _Page()

    agent.save_debug(debug_dir=str(tmp_path), name_prefix="failure_x")

    assert stale.stat().st_mode & 0o777 == 0o600
    assert "old" not in stale.read_text(encoding="utf-8")


def test_save_debug_without_open_page_is_a_no_op(tmp_path: Path) -> None:
    PlaywrightAgent().save_debug(debug_dir=str(tmp_path / "debug"), name_prefix="failure_x")
    assert not (tmp_path / "debug").exists()
