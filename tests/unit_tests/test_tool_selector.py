"""Unit tests for tool selection and binary resolution."""

from pathlib import Path

import pytest

from shrink_ray.domain.exceptions import ToolNotFoundException
from shrink_ray.domain.tools import ImageTool, VideoTool
from shrink_ray.services import tool_selector
from shrink_ray.services.tool_selector import BinaryCache, select_tool


@pytest.fixture
def binaries(tmp_path) -> BinaryCache:
    gm = tmp_path / "gm"
    ffmpeg = tmp_path / "ffmpeg"
    gm.write_text("")
    ffmpeg.write_text("")
    return BinaryCache(tool_dir=None, environ={"RAY_BIN_GM": str(gm), "RAY_BIN_FFMPEG": str(ffmpeg)})


@pytest.mark.parametrize("mime", ["image/png", "image/jpeg", "image/webp"])
def test_images_use_graphicsmagick(binaries, mime):
    tool = select_tool(mime, binaries)
    assert isinstance(tool, ImageTool)
    assert tool.binary == Path(binaries.environ["RAY_BIN_GM"])
    assert tool.extension == ".jpg"


def test_videos_use_ffmpeg(binaries):
    tool = select_tool("video/mp4", binaries)
    assert isinstance(tool, VideoTool)
    assert tool.binary == Path(binaries.environ["RAY_BIN_FFMPEG"])
    assert tool.extension == ".webm"


@pytest.mark.parametrize("mime", ["image/gif", "text/plain", "application/pdf", "audio/mpeg"])
def test_unsupported_types_are_not_errors(binaries, mime):
    assert select_tool(mime, binaries) is None


def test_env_override_pointing_nowhere(tmp_path):
    binaries = BinaryCache(tool_dir=None, environ={"RAY_BIN_GM": str(tmp_path / "missing")})
    with pytest.raises(ToolNotFoundException) as excinfo:
        binaries.resolve("gm")
    assert excinfo.value.path == tmp_path / "missing"


def test_tool_dir_is_searched_before_path(tmp_path, monkeypatch):
    (tmp_path / "ffprobe").write_text("")
    monkeypatch.setattr(tool_selector.shutil, "which", lambda name: pytest.fail("PATH searched"))
    binaries = BinaryCache(tool_dir=tmp_path, environ={})
    assert binaries.resolve("ffprobe") == tmp_path / "ffprobe"


def test_system_path_fallback(tmp_path, monkeypatch):
    monkeypatch.setattr(tool_selector.shutil, "which", lambda name: f"/usr/bin/{name}")
    binaries = BinaryCache(tool_dir=tmp_path, environ={})
    assert binaries.resolve("gm") == Path("/usr/bin/gm")


def test_missing_everywhere(monkeypatch):
    monkeypatch.setattr(tool_selector.shutil, "which", lambda name: None)
    with pytest.raises(ToolNotFoundException, match="binary `gm` not found"):
        BinaryCache(tool_dir=None, environ={}).resolve("gm")


def test_results_are_cached(monkeypatch):
    calls = []

    def which(name):
        calls.append(name)
        return f"/opt/bin/{name}"

    monkeypatch.setattr(tool_selector.shutil, "which", which)
    binaries = BinaryCache(tool_dir=None, environ={})
    assert binaries.resolve("ffmpeg") == binaries.resolve("ffmpeg")
    assert calls == ["ffmpeg"]
