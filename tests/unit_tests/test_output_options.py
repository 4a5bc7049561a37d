"""Unit tests for the output path policy and tool argv contracts."""

import re
from pathlib import Path

from shrink_ray.domain.job import OutputOptions
from shrink_ray.domain.tools import ImageTool, VideoTool


def test_default_is_temp_name_next_to_input(tmp_path):
    options = OutputOptions()
    output = options.resolve(tmp_path / "photo.png", ".jpg", claim=False)
    assert options.should_replace()
    assert output.parent == tmp_path
    assert re.fullmatch(r"photo-[a-z0-9]{8}\.jpg", output.name)
    assert not output.exists()


def test_default_can_claim(tmp_path):
    output = OutputOptions().resolve(tmp_path / "photo.png", ".jpg")
    assert output.exists()


def test_explicit_file(tmp_path):
    options = OutputOptions(file=tmp_path / "out.bin")
    assert not options.should_replace()
    assert options.resolve(Path("in.png"), ".jpg") == tmp_path / "out.bin"


def test_prefix_appends_extension():
    options = OutputOptions(prefix=Path("out/small"))
    assert options.resolve(Path("in.png"), ".jpg") == Path("out/small.jpg")


def test_directory_keeps_input_stem():
    options = OutputOptions(directory=Path("converted"))
    assert options.resolve(Path("videos/clip.mp4"), ".webm") == Path("converted/clip.webm")


def test_image_convert_args():
    tool = ImageTool(Path("/usr/bin/gm"))
    assert tool.convert_args(Path("a.png"), Path("a-x.jpg"), "shrink-ray/1.0.0") == [
        "/usr/bin/gm", "convert", "a.png", "-strip", "-comment", "shrink-ray/1.0.0", "jpeg:a-x.jpg",
    ]


def test_video_passes_share_pass_log():
    tool = VideoTool(Path("ffmpeg"))
    output = Path("out/clip.webm")
    pass_log = Path("videos/clip-abcd1234-0.log")
    first = tool.first_pass_args(Path("videos/clip.mp4"), pass_log)
    second = tool.second_pass_args(Path("videos/clip.mp4"), output, "shrink-ray/1.0.0", pass_log)

    assert first[first.index("-passlogfile") + 1] == "videos/clip-abcd1234"
    assert second[second.index("-passlogfile") + 1] == "videos/clip-abcd1234"
    assert first[-3:] == ["-f", "null", "-"]
    assert second[-3:] == ["-f", "webm", "out/clip.webm"]
    assert "comment=shrink-ray/1.0.0" in second
    assert "-an" in first and "-c:a" not in first


def test_pass_log_is_allocated_next_to_input(tmp_path):
    (tmp_path / "clip-0.log").write_text("user data")
    pass_log = VideoTool.allocate_pass_log(tmp_path / "clip.mp4", claim=True)

    assert pass_log.parent == tmp_path
    assert re.fullmatch(r"clip-[a-z0-9]{8}-0\.log", pass_log.name)
    assert pass_log.exists()
    assert VideoTool.pass_log_prefix(pass_log).name == pass_log.name[: -len("-0.log")]
    assert (tmp_path / "clip-0.log").read_text() == "user data"
