"""Shared pytest configuration, marker assignment and fakes for the compressors."""

import stat
import sys
import textwrap
from pathlib import Path

import pytest

from shrink_ray.services.identification import Identifier
from shrink_ray.services.report import ReportSink
from shrink_ray.services.tool_selector import BinaryCache


def pytest_collection_modifyitems(config, items):
    """Attach suite markers based on test file path."""
    del config
    for item in items:
        parts = set(Path(str(item.fspath)).parts)
        if "integration_tests" in parts:
            item.add_marker(pytest.mark.integration)
        elif "unit_tests" in parts:
            item.add_marker(pytest.mark.unit)


class RecordingReport(ReportSink):
    """Keeps every event as a tuple, in order."""

    def __init__(self):
        self.events = []

    def names(self):
        return [event[0] for event in self.events]

    def lines(self):
        return [event[-1] for event in self.events if event[0] == "output"]

    def processing_started(self, path):
        self.events.append(("started", path))

    def processing_tick(self, path, progress, cancelling):
        self.events.append(("tick", path, progress, cancelling))

    def processing_output(self, path, progress, cancelling, line):
        self.events.append(("output", path, progress, cancelling, line))

    def processing_finished(self):
        self.events.append(("finished",))

    def shrunk(self, path, delta):
        self.events.append(("shrunk", path, delta))

    def grew(self, path, delta):
        self.events.append(("grew", path, delta))

    def skipped(self, path, reason):
        self.events.append(("skipped", path, reason))

    def failed(self, path, reason):
        self.events.append(("failed", path, reason))

    def cancelled(self, path):
        self.events.append(("cancelled", path))

    def command(self, argv):
        self.events.append(("command", list(argv)))

    def statistics(self, stats):
        self.events.append(("statistics", stats))


class FakeCookie:
    """Stands in for a `magic.Magic` handle; classifies the fake media files by header."""

    HEADERS = {
        b"IMG": "image/png",
        b"GIF": "image/gif",
        b"VID": "video/mp4",
    }

    def __init__(self):
        self.calls = 0

    def from_buffer(self, data):
        self.calls += 1
        return self.HEADERS.get(data[:3], "text/plain")


def make_identifier():
    identifier = Identifier()
    identifier._magic = FakeCookie()
    return identifier


def write_media(path: Path, header: str, comment=None, size: int = 1000) -> Path:
    """Writes a fake media file: a header line, an optional comment line, then padding."""
    head = f"{header}\n"
    if comment is not None:
        head += f"comment={comment}\n"
    data = head.encode() + b"x" * max(0, size - len(head))
    path.write_bytes(data)
    return path


_COMMON = '''
import os
import sys


def read_comment(path):
    with open(path, "rb") as f:
        for raw in f.read(4096).split(b"\\n")[:2]:
            line = raw.decode("utf-8", "replace")
            if line.startswith("comment="):
                return line[len("comment="):]
    return None


def write_output(path, header, marker, input_path):
    factor = float(os.environ.get("FAKE_SIZE_FACTOR", "0.5"))
    head = f"{header}\\ncomment={marker}\\n".encode()
    target = int(os.path.getsize(input_path) * factor)
    with open(path, "wb") as f:
        f.write(head + b"x" * max(0, target - len(head)))
'''

FAKE_GM = _COMMON + '''

def hang_until_interrupted(output):
    import signal
    import time

    def on_interrupt(signum, frame):
        sys.stderr.write("interrupted\\n")
        sys.stderr.flush()
        sys.exit(0)

    signal.signal(signal.SIGINT, on_interrupt)
    with open(output, "wb") as f:
        f.write(b"partial")
    print("ready", flush=True)
    time.sleep(30)


command = sys.argv[1]
if command == "identify":
    path = sys.argv[-1]
    print(f"Image: {path}")
    print("  Format: PNG (Portable Network Graphics)")
    comment = read_comment(path)
    if comment is not None:
        print(f"  Comment: {comment}")
elif command == "convert":
    input_path = sys.argv[2]
    marker = sys.argv[sys.argv.index("-comment") + 1]
    output = sys.argv[-1].split(":", 1)[1]
    if os.environ.get("FAKE_HANG"):
        hang_until_interrupted(output)
    if os.environ.get("FAKE_FAIL"):
        with open(output, "wb") as f:
            f.write(b"partial")
        sys.stderr.write("gm convert: corrupt image\\n")
        sys.exit(3)
    write_output(output, "IMG", marker, input_path)
else:
    sys.exit(2)
'''

FAKE_FFMPEG = _COMMON + '''

args = sys.argv[1:]
input_path = args[args.index("-i") + 1]
pass_number = args[args.index("-pass") + 1]
log_file = args[args.index("-passlogfile") + 1] + "-0.log"
output = args[-1]
fail_pass = os.environ.get("FAKE_FAIL_PASS")

if pass_number == "1":
    with open(log_file, "w") as f:
        f.write("stats\\n")
    if fail_pass == "1":
        sys.stderr.write("pass 1 failed\\n")
        sys.exit(1)
else:
    if not os.path.exists(log_file):
        sys.stderr.write("missing pass log\\n")
        sys.exit(1)
    marker = args[args.index("-metadata") + 1].split("=", 1)[1]
    if fail_pass == "2":
        with open(output, "wb") as f:
            f.write(b"partial")
        sys.stderr.write("pass 2 failed\\n")
        sys.exit(1)
    write_output(output, "VID", marker, input_path)
'''

FAKE_FFPROBE = _COMMON + '''
import json

path = sys.argv[-1]
comment = read_comment(path)
fmt = {"filename": path}
if comment is not None:
    fmt["tags"] = {"COMMENT": comment}
print(json.dumps({"format": fmt, "streams": [{"index": 0, "codec_type": "video"}]}))
'''


def _install_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_binaries(tmp_path) -> BinaryCache:
    """A `BinaryCache` whose gm, ffmpeg and ffprobe are small Python scripts."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    environ = {
        "RAY_BIN_GM": str(_install_script(bin_dir, "gm", FAKE_GM)),
        "RAY_BIN_FFMPEG": str(_install_script(bin_dir, "ffmpeg", FAKE_FFMPEG)),
        "RAY_BIN_FFPROBE": str(_install_script(bin_dir, "ffprobe", FAKE_FFPROBE)),
    }
    return BinaryCache(tool_dir=None, environ=environ)


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def report() -> RecordingReport:
    return RecordingReport()
