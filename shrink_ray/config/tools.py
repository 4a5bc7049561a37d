"""
Configuration settings for the external compressors.

This module defines the binary names, the output formats and the fixed argv
fragments passed to GraphicsMagick (images) and FFmpeg (videos).
"""

# Environment variables named RAY_BIN_<TOOL> override binary lookup.
BINARY_ENV_PREFIX = "RAY_BIN_"

# --- Image Settings (GraphicsMagick) ---
IMAGE_TOOL = "gm"
IMAGE_EXTENSION = ".jpg"
IMAGE_OUTPUT_FORMAT = "jpeg"
# MIME types that look like images but cannot be converted faithfully.
UNSUPPORTED_IMAGE_TYPES = ("image/gif",)
IMAGE_COMMENT_LABEL = "Comment:"

# --- Video Settings (FFmpeg) ---
VIDEO_TOOL = "ffmpeg"
VIDEO_PROBE_TOOL = "ffprobe"
VIDEO_EXTENSION = ".webm"
VIDEO_OUTPUT_FORMAT = "webm"
VIDEO_COMMON_ARGS = ["-hide_banner", "-loglevel", "error", "-y"]
VIDEO_CODEC_ARGS = ["-c:v", "vp9"]
VIDEO_FIRST_PASS_ARGS = ["-an", "-sn", "-strict", "-2", "-row-mt", "1"]
VIDEO_SECOND_PASS_ARGS = ["-c:a", "opus", "-strict", "-2", "-row-mt", "1"]
# FFmpeg appends this to the -passlogfile prefix for the first (only) stream.
VIDEO_PASS_LOG_SUFFIX = "-0.log"
VIDEO_COMMENT_TAG = "comment"
