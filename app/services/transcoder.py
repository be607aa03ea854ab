# app/services/transcoder.py
"""
Re-encodes uploaded clips into a browser friendly H.264 MP4 with ffmpeg.

Best-effort: every failure is raised as a TranscodeError subclass and the
caller keeps the original file. The source is never modified; ffmpeg writes
into a temporary file which is renamed onto the target only after a
successful run.
"""

import os
import shutil
import subprocess
from typing import Optional

from app.errors import TranscodeFailed, TranscodeUnavailable
from app.utils.logger import get_logger

logger = get_logger(__name__)


def target_path_for(source_path: str) -> str:
    stem, ext = os.path.splitext(source_path)
    if ext.lower() == ".mp4":
        return f"{stem}.web.mp4"
    return f"{stem}.mp4"


class FFmpegTranscoder:
    def __init__(
        self,
        binary: str = "ffmpeg",
        enabled: bool = True,
        video_codec: str = "libx264",
        crf: int = 21,
        scale: str = "w=320:h=240",
        timeout: Optional[float] = 300,
    ):
        self.binary = binary
        self.enabled = enabled
        self.video_codec = video_codec
        self.crf = crf
        self.scale = scale
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return self.enabled and shutil.which(self.binary) is not None

    def build_command(self, source_path: str, output_path: str) -> list[str]:
        return [
            self.binary, "-nostdin", "-loglevel", "error",
            "-i", source_path,
            "-c:v", self.video_codec,
            "-crf", str(self.crf),
            "-vf", f"scale={self.scale}",
            "-f", "mp4",
            "-y", output_path,
        ]

    def transcode(self, source_path: str) -> str:
        """Returns the path of the new video. Raises TranscodeUnavailable / TranscodeFailed."""
        if not self.enabled:
            raise TranscodeUnavailable("transcoding disabled")
        if shutil.which(self.binary) is None:
            raise TranscodeUnavailable(f"encoder {self.binary!r} not found")

        target = target_path_for(source_path)
        partial = target + ".part"
        cmd = self.build_command(source_path, partial)

        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            _discard(partial)
            raise TranscodeFailed(f"ffmpeg timed out after {self.timeout}s") from e
        except OSError as e:
            _discard(partial)
            raise TranscodeFailed(f"cannot run {self.binary}: {e}") from e

        if result.returncode != 0:
            _discard(partial)
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise TranscodeFailed(f"ffmpeg exited with {result.returncode}: {stderr[-500:]}")

        if not os.path.isfile(partial) or os.path.getsize(partial) == 0:
            _discard(partial)
            raise TranscodeFailed("ffmpeg produced no output")

        try:
            os.replace(partial, target)
        except OSError as e:
            _discard(partial)
            raise TranscodeFailed(f"cannot move output into place: {e}") from e

        logger.info(f"[TRANSCODE] {os.path.basename(source_path)} → {os.path.basename(target)}")
        return target


def _discard(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[TRANSCODE] Could not remove partial output {path}: {e}")
