from __future__ import annotations

import hashlib
import re
import struct
from pathlib import Path

import pytest

from conftest import flac_bytes
from songstash.utils.exceptions import InvalidHashTypeError, UnknownFileType
from songstash.utils.models import FileTypeEnum
from songstash.utils.path_builder import build_content_path, sniff_file_type
from songstash.utils.utils import hash_bytes, write_blob

FLAC = flac_bytes(b"\x10" * 40)

# MPEG-1 layer III, 128kbps, 44.1kHz: 417 byte frames
_MP3_FRAME = b"\xff\xfb\x90\x00" + b"\x00" * 413


def mp3_bytes(with_id3: bool) -> bytes:
    frames = _MP3_FRAME * 5
    if not with_id3:
        return frames
    return b"ID3\x04\x00\x00\x00\x00\x00\x0a" + b"\x00" * 10 + frames


def wav_bytes() -> bytes:
    fmt = struct.pack("<HHIIHH", 1, 2, 44100, 176400, 4, 16)
    samples = b"\x00" * 4
    chunks = (
        b"WAVE"
        + b"fmt "
        + struct.pack("<I", len(fmt))
        + fmt
        + b"data"
        + struct.pack("<I", len(samples))
        + samples
    )
    return b"RIFF" + struct.pack("<I", len(chunks)) + chunks


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (FLAC, FileTypeEnum.FLAC),
        (wav_bytes(), FileTypeEnum.WAV),
        (mp3_bytes(with_id3=True), FileTypeEnum.MP3),
        (mp3_bytes(with_id3=False), FileTypeEnum.MP3),
    ],
)
def test_sniff_file_type_recognises_audio(data: bytes, expected: FileTypeEnum) -> None:
    assert sniff_file_type(data) is expected


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"hello world",
        b"<html><body>403</body></html>",
        "<html>403 Forbidden</html>".encode("utf-16"),
        "<html>403 Forbidden</html>".encode("utf-16-le"),
        b"fLaC" + b"\x00" * 34,
    ],
)
def test_sniff_file_type_rejects_non_audio(data: bytes) -> None:
    with pytest.raises(UnknownFileType):
        sniff_file_type(data)


def test_utf16_error_page_gets_no_content_path() -> None:
    with pytest.raises(UnknownFileType):
        build_content_path("<html>403 Forbidden</html>".encode("utf-16"))


def test_build_content_path_is_deterministic() -> None:
    assert build_content_path(FLAC) == build_content_path(bytes(FLAC))


def test_build_content_path_differs_for_different_bytes() -> None:
    assert build_content_path(FLAC) != build_content_path(FLAC + b"\x01")


def test_build_content_path_shards_by_hash_prefix() -> None:
    digest = hashlib.blake2b(FLAC).hexdigest()

    path = build_content_path(FLAC)

    assert path == f"{digest[0:2]}/{digest[2:4]}/{digest}.flac"


def test_build_content_path_uses_detected_extension() -> None:
    assert build_content_path(mp3_bytes(with_id3=True)).endswith(".mp3")
    assert build_content_path(wav_bytes()).endswith(".wav")


def test_build_content_path_with_md5_matches_legacy_layout() -> None:
    path = build_content_path(FLAC, "MD5")

    assert re.fullmatch(r"[0-9a-f]{2}/[0-9a-f]{2}/[0-9a-f]{32}\.flac", path)
    assert path.endswith(f"{hashlib.md5(FLAC).hexdigest()}.flac")


def test_build_content_path_detects_type_before_hashing() -> None:
    with pytest.raises(UnknownFileType):
        build_content_path(b"not audio", "NOPE")


def test_hash_bytes_rejects_unsupported_algorithm() -> None:
    with pytest.raises(InvalidHashTypeError) as excinfo:
        hash_bytes(b"data", "CRC32")

    assert "BLAKE2B" in excinfo.value.supported_types


def test_hash_bytes_is_case_insensitive() -> None:
    assert hash_bytes(b"data", "sha256") == hashlib.sha256(b"data").hexdigest()


def test_write_blob_creates_sharded_file(tmp_path: Path) -> None:
    path = build_content_path(FLAC)

    assert write_blob(tmp_path, path, FLAC) is True

    target = tmp_path.joinpath(*path.split("/"))
    assert target.read_bytes() == FLAC
    assert not list(target.parent.glob(".songstash_*"))


def test_write_blob_leaves_existing_target_untouched(tmp_path: Path) -> None:
    path = build_content_path(FLAC)
    write_blob(tmp_path, path, FLAC)
    target = tmp_path.joinpath(*path.split("/"))
    mtime = target.stat().st_mtime_ns

    assert write_blob(tmp_path, path, FLAC) is False
    assert target.stat().st_mtime_ns == mtime
    assert target.read_bytes() == FLAC


def test_write_blob_fails_when_data_dir_is_a_file(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    data_dir.write_bytes(b"")

    with pytest.raises(OSError):
        write_blob(data_dir, build_content_path(FLAC), FLAC)
