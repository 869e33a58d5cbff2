"""Content-addressed path building for stored audio blobs.

Blob paths are a pure function of the bytes: the file type is detected by
parsing the content with mutagen and the name is the content hash, sharded
over two directory levels to bound fan-out:

    <hash[0:2]>/<hash[2:4]>/<hash>.<extension>
"""

import io

import mutagen
from mutagen import MutagenError
from mutagen.aac import AAC
from mutagen.flac import FLAC
from mutagen.monkeysaudio import MonkeysAudio
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from .exceptions import UnknownFileType
from .models import FileTypeEnum
from .utils import hash_bytes

_FILE_TYPES: dict[type[mutagen.FileType], FileTypeEnum] = {
    FLAC: FileTypeEnum.FLAC,
    WAVE: FileTypeEnum.WAV,
    MonkeysAudio: FileTypeEnum.APE,
    OggVorbis: FileTypeEnum.OGG,
    OggOpus: FileTypeEnum.OPUS,
    MP4: FileTypeEnum.M4A,
    MP3: FileTypeEnum.MP3,
    AAC: FileTypeEnum.AAC,
}

# mutagen only scores these by file name or a leading ID3 tag, so bare
# streams are parsed explicitly
_STREAM_TYPES: tuple[type[mutagen.FileType], ...] = (MP3, AAC)


def _load_audio(data: bytes) -> mutagen.FileType | None:
    try:
        audio = mutagen.File(io.BytesIO(data))
    except MutagenError:
        audio = None
    if audio is not None:
        return audio

    for kind in _STREAM_TYPES:
        try:
            return kind(io.BytesIO(data))
        except MutagenError:
            continue
    return None


def sniff_file_type(data: bytes) -> FileTypeEnum:
    """Detects the audio file type by parsing the content.

    Args:
        data: File content.

    Returns:
        The detected FileTypeEnum.

    Raises:
        UnknownFileType: If mutagen cannot parse the content as one of the
            supported audio formats.
    """
    audio = _load_audio(data)
    file_type = _FILE_TYPES.get(type(audio)) if audio is not None else None
    if file_type is None:
        raise UnknownFileType(data[:64])
    return file_type


def build_content_path(data: bytes, hash_type: str = "BLAKE2B") -> str:
    """Builds the relative storage path of a blob.

    The type is detected before hashing so unidentified content never gets
    a path. Nothing is written.

    Args:
        data: File content.
        hash_type: Hash algorithm name, see hash_bytes.

    Returns:
        Relative path with POSIX separators.

    Raises:
        UnknownFileType: If the content type cannot be determined.
        InvalidHashTypeError: If hash_type is not supported.
    """
    file_type = sniff_file_type(data)
    digest = hash_bytes(data, hash_type)
    return f"{digest[0:2]}/{digest[2:4]}/{digest}.{file_type.extension}"
