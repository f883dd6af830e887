import enum
import posixpath
import tarfile
from dataclasses import dataclass
from typing import Optional

from anchore_syft.utils import SyftException


class FileType(enum.Enum):
    REGULAR = "regular"
    HARDLINK = "hardlink"
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class FileReference:
    """
    Identity of a single resolvable file. The layer index is None for files that live on a plain filesystem.
    """

    path: str
    layer_index: Optional[int] = None
    file_type: FileType = FileType.REGULAR
    link_target: str = ""

    def is_dir(self):
        return self.file_type == FileType.DIRECTORY


class PathNotFoundError(SyftException):
    def __init__(self, path, msg="path not found"):
        self.path = str(path)
        self.msg = msg

    def __str__(self):
        return "{}: {}".format(self.msg, self.path)

    def __repr__(self):
        return "<{} path={!r} msg={!r}>".format(
            self.__class__.__name__, self.path, self.msg
        )


def normalize_path(path: str) -> str:
    """
    Normalize a path (tar member names, user glob results, link targets) to an absolute posix path
    """
    normalized = posixpath.normpath("/" + path)
    # normpath preserves exactly two leading slashes
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def file_type_from_member(member: tarfile.TarInfo) -> FileType:
    if member.isdir():
        return FileType.DIRECTORY
    if member.issym():
        return FileType.SYMLINK
    if member.islnk():
        return FileType.HARDLINK
    if member.isreg():
        return FileType.REGULAR
    return FileType.OTHER
