"""
Image backend: detects image sources, loads images into layered file trees and releases on-disk state.
"""
from anchore_syft.image.file import FileReference, FileType, PathNotFoundError
from anchore_syft.image.filetree import FileTree
from anchore_syft.image.image import Image, Layer
from anchore_syft.image.provider import ImageLoadError, ImageProvider, cleanup
from anchore_syft.image.source import (
    ImageDetectionError,
    SourceType,
    canonical_location,
    detect_source,
)
