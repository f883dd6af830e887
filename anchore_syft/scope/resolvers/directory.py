import os
import stat

from anchore_syft.image.file import FileReference, FileType, PathNotFoundError
from anchore_syft.image.filetree import glob_matches
from anchore_syft.scope.resolvers.base import Resolver
from anchore_syft.subsys import logger


def _walk_error(err):
    logger.warn("unable to read {} while indexing directory: {}".format(err.filename, err))


class DirectoryResolver(Resolver):
    """
    Resolves paths and globs against a real directory tree. Nothing is cached, every query walks the filesystem.
    """

    def __init__(self, path):
        self.path = os.path.abspath(path)

    def __repr__(self):
        return "<DirectoryResolver path={}>".format(self.path)

    def _full_path(self, path):
        """
        Absolute path under the root for a query path, or None when the query escapes the root
        """
        if path == self.path or path.startswith(self.path.rstrip(os.sep) + os.sep):
            full_path = os.path.normpath(path)
        else:
            full_path = os.path.normpath(os.path.join(self.path, path.lstrip("/")))

        if os.path.commonpath([self.path, full_path]) != self.path:
            return None
        return full_path

    @staticmethod
    def _reference(full_path):
        try:
            file_meta = os.stat(full_path)
        except OSError:
            return None

        if stat.S_ISDIR(file_meta.st_mode):
            file_type = FileType.DIRECTORY
        elif stat.S_ISREG(file_meta.st_mode):
            file_type = FileType.REGULAR
        else:
            file_type = FileType.OTHER
        return FileReference(path=full_path, file_type=file_type)

    def files_by_path(self, *paths):
        refs = []
        for path in paths:
            full_path = self._full_path(path)
            if full_path is None:
                logger.debug("path {} is outside of {}, skipping".format(path, self.path))
                continue
            ref = self._reference(full_path)
            if ref is None:
                logger.spew("path {} does not exist under {}".format(path, self.path))
                continue
            if ref.is_dir():
                continue
            refs.append(ref)
        return refs

    def files_by_glob(self, *patterns):
        refs = []
        for root, dirs, files in os.walk(self.path, onerror=_walk_error):
            dirs.sort()
            for name in sorted(files):
                full_path = os.path.join(root, name)
                rel_path = os.path.relpath(full_path, self.path)
                if not glob_matches(patterns, rel_path):
                    continue
                ref = self._reference(full_path)
                if ref is not None and not ref.is_dir():
                    refs.append(ref)
        return refs

    def relative_file_by_path(self, reference, path):
        refs = self.files_by_path(path)
        if not refs:
            return None
        return refs[0]

    def open_file(self, reference):
        try:
            return open(reference.path, "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as err:
            raise PathNotFoundError(reference.path) from err

    def file_contents_by_ref(self, reference):
        with self.open_file(reference) as FH:
            return FH.read()
