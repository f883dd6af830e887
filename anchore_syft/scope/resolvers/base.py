import abc
import io

from anchore_syft.image.file import FileReference, PathNotFoundError


class Resolver(abc.ABC):
    @abc.abstractmethod
    def files_by_path(self, *paths):
        """
        Return references for the given paths that exist (and are not directories) in this source
        """

    @abc.abstractmethod
    def files_by_glob(self, *patterns):
        """
        Return references for every file matching any of the given glob patterns
        """

    @abc.abstractmethod
    def relative_file_by_path(self, reference: FileReference, path: str):
        """
        Return a reference to the given path as seen from the same view the reference came from, or None
        """

    @abc.abstractmethod
    def file_contents_by_ref(self, reference: FileReference) -> bytes:
        """
        Return the content of the referenced file, raises PathNotFoundError if it cannot be resolved
        """

    def multiple_file_contents_by_ref(self, *references):
        return {ref: self.file_contents_by_ref(ref) for ref in references}

    def open_file(self, reference: FileReference):
        return io.BytesIO(self.file_contents_by_ref(reference))

    def file_contents_by_path(self, path: str) -> bytes:
        refs = self.files_by_path(path)
        if not refs:
            raise PathNotFoundError(path)
        # the last reference is the topmost one for layered sources
        return self.file_contents_by_ref(refs[-1])
