from anchore_syft.image.file import normalize_path
from anchore_syft.scope.resolvers.base import Resolver


class ImageSquashResolver(Resolver):
    """
    Resolves paths against the squashed view of an image: the merged filesystem of all layers where the topmost
    layer wins.
    """

    def __init__(self, img):
        if img is None:
            raise ValueError("the image must not be None")
        self.img = img

    def __repr__(self):
        return "<ImageSquashResolver img={!r}>".format(self.img)

    def files_by_path(self, *paths):
        tree = self.img.squashed_tree
        seen = set()
        refs = []
        for path in paths:
            ref = tree.file(path)
            if ref is None or ref.is_dir() or ref in seen:
                continue
            seen.add(ref)
            refs.append(ref)
        return refs

    def files_by_glob(self, *patterns):
        tree = self.img.squashed_tree
        seen = set()
        refs = []
        for pattern in patterns:
            for ref in tree.files_by_glob(pattern):
                if ref in seen:
                    continue
                seen.add(ref)
                refs.append(ref)
        return refs

    def relative_file_by_path(self, reference, path):
        ref = self.img.squashed_tree.file(normalize_path(path))
        if ref is None or ref.is_dir():
            return None
        return ref

    def file_contents_by_ref(self, reference):
        return self.img.file_contents_by_ref(reference)
