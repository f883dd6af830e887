from anchore_syft.image.file import PathNotFoundError, normalize_path
from anchore_syft.scope.resolvers.base import Resolver


def _sorted_refs(refs):
    return sorted(refs, key=lambda ref: (ref.path, ref.layer_index))


class AllLayersResolver(Resolver):
    """
    Resolves paths against the content of every layer of an image. A path written by more than one layer is
    returned once per layer, and files removed by a later layer are still reported. Whether such duplicates exist
    depends entirely on how the image was built.
    """

    def __init__(self, img, layers=None):
        if img is None:
            raise ValueError("the image must not be None")

        if layers is None:
            layers = range(len(img.layers))

        layers = sorted(set(layers))
        for idx in layers:
            if not 0 <= idx < len(img.layers):
                raise ValueError(
                    "invalid layer index {} (image has {} layers)".format(
                        idx, len(img.layers)
                    )
                )

        self.img = img
        self.layers = layers

    def __repr__(self):
        return "<AllLayersResolver img={!r} layers={}>".format(self.img, self.layers)

    def files_by_path(self, *paths):
        seen = set()
        refs = []
        for path in paths:
            for idx in self.layers:
                ref = self.img.layers[idx].tree.file(path)
                if ref is None or ref.is_dir() or ref in seen:
                    continue
                seen.add(ref)
                refs.append(ref)
        return refs

    def files_by_glob(self, *patterns):
        seen = set()
        for pattern in patterns:
            for idx in self.layers:
                seen.update(self.img.layers[idx].tree.files_by_glob(pattern))
        return _sorted_refs(seen)

    def relative_file_by_path(self, reference, path):
        # resolved from the view of the image as of the reference's layer
        if reference.layer_index is None or not 0 <= reference.layer_index < len(self.img.layers):
            return None
        ref = self.img.layers[reference.layer_index].squashed_tree.file(normalize_path(path))
        if ref is None or ref.is_dir():
            return None
        return ref

    def file_contents_by_ref(self, reference):
        return self.img.file_contents_by_ref(reference)

    def file_contents_by_path(self, path):
        if not self.layers:
            raise PathNotFoundError(path)
        # topmost write wins, exactly as in the squashed view
        ref = self.img.layers[self.layers[-1]].squashed_tree.file(path)
        if ref is None or ref.is_dir():
            raise PathNotFoundError(path)
        return self.file_contents_by_ref(ref)
