"""
Container image model: an OCI layout on disk read into per-layer file trees and squashed views.

"""
import io
import json
import os
import posixpath
import tarfile

from anchore_syft.image.file import (
    FileReference,
    FileType,
    PathNotFoundError,
    file_type_from_member,
    normalize_path,
)
from anchore_syft.image.filetree import FileTree
from anchore_syft.subsys import logger

WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"
MAX_LINK_DEPTH = 40

OCI_INDEX_FILE = "index.json"
MANIFEST_LIST_MEDIA_TYPES = [
    "application/vnd.oci.image.index.v1+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
]
DEFAULT_PLATFORM = {"os": "linux", "architecture": "amd64"}


def get_digest_value(digest_with_algorithm_prefix: str):
    return digest_with_algorithm_prefix.split(":", 1)[1]


class Layer:
    """
    A single image layer. The tree holds only what this layer's archive contains (whiteout markers excluded),
    the squashed tree holds the merged view of this layer over every layer below it.
    """

    def __init__(self, index, digest, media_type, tar_path):
        self.index = index
        self.digest = digest
        self.media_type = media_type
        self.tar_path = tar_path
        self.size = 0
        self.tree = FileTree()
        self.squashed_tree = None
        self.whiteouts = []
        self.opaque_dirs = []
        self._member_names = {}

    def __repr__(self):
        return "<Layer index={} digest={}>".format(self.index, self.digest)

    def read(self):
        logger.debug("processing layer {} - {}".format(self.digest, self.tar_path))
        self.size = os.path.getsize(self.tar_path)
        with tarfile.open(self.tar_path, mode="r", format=tarfile.PAX_FORMAT) as tf:
            for member in tf.getmembers():
                path = normalize_path(member.name)
                basename = posixpath.basename(path)
                dirname = posixpath.dirname(path)

                if basename == OPAQUE_WHITEOUT:
                    self.opaque_dirs.append(dirname)
                    continue

                if basename.startswith(WHITEOUT_PREFIX):
                    self.whiteouts.append(
                        posixpath.join(dirname, basename[len(WHITEOUT_PREFIX) :])
                    )
                    continue

                link_target = ""
                if member.issym():
                    link_target = member.linkname
                elif member.islnk():
                    link_target = normalize_path(member.linkname)

                self._member_names[path] = member.name
                self.tree.add_path(
                    path,
                    FileReference(
                        path=path,
                        layer_index=self.index,
                        file_type=file_type_from_member(member),
                        link_target=link_target,
                    ),
                )

    def squash(self, lower_tree=None):
        """
        Build the squashed view of this layer on top of the given lower squashed tree. Whiteouts only apply to
        content from lower layers, so they are processed before this layer's own additions.
        """
        tree = lower_tree.copy() if lower_tree is not None else FileTree()
        for opaque_dir in self.opaque_dirs:
            tree.remove_children(opaque_dir)
        for whiteout in self.whiteouts:
            tree.remove_path(whiteout)
        for ref in self.tree.references():
            tree.add_path(ref.path, ref)

        self.squashed_tree = tree
        return tree

    def member_name(self, path):
        return self._member_names.get(normalize_path(path))


class Image:
    """
    An image read from an OCI layout directory
    """

    def __init__(self, oci_dir, reference="", source=None):
        self.oci_dir = oci_dir
        self.reference = reference
        self.source = source
        self.digest = None
        self.manifest = None
        self.config = None
        self.layers = []

    def __repr__(self):
        return "<Image reference={} digest={} layers={}>".format(
            self.reference, self.digest, len(self.layers)
        )

    def blob_path(self, digest):
        algorithm, value = digest.split(":", 1)
        return os.path.join(self.oci_dir, "blobs", algorithm, value)

    def _load_blob_json(self, digest):
        path = self.blob_path(digest)
        if not os.path.exists(path):
            raise Exception("blob {} not found in {}".format(digest, self.oci_dir))
        with open(path, "r") as FH:
            return json.loads(FH.read())

    @staticmethod
    def _select_manifest(descriptors):
        for descriptor in descriptors:
            platform = descriptor.get("platform", {})
            if all(platform.get(k) == v for k, v in DEFAULT_PLATFORM.items()):
                return descriptor
        return descriptors[0]

    def _resolve_manifest(self):
        index_path = os.path.join(self.oci_dir, OCI_INDEX_FILE)
        if not os.path.exists(index_path):
            raise Exception("no {} found in {}".format(OCI_INDEX_FILE, self.oci_dir))

        with open(index_path, "r") as FH:
            index = json.loads(FH.read())

        descriptors = index.get("manifests", [])
        if not descriptors:
            raise Exception("no manifests found in {}".format(index_path))

        descriptor = self._select_manifest(descriptors)
        manifest = self._load_blob_json(descriptor["digest"])

        if (
            manifest.get("mediaType") in MANIFEST_LIST_MEDIA_TYPES
            or "manifests" in manifest
        ):
            descriptor = self._select_manifest(manifest.get("manifests", []))
            manifest = self._load_blob_json(descriptor["digest"])

        return descriptor["digest"], manifest

    def read(self):
        """
        Read the manifest, config and every layer, then compute the squashed tree of each layer
        """
        self.digest, self.manifest = self._resolve_manifest()
        self.config = self._load_blob_json(self.manifest["config"]["digest"])

        self.layers = []
        squashed = None
        for index, layer_descriptor in enumerate(self.manifest.get("layers", [])):
            tar_path = self.blob_path(layer_descriptor["digest"])
            if not os.path.exists(tar_path):
                raise Exception(
                    "layer blob {} not found in {}".format(
                        layer_descriptor["digest"], self.oci_dir
                    )
                )

            layer = Layer(
                index=index,
                digest=layer_descriptor["digest"],
                media_type=layer_descriptor.get("mediaType", ""),
                tar_path=tar_path,
            )
            layer.read()
            squashed = layer.squash(squashed)
            self.layers.append(layer)

        logger.debug("read image {} with {} layers".format(self.reference, len(self.layers)))
        return self

    @property
    def id(self):
        if self.manifest:
            return self.manifest["config"]["digest"]
        return None

    @property
    def squashed_tree(self):
        if not self.layers:
            return FileTree()
        return self.layers[-1].squashed_tree

    def file_contents_by_ref(self, ref: FileReference) -> bytes:
        return self._read_contents(ref, 0)

    def open_file(self, ref: FileReference):
        return io.BytesIO(self.file_contents_by_ref(ref))

    def _layer_for(self, ref):
        if ref.layer_index is None or not 0 <= ref.layer_index < len(self.layers):
            raise PathNotFoundError(ref.path, msg="reference does not belong to this image")
        return self.layers[ref.layer_index]

    def _resolve_link(self, layer, ref, target_path, depth):
        target_ref = layer.squashed_tree.file(target_path)
        if target_ref is None:
            raise PathNotFoundError(
                target_path, msg="link target of {} not found".format(ref.path)
            )
        return self._read_contents(target_ref, depth + 1)

    def _read_contents(self, ref, depth):
        if depth > MAX_LINK_DEPTH:
            raise PathNotFoundError(ref.path, msg="too many levels of links")

        layer = self._layer_for(ref)

        if ref.file_type == FileType.DIRECTORY:
            raise PathNotFoundError(ref.path, msg="path is a directory")

        if ref.file_type == FileType.SYMLINK:
            target = ref.link_target
            if not target.startswith("/"):
                target = posixpath.join(posixpath.dirname(ref.path), target)
            return self._resolve_link(layer, ref, normalize_path(target), depth)

        member_name = layer.member_name(ref.path)
        if member_name is None:
            raise PathNotFoundError(ref.path, msg="path not found in layer {}".format(layer.digest))

        with tarfile.open(layer.tar_path, mode="r", format=tarfile.PAX_FORMAT) as tf:
            member = tf.getmember(member_name)
            try:
                fh = tf.extractfile(member)
            except KeyError:
                # hardlink to content that lives in a lower layer
                fh = None

            if fh is not None:
                with fh:
                    return fh.read()

        if ref.file_type == FileType.HARDLINK:
            return self._resolve_link(layer, ref, ref.link_target, depth)

        raise PathNotFoundError(ref.path, msg="path has no readable content")
