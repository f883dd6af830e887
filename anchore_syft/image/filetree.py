"""
In-memory file trees used to model the content of image layers and the squashed view across layers.

"""
import posixpath

import treelib
from wcmatch import glob

from anchore_syft.image.file import FileReference, FileType, normalize_path

ROOT = "/"

# `**` spans directories, `*` stops at `/`, dot files are not special
GLOB_FLAGS = glob.GLOBSTAR | glob.DOTGLOB | glob.FORCEUNIX


def tree_id(path):
    return posixpath.basename(path), path, posixpath.dirname(path)


def glob_matches(patterns, path):
    # patterns are matched against root-relative paths
    return glob.globmatch(
        path.lstrip("/"),
        [pattern.lstrip("/") for pattern in patterns],
        flags=GLOB_FLAGS,
    )


class FileTree:
    """
    A tree of file references keyed by absolute path. Intermediate directories that were never explicitly added
    carry no reference.
    """

    def __init__(self, tree=None):
        if tree is None:
            tree = treelib.Tree()
            tree.create_node("", ROOT, data=None)
        self._tree = tree

    def __len__(self):
        return len(self.references())

    def __contains__(self, path):
        return self.has_path(path)

    def copy(self):
        return FileTree(treelib.Tree(self._tree, deep=True))

    def _create_branch(self, path):
        ftoks = path.split("/")
        for i in range(2, len(ftoks)):
            (fname, fid, fparent) = tree_id("/".join(ftoks[0:i]))
            node = self._tree.get_node(fid)
            if not node:
                self._tree.create_node(fname, fid, parent=fparent, data=None)
            elif node.data is not None and not node.data.is_dir():
                # a file in a lower layer replaced by a directory
                node.data = None

    def add_path(self, path, ref: FileReference):
        path = normalize_path(path)
        if path == ROOT:
            return

        self._create_branch(path)
        node = self._tree.get_node(path)
        if node:
            node.data = ref
            if not ref.is_dir():
                self.remove_children(path)
        else:
            (fname, fid, fparent) = tree_id(path)
            self._tree.create_node(fname, fid, parent=fparent, data=ref)

    def remove_path(self, path):
        path = normalize_path(path)
        if path == ROOT:
            self.remove_children(path)
        elif self._tree.contains(path):
            self._tree.remove_node(path)

    def remove_children(self, path):
        path = normalize_path(path)
        if not self._tree.contains(path):
            return
        for child in list(self._tree.children(path)):
            self._tree.remove_node(child.identifier)

    def has_path(self, path):
        return self._tree.contains(normalize_path(path))

    def file(self, path):
        node = self._tree.get_node(normalize_path(path))
        if node:
            return node.data
        return None

    def references(self):
        """
        All references in the tree, parents before children
        """
        ret = []
        for nid in self._tree.expand_tree(nid=ROOT, sorting=True, key=lambda n: n.identifier):
            data = self._tree[nid].data
            if data is not None:
                ret.append(data)
        return ret

    def all_files(self):
        """
        All non-directory references, ordered by path
        """
        return sorted(
            (ref for ref in self.references() if ref.file_type != FileType.DIRECTORY),
            key=lambda ref: ref.path,
        )

    def files_by_glob(self, pattern):
        return [ref for ref in self.all_files() if glob_matches([pattern], ref.path)]
