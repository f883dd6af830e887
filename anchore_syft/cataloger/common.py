import dataclasses
import io
import typing

from anchore_syft.pkg import Package
from anchore_syft.subsys import logger

# a parser is given the path of the file being parsed and a text reader over its content
ParserFn = typing.Callable[[str, typing.TextIO], typing.List[Package]]


class GenericCataloger:
    """
    Selects files from a resolver by exact path or by glob, and runs the parser associated with each selection
    over the file content.
    """

    def __init__(
        self,
        name: str,
        path_parsers: typing.Dict[str, ParserFn] = None,
        glob_parsers: typing.Dict[str, ParserFn] = None,
    ):
        self.name = name
        self.path_parsers = dict(path_parsers or {})
        self.glob_parsers = dict(glob_parsers or {})

    def __repr__(self):
        return "<GenericCataloger name={}>".format(self.name)

    def select_files(self, resolver) -> typing.List[tuple]:
        """
        Return (reference, parser) pairs for every file this cataloger is interested in. A file selected by more
        than one path or glob is only parsed by the first parser that selected it.
        """
        selected = []
        seen = set()

        for path, parser in self.path_parsers.items():
            for ref in resolver.files_by_path(path):
                if ref not in seen:
                    seen.add(ref)
                    selected.append((ref, parser))

        for pattern, parser in self.glob_parsers.items():
            for ref in resolver.files_by_glob(pattern):
                if ref not in seen:
                    seen.add(ref)
                    selected.append((ref, parser))

        return selected

    def catalog(self, resolver) -> typing.List[Package]:
        packages = []
        for ref, parser in self.select_files(resolver):
            try:
                with io.TextIOWrapper(
                    resolver.open_file(ref), encoding="utf-8", errors="replace"
                ) as reader:
                    entries = parser(ref.path, reader)
            except Exception as err:
                logger.warn(
                    "cataloger {} unable to parse {}: {}".format(self.name, ref.path, err)
                )
                continue

            for entry in entries:
                packages.append(
                    dataclasses.replace(entry, found_by=self.name, locations=(ref,))
                )

        logger.debug(
            "cataloger {} found {} packages".format(self.name, len(packages))
        )
        return packages
