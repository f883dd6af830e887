"""
Package model produced by catalogers. Metadata is a closed set of variants keyed by the package type.
"""
import enum
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple


class Language(enum.Enum):
    RUBY = "ruby"


class PackageType(enum.Enum):
    GEM = "gem"
    BUNDLE = "bundle"


@dataclass(frozen=True)
class GemMetadata:
    name: str
    version: str
    homepage: str = ""
    authors: List[str] = field(default_factory=list)
    licenses: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)


# the allowed metadata variant per package type, None means the type carries no metadata
METADATA_TYPES = {
    PackageType.GEM: GemMetadata,
    PackageType.BUNDLE: None,
}


@dataclass(frozen=True)
class Package:
    name: str
    version: str
    language: Language
    type: PackageType
    metadata: Optional[GemMetadata] = None
    found_by: str = ""
    locations: Tuple = ()

    def __post_init__(self):
        if self.type not in METADATA_TYPES:
            raise ValueError("unsupported package type: {}".format(self.type))

        if self.metadata is None:
            return

        expected = METADATA_TYPES[self.type]
        if expected is None or not isinstance(self.metadata, expected):
            raise ValueError(
                "metadata of type {} is not valid for package type {}".format(
                    type(self.metadata).__name__, self.type.value
                )
            )

    def to_dict(self):
        return {
            "name": self.name,
            "version": self.version,
            "language": self.language.value,
            "type": self.type.value,
            "metadata": asdict(self.metadata) if self.metadata is not None else None,
            "found_by": self.found_by,
            "locations": [ref.path for ref in self.locations],
        }
