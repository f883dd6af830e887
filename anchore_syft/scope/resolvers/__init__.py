"""
Resolvers answer path and glob queries and return file content for a single source. Catalogers only ever talk to
the Resolver interface, never to the source behind it.
"""
from anchore_syft.image.file import FileReference, FileType, PathNotFoundError
from anchore_syft.scope.resolvers.base import Resolver
from anchore_syft.scope.resolvers.directory import DirectoryResolver
from anchore_syft.scope.resolvers.image_all_layers import AllLayersResolver
from anchore_syft.scope.resolvers.image_squash import ImageSquashResolver
