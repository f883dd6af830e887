"""
Package scope provides an abstraction that lets a user loosely define a data source to catalog (a directory or a
container image) and exposes a common Resolver interface catalogers use to explore and analyze it.
"""
from anchore_syft.scope.option import OPTIONS, Option, parse_option
from anchore_syft.scope.resolvers import (
    AllLayersResolver,
    DirectoryResolver,
    ImageSquashResolver,
    Resolver,
)
from anchore_syft.scope.scheme import Scheme, SchemeDetectionError, detect_scheme
from anchore_syft.scope.scope import (
    Cleanup,
    DirectorySource,
    ImageSource,
    Scope,
    ScopeError,
    get_scope,
    new_scope,
    new_scope_from_dir,
    new_scope_from_image,
)
