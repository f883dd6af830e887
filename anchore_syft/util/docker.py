"""
Docker-related utilities for interacting with docker image references.

"""
import re

from anchore_syft.subsys import logger

DEFAULT_REGISTRY = "docker.io"
DEFAULT_TAG = "latest"

_domain_component = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_domain_pattern = re.compile(
    r"^{c}(?:\.{c})*(?::[0-9]+)?$".format(c=_domain_component)
)
_path_component_pattern = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|[-]*)[a-z0-9]+)*$")
_tag_pattern = re.compile(r"^[\w][\w.-]{0,127}$")
_digest_pattern = re.compile(
    r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$"
)


class InvalidReferenceError(ValueError):
    pass


class DockerImageReference:
    """
    An object representing an image reference in a registry

    Docker Image Tag strings can come in a few different formats:
        - registry_host:registry_port/repository@digest
        - registry_host:registry_port/repository:tag
        - simple_registry/repository:tag
        - repository:tag
            - in this case, we assume the registry is docker.io
        - repository@digest
            - in this case, we assume the registry is docker.io

    The aim of this class is to break this string into it's respective parts:
        - registry, repository, and (tag OR digest)
    """

    def __init__(self):
        self.registry = None
        self.repository = None
        self.tag = None
        self.digest = None

    @staticmethod
    def validate_input(docker_input: str):
        bad_chars = re.findall(r"[^a-zA-Z0-9@:/_\.\-]", docker_input)
        if bad_chars:
            raise InvalidReferenceError(
                "bad character(s) {} in dockerimage string input ({})".format(
                    bad_chars, docker_input
                )
            )

    @classmethod
    def parse(cls, docker_input: str) -> "DockerImageReference":
        """
        Parse and validate a reference string, raising InvalidReferenceError if it is not a valid image reference
        """
        logger.spew("input string to parse: %s", docker_input)
        docker_input = docker_input.strip()
        if not docker_input:
            raise InvalidReferenceError("empty image reference")
        cls.validate_input(docker_input)

        ref = cls()

        remainder = docker_input
        contains_digest = re.match(r"(.*?)@(.*)", remainder)
        if contains_digest:
            remainder = contains_digest.group(1)
            ref.digest = contains_digest.group(2)
            if not _digest_pattern.match(ref.digest):
                raise InvalidReferenceError("invalid digest: {}".format(ref.digest))

        # a tag can only follow the last path separator, a colon before it belongs to a registry port
        last_component = remainder.rsplit("/", 1)[-1]
        if ":" in last_component:
            remainder, ref.tag = remainder.rsplit(":", 1)
            if not _tag_pattern.match(ref.tag):
                raise InvalidReferenceError("invalid tag: {}".format(ref.tag))

        components = remainder.split("/")
        if len(components) > 1 and (
            "." in components[0] or ":" in components[0] or components[0] == "localhost"
        ):
            ref.registry = components[0]
            components = components[1:]
            if not _domain_pattern.match(ref.registry):
                raise InvalidReferenceError("invalid registry: {}".format(ref.registry))
        else:
            ref.registry = DEFAULT_REGISTRY

        for component in components:
            if not _path_component_pattern.match(component):
                raise InvalidReferenceError(
                    "invalid repository component {!r} in {}".format(
                        component, docker_input
                    )
                )

        ref.repository = "/".join(components)
        if ref.registry == DEFAULT_REGISTRY and len(components) == 1:
            ref.repository = "library/" + ref.repository

        if not ref.digest and not ref.tag:
            ref.tag = DEFAULT_TAG

        return ref


def is_image_reference(docker_input: str) -> bool:
    try:
        DockerImageReference.parse(docker_input)
    except InvalidReferenceError:
        return False
    return True
