import enum


class SyftError(enum.Enum):
    REGISTRY_PERMISSION_DENIED = "The registry has reported permission denied for the requested registry resource"
    REGISTRY_IMAGE_NOT_FOUND = (
        "The requested image (tag, digest) cannot be found in the requested registry"
    )
    REGISTRY_NOT_ACCESSIBLE = "The registry is not accessible on the network"
    REGISTRY_NOT_SUPPORTED = (
        "The specified registry cannot be accessed as supporting the v2 registry API"
    )
    DOCKER_DAEMON_NOT_ACCESSIBLE = "The docker daemon socket cannot be reached"
    IMAGE_ARCHIVE_INVALID = "The image archive is not a readable docker or OCI archive"
    SKOPEO_UNKNOWN_ERROR = "The skopeo command has failed due to an error that is not explicitly handled, see the command output/error for more information"
    UNKNOWN = "An unknown error has occurred, please consult the logs for more information"
    OSARCH_MISMATCH = "The image manifest from the registry does not contain an arch/os that matches local environment"
