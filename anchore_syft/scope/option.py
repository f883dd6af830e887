import enum


class Option(enum.Enum):
    UNKNOWN_SCOPE = "unknown-scope"
    SQUASHED_SCOPE = "squashed"
    ALL_LAYERS_SCOPE = "all-layers"


OPTIONS = [Option.SQUASHED_SCOPE, Option.ALL_LAYERS_SCOPE]


def parse_option(user_str: str) -> Option:
    user_str = user_str.strip().lower()
    for option in OPTIONS:
        if option.value == user_str:
            return option
    return Option.UNKNOWN_SCOPE
