import json
import re

from anchore_syft.pkg import GemMetadata, Language, Package, PackageType
from anchore_syft.subsys import logger

RUBY_UNICODE_ESCAPE = re.compile(r"\\u\{([0-9a-fA-F ]*)\}")
STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"')

NAME_PATTERN = re.compile(r".*\.name *= *(.*) *")
HOMEPAGE_PATTERN = re.compile(r".*\.homepage *= *(.*) *")
VERSION_PATTERN = re.compile(r".*\.version *= *(.*) *")
LICENSES_PATTERN = re.compile(r".*\.licenses *= *(.*) *")
AUTHORS_PATTERN = re.compile(r".*\.authors *= *(.*) *")
FILES_PATTERN = re.compile(r".*\.files *= *(.*) *")


def _replace_ruby_unicode(line):
    # \u{e9} and \u{61 301} are ruby forms that json cannot decode
    def _chars(match):
        return "".join(chr(int(code, 16)) for code in match.group(1).split())

    return RUBY_UNICODE_ESCAPE.sub(_chars, line)


def _string_values(value):
    values = []
    for literal in STRING_LITERAL.findall(value):
        try:
            values.append(json.loads(literal))
        except ValueError:
            values.append(literal[1:-1])
    return values


def _first_string_value(value):
    values = _string_values(value)
    if values:
        return values[0]
    return None


def gem_parse_meta(gem):
    """
    Scan the content of a gemspec line by line and return a dict with the gem's name, versions, latest version,
    homepage, licenses, authors and files. Lines that do not assign one of these are ignored. An empty dict is
    returned when no name is found.

    :param gem: gemspec content as str
    :return: dict
    """
    name = None
    versions = []
    lics = []
    latest = None
    origins = []
    sourcepkg = None
    rfiles = []

    for line in gem.splitlines():
        line = line.strip()
        line = re.sub(r"\.freeze", "", line)
        line = _replace_ruby_unicode(line)

        patt = NAME_PATTERN.match(line)
        if patt:
            value = _first_string_value(patt.group(1))
            if value is not None:
                name = value

        patt = HOMEPAGE_PATTERN.match(line)
        if patt:
            value = _first_string_value(patt.group(1))
            if value is not None:
                sourcepkg = value

        patt = VERSION_PATTERN.match(line)
        if patt:
            value = _first_string_value(patt.group(1))
            if value is not None:
                latest = value
                versions.append(latest)

        patt = LICENSES_PATTERN.match(line)
        if patt:
            lics.extend(_string_values(patt.group(1)))

        patt = AUTHORS_PATTERN.match(line)
        if patt:
            origins.extend(_string_values(patt.group(1)))

        patt = FILES_PATTERN.match(line)
        if patt:
            rfiles.extend(_string_values(patt.group(1)))

    if not name:
        return {}

    return {
        "name": name,
        "lics": lics,
        "versions": versions,
        "latest": latest,
        "origins": origins,
        "sourcepkg": sourcepkg,
        "files": rfiles,
    }


def parse_gemspec(path, reader):
    meta = gem_parse_meta(reader.read())
    if not meta:
        logger.debug("no gem name found in {}, skipping".format(path))
        return []

    version = meta["latest"] or ""
    return [
        Package(
            name=meta["name"],
            version=version,
            language=Language.RUBY,
            type=PackageType.GEM,
            metadata=GemMetadata(
                name=meta["name"],
                version=version,
                homepage=meta["sourcepkg"] or "",
                authors=meta["origins"],
                licenses=meta["lics"],
                files=meta["files"],
            ),
        )
    ]
