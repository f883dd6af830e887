from anchore_syft.pkg import Language, Package, PackageType

# sections of a Gemfile.lock that list resolved gems
SECTIONS_WITH_GEMS = {"GEM"}


def _is_dependency_line(line):
    # resolved specs are indented by exactly four spaces, their own requirements by six
    if len(line) > 5:
        return line[:5].count(" ") == 4
    return False


def parse_gemfile_lock(path, reader):
    """
    Return a bundle package per gem resolved in the GEM section of a Gemfile.lock
    """
    pkgs = []
    section = None

    for line in reader:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        if not line.startswith(" "):
            section = line.strip()
            continue

        if section not in SECTIONS_WITH_GEMS or not _is_dependency_line(line):
            continue

        candidate = line.split()
        if len(candidate) != 2:
            continue

        pkgs.append(
            Package(
                name=candidate[0],
                version=candidate[1].strip("()"),
                language=Language.RUBY,
                type=PackageType.BUNDLE,
            )
        )

    return pkgs
