from anchore_syft.cataloger.bundler.parse_gemfile_lock import parse_gemfile_lock
from anchore_syft.cataloger.bundler.parse_gemspec import parse_gemspec
from anchore_syft.cataloger.common import GenericCataloger


def new_gemfile_lock_cataloger():
    """
    Catalogs the gems a bundler project has locked, intended for source directories
    """
    return GenericCataloger(
        "ruby-gemfile-cataloger",
        glob_parsers={"**/Gemfile.lock": parse_gemfile_lock},
    )


def new_gemspec_cataloger():
    """
    Catalogs the gems installed in an image from their specification files
    """
    return GenericCataloger(
        "ruby-gemspec-cataloger",
        glob_parsers={"**/specifications/**/*.gemspec": parse_gemspec},
    )
