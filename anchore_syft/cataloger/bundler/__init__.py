from anchore_syft.cataloger.bundler.cataloger import (
    new_gemfile_lock_cataloger,
    new_gemspec_cataloger,
)
from anchore_syft.cataloger.bundler.parse_gemfile_lock import parse_gemfile_lock
from anchore_syft.cataloger.bundler.parse_gemspec import gem_parse_meta, parse_gemspec
