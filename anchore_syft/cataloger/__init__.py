"""
Catalogers turn the files a resolver exposes into Package records.
"""
from concurrent.futures import ThreadPoolExecutor

import anchore_syft.configuration.localconfig
from anchore_syft.cataloger.bundler import (
    new_gemfile_lock_cataloger,
    new_gemspec_cataloger,
)
from anchore_syft.cataloger.common import GenericCataloger, ParserFn
from anchore_syft.utils import timer


def all_catalogers():
    return [new_gemfile_lock_cataloger(), new_gemspec_cataloger()]


def catalog(resolver, catalogers=None, max_workers=None):
    """
    Run every cataloger against the resolver and return the packages found, grouped in cataloger order.

    :param resolver: the Resolver of a scope
    :param catalogers: list of catalogers, defaults to all_catalogers()
    :param max_workers: when greater than one, catalogers run concurrently against the same resolver, defaults to
        the configured cataloger_workers
    :return: list of Package
    """
    if catalogers is None:
        catalogers = all_catalogers()

    if max_workers is None:
        localconfig = anchore_syft.configuration.localconfig.get_config()
        max_workers = int(localconfig.get("cataloger_workers", 1))

    with timer("catalog of {}".format(resolver)):
        if max_workers > 1 and len(catalogers) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                results = list(executor.map(lambda c: c.catalog(resolver), catalogers))
        else:
            results = [c.catalog(resolver) for c in catalogers]

    packages = []
    for found in results:
        packages.extend(found)
    return packages
