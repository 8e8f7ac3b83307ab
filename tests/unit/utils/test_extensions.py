"""
Tests of loading collaborators from 'module:factory' paths.
"""

import pytest

from spi_operator.exceptions import ConfigurationError
from spi_operator.utils.extensions import build_extension, load_factory
from tests.fixtures.service_providers import StubServiceProvider, stub_provider_factory


class TestLoadFactory:
    def test_load(self):
        factory = load_factory("tests.fixtures.service_providers:stub_provider_factory")

        assert factory is stub_provider_factory

    def test_nested_attribute(self):
        factory = load_factory("tests.fixtures.service_providers:StubServiceProvider.get_all_scopes")

        assert factory is StubServiceProvider.get_all_scopes

    @pytest.mark.parametrize(
        "path",
        ["no-colon", ":factory", "module:", "tests.fixtures.missing_module:factory"],
    )
    def test_bad_paths(self, path):
        with pytest.raises(ConfigurationError):
            load_factory(path)

    def test_missing_attribute(self):
        with pytest.raises(ConfigurationError, match="has no attribute"):
            load_factory("tests.fixtures.service_providers:missing")

    def test_not_callable(self):
        with pytest.raises(ConfigurationError, match="not callable"):
            load_factory("tests.fixtures.factories:TEST_PROVIDER_URL")


def test_build_extension_passes_arguments(app_config):
    provider = build_extension("tests.fixtures.service_providers:stub_provider_factory", app_config)

    assert isinstance(provider, StubServiceProvider)
