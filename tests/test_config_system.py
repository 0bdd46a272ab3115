"""
Test configuration presets, environment settings and logging setup.
"""

import pytest
import structlog

from xml_emitter import ConverterConfig, RootDescriptor, TypeMisuseError
from xml_emitter.logging import configure_logging, get_logger
from xml_emitter.settings import Settings, get_settings


@pytest.fixture
def clean_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConverterConfig:
    """Test configuration defaults and presets."""

    def test_defaults(self):
        config = ConverterConfig()
        assert config.numeric_tag_prefix == "numeric_"
        assert config.replace_spaces_in_keys is True
        assert config.xml_encoding is None
        assert config.xml_version == "1.0"
        assert config.flush_threshold == 1000
        assert config.indent is True

    def test_streaming_preset(self):
        config = ConverterConfig.for_streaming()
        assert config.flush_threshold == 100
        assert config.xml_encoding == "UTF-8"

    def test_compact_preset(self):
        assert ConverterConfig.compact().indent is False

    def test_from_explicit_settings(self):
        settings = Settings(numeric_tag_prefix="n_", flush_threshold=5, max_depth=40)
        config = ConverterConfig.from_settings(settings)
        assert config.numeric_tag_prefix == "n_"
        assert config.flush_threshold == 5
        assert config.max_depth == 40

    def test_from_environment(self, monkeypatch, clean_settings):
        monkeypatch.setenv("XML_EMITTER_FLUSH_THRESHOLD", "25")
        monkeypatch.setenv("XML_EMITTER_REPLACE_SPACES_IN_KEYS", "false")
        monkeypatch.setenv("XML_EMITTER_XML_ENCODING", "UTF-8")
        config = ConverterConfig.from_settings()
        assert config.flush_threshold == 25
        assert config.replace_spaces_in_keys is False
        assert config.xml_encoding == "UTF-8"


class TestRootDescriptor:
    """Test root descriptor parsing."""

    def test_from_string(self):
        descriptor = RootDescriptor.from_value("doc")
        assert descriptor.element_name == "doc"
        assert descriptor.attribute_bag() == {}

    def test_from_empty_string(self):
        assert RootDescriptor.from_value("").element_name == "root"

    def test_from_none(self):
        assert RootDescriptor.from_value(None).element_name == "root"

    def test_from_mapping(self):
        descriptor = RootDescriptor.from_value({
            "rootElementName": "doc",
            "_attributes": {"a": 1},
            "@attributes": {"a": 2, "b": 3},
            "unrelated": "ignored",
        })
        assert descriptor.element_name == "doc"
        assert descriptor.attribute_bag() == {"a": 2, "b": 3}

    def test_attribute_names_become_strings(self):
        descriptor = RootDescriptor.from_value({"_attributes": {1: "x"}})
        assert descriptor.attribute_bag() == {"1": "x"}

    def test_instance_passes_through(self):
        descriptor = RootDescriptor(root_element_name="x")
        assert RootDescriptor.from_value(descriptor) is descriptor

    def test_non_string_name_rejected(self):
        with pytest.raises(TypeMisuseError):
            RootDescriptor.from_value({"rootElementName": ["doc"]})

    def test_non_mapping_bag_rejected(self):
        with pytest.raises(TypeMisuseError):
            RootDescriptor.from_value({"@attributes": ["a"]})


class TestLogging:
    """Test structlog configuration."""

    @pytest.mark.parametrize("log_format", ["console", "json"])
    def test_configure_logging(self, log_format, reset_structlog, capsys):
        configure_logging("INFO", log_format)
        get_logger("xml_emitter.tests").info("configured", log_format=log_format)
        captured = capsys.readouterr()
        assert "configured" in captured.err

    def test_debug_filtered_at_info(self, reset_structlog, capsys):
        configure_logging("INFO", "json")
        get_logger("xml_emitter.tests").debug("hidden event")
        assert "hidden event" not in capsys.readouterr().err
