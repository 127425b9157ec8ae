import pytest
from pydantic import ValidationError

from apicrawl.config.settings import (
    DEFAULT_USER_AGENT,
    CrawlConfig,
    OutputFormat,
    Settings,
)
from apicrawl.errors import ConfigError

API = "http://api.test"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """No stray crawler_config.yaml or .env leaks into these tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("SEED_URL", "MAX_DEPTH", "MAX_CONCURRENT_REQUESTS", "OUTPUT_FORMAT"):
        monkeypatch.delenv(f"APICRAWL_{name}", raising=False)


class TestCrawlConfig:
    def test_defaults(self):
        config = CrawlConfig(seed_url=f"{API}/")

        assert config.max_depth == 10
        assert config.max_concurrent_requests == 10
        assert config.timeout_seconds == 30
        assert config.max_urls == 1000
        assert config.delay_ms == 100
        assert config.follow_redirects is True
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.allowed_domains == frozenset()

    def test_is_immutable(self):
        config = CrawlConfig(seed_url=f"{API}/")

        with pytest.raises(ValidationError):
            config.max_depth = 3

    @pytest.mark.parametrize("values", [
        {"seed_url": "not a url"},
        {"seed_url": "ftp://api.test/"},
        {"seed_url": f"{API}/", "max_concurrent_requests": 0},
        {"seed_url": f"{API}/", "timeout_seconds": 0},
        {"seed_url": f"{API}/", "max_depth": -1},
        {"seed_url": f"{API}/", "headers": {"Bad Header": "x"}},
        {"seed_url": f"{API}/", "allowed_domains": ["elsewhere.test"]},
    ])
    def test_invalid_values_raise_config_error(self, values):
        with pytest.raises(ConfigError):
            CrawlConfig.build(**values)

    def test_allowed_domains_are_lowercased(self):
        config = CrawlConfig.build(seed_url=f"{API}/", allowed_domains=["API.Test", " "])

        assert config.allowed_domains == frozenset({"api.test"})
        assert config.domain_allowed(f"{API}/x")
        assert not config.domain_allowed("http://other.test/")

    def test_custom_headers_override_defaults(self):
        config = CrawlConfig.build(
            seed_url=f"{API}/",
            headers={"Accept": "application/vnd.api+json", "X-Token": "t"}
        )

        headers = config.request_headers()
        assert headers["User-Agent"] == DEFAULT_USER_AGENT
        assert headers["Accept"] == "application/vnd.api+json"
        assert headers["X-Token"] == "t"

    def test_snapshot_masks_credentials(self):
        config = CrawlConfig.build(
            seed_url=f"{API}/",
            headers={"Cookie": "session=1", "X-Api-Key": "k", "Accept-Language": "en"},
            allowed_domains=["b.test", "api.test"]
        )

        snapshot = config.snapshot()
        assert snapshot["headers"] == {"Cookie": "***", "X-Api-Key": "***", "Accept-Language": "en"}
        assert snapshot["allowed_domains"] == ["api.test", "b.test"]
        assert snapshot["seed_url"] == f"{API}/"


class TestSettings:
    def test_yaml_crawler_section(self, tmp_path):
        config_file = tmp_path / "crawler.yaml"
        config_file.write_text(
            "crawler:\n"
            f"  seed_url: {API}/\n"
            "  max_depth: 4\n"
            "  output_format: tree\n"
            "  headers:\n"
            "    X-Token: abc\n",
            encoding="utf-8"
        )

        settings = Settings.from_yaml(config_file)

        assert settings.max_depth == 4
        assert settings.output_format == OutputFormat.TREE
        config = settings.to_crawl_config()
        assert config.headers == {"X-Token": "abc"}

    def test_overrides_beat_yaml_and_none_is_ignored(self, tmp_path):
        config_file = tmp_path / "crawler.yaml"
        config_file.write_text("crawler:\n  max_depth: 4\n  delay_ms: 5\n", encoding="utf-8")

        settings = Settings.from_yaml(config_file, max_depth=2, delay_ms=None)

        assert settings.max_depth == 2
        assert settings.delay_ms == 5

    def test_environment_is_read(self, monkeypatch):
        monkeypatch.setenv("APICRAWL_MAX_DEPTH", "6")
        monkeypatch.setenv("APICRAWL_SEED_URL", f"{API}/env")

        settings = Settings.from_yaml()

        assert settings.max_depth == 6
        assert settings.to_crawl_config().seed_url == f"{API}/env"

    def test_yaml_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APICRAWL_MAX_DEPTH", "6")
        config_file = tmp_path / "crawler.yaml"
        config_file.write_text("crawler:\n  max_depth: 3\n", encoding="utf-8")

        assert Settings.from_yaml(config_file).max_depth == 3

    def test_config_file_is_discovered(self, tmp_path):
        (tmp_path / "crawler_config.yaml").write_text("crawler:\n  max_urls: 7\n", encoding="utf-8")

        assert Settings.from_yaml().max_urls == 7

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("crawler: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            Settings.from_yaml(config_file)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            Settings.from_yaml(max_depth="deep")

    def test_seed_required(self):
        with pytest.raises(ConfigError, match="seed URL"):
            Settings.from_yaml().to_crawl_config()
