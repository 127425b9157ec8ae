"""Tests for link extraction: HAL, JSON:API and the generic descent."""
import pytest

from apicrawl.core.dedup import identity_deduplicator
from apicrawl.core.strategies import ExtractionEngine
from apicrawl.core.strategies.hal import HalLinksStrategy
from apicrawl.models.json_value import JsonKind, is_container, kind_of

API = "http://api.test"


@pytest.fixture
def engine():
    return ExtractionEngine()


class TestJsonKind:
    @pytest.mark.parametrize("value,kind", [
        ({}, JsonKind.OBJECT),
        ([], JsonKind.ARRAY),
        ("x", JsonKind.STRING),
        (1, JsonKind.NUMBER),
        (1.5, JsonKind.NUMBER),
        (True, JsonKind.BOOL),
        (None, JsonKind.NULL),
    ])
    def test_kind_of(self, value, kind):
        assert kind_of(value) == kind

    def test_bool_is_not_a_number(self):
        assert kind_of(False) == JsonKind.BOOL

    def test_rejects_non_json_values(self):
        with pytest.raises(TypeError):
            kind_of(object())

    def test_is_container(self):
        assert is_container({}) and is_container([])
        assert not is_container("a")


class TestHalExtraction:
    def test_self_link_is_skipped(self, engine, page):
        document = {"_links": {"self": {"href": "/a"}, "next": {"href": "/a/b"}}}

        records = engine.extract(document, page(f"{API}/a"))

        assert len(records) == 1
        record = records[0]
        assert record.address == f"{API}/a/b"
        assert record.relation == "next"
        assert record.parent_address == f"{API}/a"
        assert record.depth == 1

    def test_links_block_is_not_walked_twice(self, engine, page):
        document = {"_links": {"self": {"href": "/a"}}}

        assert engine.extract(document, page(f"{API}/a")) == []

    def test_string_and_array_link_values(self, engine, page):
        document = {
            "_links": {
                "author": "/people/1",
                "item": [{"href": "/items/1"}, {"href": "/items/2"}],
            }
        }

        records = engine.extract(document, page())

        assert [(r.address, r.relation) for r in records] == [
            (f"{API}/people/1", "author"),
            (f"{API}/items/1", "item"),
            (f"{API}/items/2", "item"),
        ]

    def test_declared_fields_and_metadata_are_disjoint(self, engine, page):
        document = {
            "_links": {
                "edit": {
                    "href": "/a/edit",
                    "rel": "ignored-for-named-links",
                    "method": "PUT",
                    "type": "application/json",
                    "title": "Edit A",
                    "deprecation": "https://docs.test/deprecated",
                    "hreflang": "en",
                }
            }
        }

        record = engine.extract(document, page())[0]

        assert record.relation == "edit"
        assert record.method == "PUT"
        assert record.content_type == "application/json"
        assert record.title == "Edit A"
        assert record.metadata == {
            "deprecation": "https://docs.test/deprecated",
            "hreflang": "en",
        }

    def test_templated_flag_is_kept_in_metadata(self, engine, page):
        document = {"_links": {"find": {"href": "/items{?q}", "templated": True}}}

        record = engine.extract(document, page())[0]

        assert record.is_templated
        assert record.metadata == {"templated": True}

    def test_nested_links_use_enclosing_key(self, engine, page):
        document = {
            "_embedded": {
                "orders": [{"total": 3, "_links": {"self": {"href": "/orders/7"}}}],
            }
        }

        records = engine.extract(document, page(f"{API}/orders"))

        assert [(r.address, r.relation) for r in records] == [(f"{API}/orders/7", "self")]

    def test_non_object_document_yields_nothing_from_hal(self, page):
        strategy = HalLinksStrategy()
        outcome = ExtractionEngine([strategy]).extract_with_anomalies(["/a"], page())

        assert outcome.records == []
        assert outcome.anomalies == []


class TestJsonApiExtraction:
    def test_links_object_with_bare_strings(self, engine, page):
        document = {
            "links": {
                "self": "/articles?page=2",
                "next": "/articles?page=3",
                "prev": None,
            },
            "data": [],
        }

        outcome = engine.extract_with_anomalies(document, page(f"{API}/articles?page=2"))

        assert [(r.address, r.relation) for r in outcome.records] == [
            (f"{API}/articles?page=3", "next"),
        ]
        assert outcome.anomalies == []

    def test_links_array_takes_relation_from_rel(self, engine, page):
        document = {
            "links": [
                {"rel": "self", "href": "/a"},
                {"rel": "owner", "href": "/users/9", "method": "GET"},
                {"href": "/plain"},
            ]
        }

        records = engine.extract(document, page())

        assert [(r.address, r.relation, r.method) for r in records] == [
            (f"{API}/users/9", "owner", "GET"),
            (f"{API}/plain", None, None),
        ]

    def test_links_array_entry_without_href_is_an_anomaly(self, engine, page):
        document = {"links": [{"rel": "broken"}, {"rel": "ok", "href": "/ok"}]}

        outcome = engine.extract_with_anomalies(document, page())

        assert [r.address for r in outcome.records] == [f"{API}/ok"]
        assert len(outcome.anomalies) == 1
        assert outcome.anomalies[0].path == "$.links[0]"

    def test_links_and_data_duplicate_collapses_downstream(self, engine, page):
        document = {
            "links": {"child": {"href": "/a/b", "rel": "child"}},
            "data": [{"href": "/a/b", "rel": "child"}],
        }

        candidates = engine.extract(document, page(f"{API}/a"))
        accepted = identity_deduplicator().filter(candidates)

        assert len(candidates) == 2
        assert len(accepted) == 1
        assert accepted[0].address == f"{API}/a/b"
        assert accepted[0].relation == "child"


class TestGenericDescent:
    def test_top_level_array_of_href_objects(self, engine, page):
        document = [{"href": "/x", "rel": "item"}, {"href": "/y"}]

        records = engine.extract(document, page(f"{API}/list"))

        assert [(r.address, r.relation) for r in records] == [
            (f"{API}/x", "item"),
            (f"{API}/y", None),
        ]

    def test_url_objects_keep_other_keys_as_metadata(self, engine, page):
        document = {"items": [{"url": "/things/1", "name": "Thing", "id": 1}]}

        record = engine.extract(document, page())[0]

        assert record.address == f"{API}/things/1"
        assert record.relation == "items"
        assert record.metadata == {"name": "Thing", "id": 1}

    def test_url_key_with_non_url_value_is_ignored(self, engine, page):
        document = {"items": [{"url": "not a link", "name": "x"}]}

        assert engine.extract(document, page()) == []

    def test_url_resource_keeps_sibling_link_properties(self, engine, page):
        document = {
            "user": {
                "url": "/u/1",
                "repos_url": "/u/1/repos",
                "followers_url": "/u/1/followers",
                "login": "octo",
            }
        }

        records = engine.extract(document, page())

        assert [(r.address, r.relation) for r in records] == [
            (f"{API}/u/1", "user"),
            (f"{API}/u/1/repos", "repos_url"),
            (f"{API}/u/1/followers", "followers_url"),
        ]

    def test_link_named_properties(self, engine, page):
        document = {
            "user": {
                "login": "octo",
                "avatar_url": "https://cdn.test/a.png",
                "repos_uri": "/users/octo/repos",
                "bio": "/not/a/link/key",
                "html_url": "not-a-url",
            }
        }

        records = engine.extract(document, page())

        assert [(r.address, r.relation) for r in records] == [
            ("https://cdn.test/a.png", "avatar_url"),
            (f"{API}/users/octo/repos", "repos_uri"),
        ]
        assert all(r.metadata == {} for r in records)

    def test_relative_resolution_and_normalization(self, engine, page):
        document = {
            "_links": {
                "sibling": {"href": "b"},
                "upper": {"href": "HTTP://API.TEST:80/Up#section"},
            }
        }

        records = engine.extract(document, page(f"{API}/dir/a"))

        assert [r.address for r in records] == [
            f"{API}/dir/b",
            f"{API}/Up",
        ]


class TestAnomalies:
    def test_bad_hrefs_are_reported_not_raised(self, engine, page):
        document = {
            "_links": {
                "mail": {"href": "mailto:someone@api.test"},
                "count": 3,
                "good": {"href": "/good"},
                "nohref": {"title": "missing"},
            },
            "data": [{"href": 42}],
        }

        outcome = engine.extract_with_anomalies(document, page())

        assert [r.address for r in outcome.records] == [f"{API}/good"]
        assert len(outcome.anomalies) == 4
        assert {a.kind for a in outcome.anomalies} == {"extraction"}
        assert "$.data[0].href" in [a.path for a in outcome.anomalies]
