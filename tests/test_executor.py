"""
Tests for the Elasticsearch executor and its field-override retry.
"""

import logging
from unittest.mock import MagicMock

from elasticsearch.exceptions import ConnectionError as ESConnectionError
from elasticsearch.exceptions import SerializationError

from conftest import FakeElasticsearch, api_error, fielddata_error, hits_response, make_hit
from federated_search.adapters.elasticsearch.executor import ESQueryExecutor
from federated_search.query.aggregations import AggregationBuilder


def keywords_query_builder(field_overrides):
    """Build function whose aggregation on ``keywords`` follows the overrides."""
    builder = AggregationBuilder(field_overrides, bucket_size=20)

    def build():
        return {"size": 10, "query": {"match_all": {}}, "aggs": builder.aggregation_clause("keywords")}

    return build


def agg_field(call):
    return call["body"]["aggs"]["keywords"]["terms"]["field"]


class TestExecuteOnce:
    def test_success(self, field_overrides):
        es = FakeElasticsearch().push(hits_response([make_hit("1")]))
        executor = ESQueryExecutor(es, field_overrides)

        result, body = executor.execute_once("dataset", {"size": 1})

        assert result.has_hits
        assert result.hits.hits[0].id == "1"
        assert body["took"] == 3
        assert es.calls == [{"index": "dataset", "body": {"size": 1}}]

    def test_response_object_body_is_read(self, field_overrides):
        response = MagicMock()
        response.body = hits_response([make_hit("1")])
        es = FakeElasticsearch().push(response)

        result, _ = ESQueryExecutor(es, field_overrides).execute_once("dataset", {})

        assert result.hits.hits[0].id == "1"

    def test_raw_bytes_body_is_decoded(self, field_overrides):
        es = FakeElasticsearch().push(b'{"hits": {"hits": []}}')

        result, _ = ESQueryExecutor(es, field_overrides).execute_once("dataset", {})

        assert result.has_hits
        assert result.hits.hits == []

    def test_api_error_returns_error_body(self, field_overrides):
        es = FakeElasticsearch().push(fielddata_error("keywords"))

        result, body = ESQueryExecutor(es, field_overrides).execute_once("dataset", {})

        assert result is None
        assert body["error"]["root_cause"][0]["type"] == "illegal_argument_exception"

    def test_transport_error(self, field_overrides):
        es = FakeElasticsearch().push(ESConnectionError("connection refused"))

        assert ESQueryExecutor(es, field_overrides).execute_once("dataset", {}) == (None, None)

    def test_serialization_error(self, field_overrides):
        es = FakeElasticsearch().push(SerializationError("bad json"))

        assert ESQueryExecutor(es, field_overrides).execute_once("dataset", {}) == (None, None)

    def test_none_response(self, field_overrides):
        es = FakeElasticsearch(handler=lambda index, body: None)

        assert ESQueryExecutor(es, field_overrides).execute_once("dataset", {}) == (None, None)

    def test_unreadable_body(self, field_overrides):
        es = FakeElasticsearch().push(b"<html>gateway timeout</html>")

        assert ESQueryExecutor(es, field_overrides).execute_once("dataset", {}) == (None, None)


class TestSearchRetry:
    def test_fielddata_error_retries_once_with_keyword(self, field_overrides):
        es = FakeElasticsearch().push(
            fielddata_error("keywords"),
            hits_response([make_hit("1")], {"keywords": {"buckets": []}}),
        )
        executor = ESQueryExecutor(es, field_overrides)

        outcome = executor.search("dataset", keywords_query_builder(field_overrides))

        assert outcome.attempts == 2
        assert outcome.result.has_hits
        assert outcome.error is None
        assert [agg_field(call) for call in es.calls] == ["keywords", "keywords.keyword"]
        assert field_overrides.resolve("keywords") == "keywords.keyword"

    def test_set_fielddata_hint_registers_override(self, field_overrides):
        reason = (
            "Fielddata is disabled on text fields by default. Set fielddata=true on "
            "[publisherName] in order to load fielddata in memory by uninverting the "
            "inverted index."
        )
        es = FakeElasticsearch().push(
            api_error(
                400,
                {"error": {"root_cause": [{"type": "illegal_argument_exception", "reason": reason}]}},
            ),
            hits_response([make_hit("1")]),
        )
        builder = AggregationBuilder(field_overrides, bucket_size=20)

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", lambda: {"aggs": builder.aggregation_clause("publisherName")}
        )

        assert outcome.attempts == 2
        assert field_overrides.snapshot() == {"publisherName": "publisherName.keyword"}
        assert es.calls[1]["body"]["aggs"]["publisherName"]["terms"]["field"] == (
            "publisherName.keyword"
        )

    def test_index_name_in_reason_is_not_learned(self, field_overrides):
        es = FakeElasticsearch().push(
            fielddata_error("publisherName", index="dataset"),
            hits_response([make_hit("1")]),
        )
        builder = AggregationBuilder(field_overrides, bucket_size=20)

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", lambda: {"aggs": builder.aggregation_clause("publisherName")}
        )

        assert outcome.attempts == 2
        assert field_overrides.snapshot() == {"publisherName": "publisherName.keyword"}
        assert builder.aggregation_clause("dataset")["dataset"]["terms"]["field"] == "dataset"

    def test_second_failure_is_not_retried(self, field_overrides):
        es = FakeElasticsearch().push(
            fielddata_error("keywords"), fielddata_error("keywords")
        )
        executor = ESQueryExecutor(es, field_overrides)

        outcome = executor.search("dataset", keywords_query_builder(field_overrides))

        assert outcome.attempts == 2
        assert len(es.calls) == 2
        assert not outcome.result.has_hits
        assert outcome.error is not None

    def test_error_without_bracketed_field_is_not_retried(self, field_overrides, caplog):
        error = api_error(
            400,
            {
                "error": {
                    "root_cause": [
                        {
                            "type": "illegal_argument_exception",
                            "reason": "Fielddata is disabled on text fields by default",
                        }
                    ]
                },
                "status": 400,
            },
        )
        es = FakeElasticsearch().push(error)
        executor = ESQueryExecutor(es, field_overrides)

        with caplog.at_level(logging.WARNING, logger="federated_search"):
            outcome = executor.search("dataset", keywords_query_builder(field_overrides))

        assert outcome.attempts == 1
        assert field_overrides.snapshot() == {}
        assert "Fielddata is disabled on text fields by default" in caplog.text

    def test_unrelated_error_is_not_retried(self, field_overrides):
        error = api_error(
            400,
            {
                "error": {
                    "root_cause": [
                        {"type": "parsing_exception", "reason": "Unknown key for a START_OBJECT in [bogus]."}
                    ]
                }
            },
        )
        es = FakeElasticsearch().push(error)

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 1
        assert outcome.error.reasons == ["Unknown key for a START_OBJECT in [bogus]."]

    def test_override_already_in_effect_is_not_retried(self, field_overrides):
        field_overrides.register_keyword("keywords")
        es = FakeElasticsearch().push(fielddata_error("keywords.keyword"))

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 1
        assert agg_field(es.calls[0]) == "keywords.keyword"

    def test_override_learned_by_another_branch_still_retries(self, field_overrides):
        build = keywords_query_builder(field_overrides)

        def handler(index, body):
            if agg_field({"body": body}) == "keywords":
                # Another request learns the override while this one is in flight.
                field_overrides.register_keyword("keywords")
                return fielddata_error("keywords")
            return hits_response([make_hit("1")])

        es = FakeElasticsearch(handler=handler)

        outcome = ESQueryExecutor(es, field_overrides).search("dataset", build)

        assert outcome.attempts == 2
        assert outcome.result.has_hits

    def test_transport_error_degrades_to_empty_result(self, field_overrides):
        es = FakeElasticsearch().push(ESConnectionError("connection refused"))

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 1
        assert not outcome.result.has_hits
        assert outcome.result.to_response()["hits"]["hits"] is None

    def test_empty_hits_list_is_success(self, field_overrides):
        es = FakeElasticsearch().push(hits_response([]))

        outcome = ESQueryExecutor(es, field_overrides).search(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 1
        assert outcome.result.has_hits
        assert outcome.result.hits.hits == []


class TestAggregate:
    def test_missing_aggregations_fail(self, field_overrides):
        es = FakeElasticsearch().push(hits_response([]))

        outcome = ESQueryExecutor(es, field_overrides).aggregate(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 1
        assert outcome.result.aggregations == {}

    def test_fielddata_error_retries(self, field_overrides):
        es = FakeElasticsearch().push(
            fielddata_error("keywords"),
            hits_response([], {"keywords": {"buckets": [{"key": "covid", "doc_count": 3}]}}),
        )

        outcome = ESQueryExecutor(es, field_overrides).aggregate(
            "dataset", keywords_query_builder(field_overrides)
        )

        assert outcome.attempts == 2
        assert outcome.result.aggregations["keywords"]["buckets"][0]["key"] == "covid"
