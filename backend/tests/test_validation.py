"""Tests for request validation and its error wording."""

from datetime import date, datetime

import pytest

from logbook.core.errors import ErrorCollector, ValidationFailure
from logbook.services.filters import (
    DateRangeFilter,
    OriginFilter,
    ParentFilter,
    RootFilter,
    TagFilter,
    TitleFilter,
)
from logbook.services.pager import PageRequest, SortKey
from logbook.services.validation import (
    field_errors,
    validate_attachment_query,
    validate_log_create,
    validate_log_list_query,
    validate_no_query,
    validate_path_id,
    validate_path_ids,
)
from logbook.utils.query_string import decode_nested
from logbook.utils.time import from_epoch_ms

TODAY = date(2024, 5, 1)


def _details(exc_info):
    return [e.detail for e in exc_info.value.errors]


def _query(qs_pairs):
    return decode_nested(qs_pairs)


def test_empty_query_gives_defaults():
    params = validate_log_list_query({}, default_limit=25)

    assert params.filters == ()
    assert params.sort == ()
    assert params.page == PageRequest(offset=0, limit=25)


def test_every_filter_variant_is_built():
    raw = _query([
        ("filter[title]", "  quench "),
        ("filter[created][from]", "946684800000"),
        ("filter[created][to]", "1577833200000"),
        ("filter[tag][values]", "1, 4,1"),
        ("filter[tag][operation]", "or"),
        ("filter[parentLog]", "2"),
        ("filter[rootLog]", "1"),
        ("filter[origin]", "process"),
    ])
    params = validate_log_list_query(raw, today=TODAY)

    assert params.filters == (
        TitleFilter("quench"),
        DateRangeFilter(start=datetime(2000, 1, 1), end=datetime(2019, 12, 31, 23, 0)),
        TagFilter(tag_ids=(1, 4), operation="or"),
        ParentFilter(2),
        RootFilter(1),
        OriginFilter("process"),
    )


def test_tag_operation_defaults_to_and():
    params = validate_log_list_query(_query([("filter[tag][values]", "2,5")]))
    assert params.filters == (TagFilter(tag_ids=(2, 5), operation="and"),)


def test_whitespace_title_is_rejected():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[title]", " ")]))

    [error] = exc_info.value.errors
    assert error.detail == '"query.filter.title" is not allowed to be empty'
    assert error.pointer == "/data/attributes/query/filter/title"


def test_created_to_after_end_of_today_names_the_bound():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[created][to]", "4102531200000")]), today=TODAY)

    assert _details(exc_info) == [
        '"query.filter.created.to" must be less than or equal to "2024-05-01T23:59:59.999Z"'
    ]


def test_created_to_exactly_end_of_today_is_accepted():
    end_of_day_ms = 1714607999999  # 2024-05-01T23:59:59.999Z
    params = validate_log_list_query(_query([("filter[created][to]", str(end_of_day_ms))]), today=TODAY)

    assert params.filters == (DateRangeFilter(end=datetime(2024, 5, 1, 23, 59, 59, 999000)),)


def test_created_from_after_to_is_rejected():
    raw = _query([("filter[created][from]", "946771200000"), ("filter[created][to]", "946684800000")])
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(raw, today=TODAY)

    assert _details(exc_info) == ['"query.filter.created.to" must be larger than or equal to "ref:from"']


def test_created_bounds_must_be_timestamps():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[created][from]", "yesterday")]), today=TODAY)

    assert _details(exc_info) == [
        '"query.filter.created.from" must be in timestamp or number of milliseconds format'
    ]


@pytest.mark.parametrize("raw", ["1e1000000", "-1e7000000", "9007199254740992"])
def test_out_of_range_timestamps_are_rejected_quickly(raw):
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[created][from]", raw)]), today=TODAY)

    assert _details(exc_info) == ['"query.filter.created.from" must be a valid date']


def test_fractional_timestamps_are_truncated():
    params = validate_log_list_query(_query([("filter[created][from]", "1.5")]), today=TODAY)

    assert params.filters == (DateRangeFilter(start=from_epoch_ms(1)),)


def test_unknown_origin_names_allowed_set():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[origin]", "_")]))

    assert _details(exc_info) == ['"query.filter.origin" must be one of [human, process]']


@pytest.mark.parametrize("field", ["parentLog", "rootLog"])
def test_thread_filters_must_be_positive(field):
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([(f"filter[{field}]", "-1")]))

    assert _details(exc_info) == [f'"query.filter.{field}" must be a positive number']


def test_bad_tag_values_are_reported_per_item():
    raw = _query([("filter[tag][values]", "1,x,-3"), ("filter[tag][operation]", "xor")])
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(raw)

    errors = exc_info.value.errors
    assert [e.detail for e in errors] == [
        '"query.filter.tag.values[1]" must be a number',
        '"query.filter.tag.values[2]" must be a positive number',
        '"query.filter.tag.operation" must be one of [and, or]',
    ]
    assert errors[0].pointer == "/data/attributes/query/filter/tag/values/1"


def test_tag_operation_without_values_is_rejected():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("filter[tag][operation]", "or")]))

    assert _details(exc_info) == ['"query.filter.tag.values" is required']


def test_page_bounds():
    raw = _query([("page[offset]", "-1"), ("page[limit]", "0")])
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(raw)

    assert _details(exc_info) == [
        '"query.page.offset" must be larger than or equal to 0',
        '"query.page.limit" must be larger than or equal to 1',
    ]


def test_sort_keys_keep_query_order():
    raw = _query([("sort[title]", "DESC"), ("sort[id]", "asc")])
    params = validate_log_list_query(raw)

    assert params.sort == (SortKey("title", "desc"), SortKey("id", "asc"))


def test_sort_rejects_unknown_field_and_direction():
    raw = _query([("sort[author]", "asc"), ("sort[id]", "up")])
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(raw)

    assert _details(exc_info) == [
        '"query.sort.author" is not allowed',
        '"query.sort.id" must be one of [asc, desc]',
    ]


def test_all_errors_are_collected():
    raw = _query([
        ("filter[title]", ""),
        ("filter[origin]", "robot"),
        ("filter[rootLog]", "0.5"),
        ("page[limit]", "abc"),
        ("extra", "1"),
    ])
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(raw)

    assert _details(exc_info) == [
        '"query.extra" is not allowed',
        '"query.filter.title" is not allowed to be empty',
        '"query.filter.rootLog" must be an integer',
        '"query.filter.origin" must be one of [human, process]',
        '"query.page.limit" must be a number',
    ]


def test_huge_integers_are_not_safe():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query(_query([("page[limit]", "1e1000000"), ("filter[rootLog]", "9007199254740993")]))

    assert _details(exc_info) == [
        '"query.filter.rootLog" must be a safe number',
        '"query.page.limit" must be a safe number',
    ]


def test_scalar_where_object_expected():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_list_query({"filter": "x"})

    assert _details(exc_info) == ['"query.filter" must be of type object']


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("abc", '"params.logId" must be a number'),
        ("-1", '"params.logId" must be a positive number'),
        ("0.5", '"params.logId" must be an integer'),
    ],
)
def test_path_id_failure_modes(raw, expected):
    with pytest.raises(ValidationFailure) as exc_info:
        validate_path_id("logId", raw)

    [error] = exc_info.value.errors
    assert error.detail == expected
    assert error.pointer == "/data/attributes/params/logId"


def test_path_ids_collects_each_parameter():
    assert validate_path_ids(logId="3", attachmentId="1.0") == {"logId": 3, "attachmentId": 1}

    with pytest.raises(ValidationFailure) as exc_info:
        validate_path_ids(logId="x", attachmentId="0")

    assert _details(exc_info) == [
        '"params.logId" must be a number',
        '"params.attachmentId" must be a positive number',
    ]


def test_attachment_query():
    assert validate_attachment_query({}) is None
    assert validate_attachment_query({"mimetype": " image "}) == "image"

    with pytest.raises(ValidationFailure) as exc_info:
        validate_attachment_query({"mayI": "no"})
    assert _details(exc_info) == ['"query.mayI" is not allowed']


def test_no_query_rejects_anything():
    validate_no_query({})
    with pytest.raises(ValidationFailure):
        validate_no_query({"page": {"limit": "1"}})


def test_create_body_defaults():
    payload = validate_log_create({"title": "Yet another run", "text": "Text of yet another run"})

    assert payload.title == "Yet another run"
    assert payload.origin == "human"
    assert payload.parent_log_id is None
    assert payload.tag_ids == ()


def test_create_body_missing_fields():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create(None)

    assert _details(exc_info) == ['"body.title" is required', '"body.text" is required']
    assert exc_info.value.errors[0].pointer == "/data/attributes/body/title"


def test_create_body_lengths():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create({"title": "A" * 141, "text": "A"})

    assert _details(exc_info) == [
        '"body.title" length must be less than or equal to 140 characters long',
        '"body.text" length must be at least 3 characters long',
    ]

    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create({"title": "A", "text": "Fine text"})
    assert _details(exc_info) == ['"body.title" length must be at least 3 characters long']


def test_create_body_optional_fields():
    payload = validate_log_create(
        {"title": "Reply", "text": "Some reply", "parentLogId": 2, "origin": "process", "tags": [5, 1, 5]}
    )
    assert payload.parent_log_id == 2
    assert payload.origin == "process"
    assert payload.tag_ids == (5, 1)

    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create({"title": "Reply", "text": "Some reply", "parentLogId": -2, "author": "me"})
    assert _details(exc_info) == [
        '"body.parentLogId" must be a positive number',
        '"body.author" is not allowed',
    ]


def test_shared_collector_defers_raising():
    errors = ErrorCollector()

    assert validate_path_id("logId", "abc", errors) is None
    validate_no_query({"mayI": "no"}, errors)
    params = validate_log_list_query(_query([("page[limit]", "0")]), errors=errors)
    assert params.page.limit == 100

    with pytest.raises(ValidationFailure) as exc_info:
        errors.raise_if_any()
    assert _details(exc_info) == [
        '"params.logId" must be a number',
        '"query.mayI" is not allowed',
        '"query.page.limit" must be larger than or equal to 1',
    ]


def test_create_body_type_errors():
    body = {"title": "", "text": 42, "parentLogId": 1.5, "origin": "robot", "tags": ["x", 0]}
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create(body)

    assert _details(exc_info) == [
        '"body.title" is not allowed to be empty',
        '"body.text" must be a string',
        '"body.parentLogId" must be an integer',
        '"body.origin" must be one of [human, process]',
        '"body.tags[0]" must be a number',
        '"body.tags[1]" must be a positive number',
    ]
    assert exc_info.value.errors[-1].pointer == "/data/attributes/body/tags/1"


def test_create_body_must_be_an_object():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create(["title"])

    assert _details(exc_info) == ['"body" must be of type object']


def test_create_body_rejects_snake_case_keys():
    with pytest.raises(ValidationFailure) as exc_info:
        validate_log_create({"title": "Reply", "text": "Some reply", "parent_log_id": 2})

    assert _details(exc_info) == ['"body.parent_log_id" is not allowed']


def test_field_errors_fall_back_to_the_library_message():
    [error] = field_errors([{"type": "json_invalid", "loc": ("body", 12), "msg": "JSON decode error"}])

    assert error.label == "body[12]"
    assert error.detail == '"body[12]" JSON decode error'
