"""Unit tests for the list query builder."""
import pytest

from app.builder.query_builder import (
    MAX_OFFSET,
    AllOf,
    AnyOf,
    Between,
    Contains,
    ContainsAll,
    ContainsAny,
    Count,
    Equals,
    Limit,
    Match,
    Project,
    QueryBuilder,
    Skip,
    Sort,
    parse_sort,
)
from app.builder.sql import escape_like
from app.errors import BadRequestError

ASSET_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
OTHER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


def test_no_params_yields_default_sort_and_page():
    built = QueryBuilder({}).sort().paginate().build()

    assert built.result_stages == (Sort((("createdAt", -1),)), Skip(0), Limit(20))
    assert built.count_stages == (Count(),)


def test_search_matches_any_field_literally():
    builder = QueryBuilder({"searchTerm": "50% off (v2)"}).search(["title", "slug"])

    assert builder.match_condition() == AnyOf((Contains("title", "50% off (v2)"), Contains("slug", "50% off (v2)")))


def test_filters_combine_with_and():
    builder = (
        QueryBuilder({"status": "Approved", "isPremium": "true", "minPrice": "10", "maxPrice": "50"})
        .filter_exact("status", "status")
        .filter_boolean("isPremium", "isPremium")
        .range("price", "minPrice", "maxPrice")
    )

    assert builder.match_condition() == AllOf(
        (Equals("status", "approved"), Equals("isPremium", True), Between("price", 10.0, 50.0))
    )


def test_unusable_values_are_ignored():
    builder = (
        QueryBuilder({"isPremium": "maybe", "minPrice": "abc", "author": "not-a-uuid", "tags": " , "})
        .filter_boolean("isPremium", "isPremium")
        .range("price", "minPrice", "maxPrice")
        .filter_identifier("author", "author")
        .filter_array("tags", "tags")
    )

    assert builder.match_condition() is None


def test_inverted_range_is_rejected():
    with pytest.raises(BadRequestError):
        QueryBuilder({"minPrice": "50", "maxPrice": "10"}).range("price", "minPrice", "maxPrice")


def test_array_modes():
    builder = (
        QueryBuilder({"tags": "Nature,City", "compatibleTools": ["figma", "sketch"]})
        .filter_array("tags", "tags", mode="all")
        .filter_array("compatibleTools", "compatibleTools", mode="in")
    )

    assert builder.conditions == [
        ContainsAll("tags", ("nature", "city")),
        ContainsAny("compatibleTools", ("figma", "sketch")),
    ]


def test_identifier_array_drops_invalid_ids():
    builder = QueryBuilder({"categories": f"{ASSET_ID},junk,{OTHER_ID}"}).filter_identifier_array(
        "categories", "categories"
    )

    assert builder.conditions == [ContainsAny("categories", (ASSET_ID, OTHER_ID))]


def test_parse_sort_handles_direction_and_duplicates():
    assert parse_sort("-createdAt, title ,-title") == {"createdAt": -1, "title": -1}
    assert parse_sort(",,") == {}


def test_pagination_clamps_values():
    builder = QueryBuilder({"page": "0", "limit": "1000"}).paginate()
    assert (builder.page, builder.limit) == (1, 100)

    builder = QueryBuilder({"page": "3.7", "limit": "-5"}).paginate()
    assert (builder.page, builder.limit) == (3, 20)


def test_projection_always_keeps_identifier():
    builder = QueryBuilder({"fields": "title,-price"}).project()
    built = builder.build()

    assert Project(("uuid", "title", "price")) in built.result_stages
    assert builder.apply_projection({"uuid": "1", "title": "a", "price": 2, "slug": "x"}) == {
        "uuid": "1",
        "title": "a",
        "price": 2,
    }


def test_count_stages_share_the_match_stage():
    built = QueryBuilder({"status": "approved"}).filter_exact("status", "status").paginate().build()

    assert built.result_stages[0] == Match(Equals("status", "approved"))
    assert built.count_stages == (Match(Equals("status", "approved")), Count())


def test_meta():
    builder = QueryBuilder({"page": "2", "limit": "5"}).paginate()

    assert builder.build_meta(23).to_dict() == {
        "page": 2,
        "limit": 5,
        "total": 23,
        "totalPages": 5,
        "hasMore": True,
    }
    assert builder.build_meta(0).to_dict()["totalPages"] == 0


def test_meta_on_last_and_middle_pages():
    last = QueryBuilder({"page": "6", "limit": "20"}).paginate().build_meta(101).to_dict()
    assert (last["totalPages"], last["hasMore"]) == (6, False)

    middle = QueryBuilder({"page": "3", "limit": "20"}).paginate().build_meta(101).to_dict()
    assert middle["hasMore"] is True


def test_array_filter_accepts_string_or_list():
    from_string = QueryBuilder({"tags": "a,b,c"}).filter_array("tags", "tags", mode="in")
    from_list = QueryBuilder({"tags": ["a", "b", "c"]}).filter_array("tags", "tags", mode="in")

    assert from_string.conditions == from_list.conditions


def test_unparseable_sort_keeps_newest_first():
    built = QueryBuilder({"sort": ",,"}).sort().build()

    assert built.result_stages[0] == Sort((("createdAt", -1),))


def test_like_wildcards_are_escaped():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


@pytest.mark.parametrize("page", ["1e20", "99999999999999999999"])
def test_huge_page_keeps_offset_in_range(page):
    builder = QueryBuilder({"page": page, "limit": "20"}).paginate()
    skip, limit = builder.build().result_stages[1:3]

    assert builder.page > 1
    assert skip.count + limit.count <= MAX_OFFSET
