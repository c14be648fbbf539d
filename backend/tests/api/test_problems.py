"""Tests for problem CRUD endpoints."""
from httpx import AsyncClient

from tests.helpers import MISSING_PROBLEM_ID


def problem_payload(**overrides: object) -> dict:
    """Build a valid create/update body."""
    payload = {
        "title": "Two Sum",
        "url": "https://leetcode.com/problems/two-sum/",
        "difficulty": "EASY",
        "language_used": "Python",
        "solution_notes": "Hash map of value to index.",
        "what_went_wrong": "",
        "trigger_keywords": "pair, target",
        "time_complexity": "O(n)",
        "space_complexity": "O(n)",
        "was_hard": False,
        "categories": ["Array", "Hash Table"],
    }
    payload.update(overrides)
    return payload


async def test_create_problem(client: AsyncClient) -> None:
    """Test creating a problem returns 201 with the stored fields."""
    response = await client.post("/problems/", json=problem_payload())
    assert response.status_code == 201

    data = response.json()
    assert isinstance(data["id"], int)
    assert data["title"] == "Two Sum"
    assert data["difficulty"] == "EASY"
    assert data["language_used"] == "Python"
    assert data["solution_notes"] == "Hash map of value to index."
    assert data["categories"] == ["Array", "Hash Table"]
    assert data["was_hard"] is False
    assert data["date_solved"] is not None
    assert "created_at" in data
    assert "updated_at" in data


async def test_create_problem_normalizes_categories(client: AsyncClient) -> None:
    """Test that category names are trimmed, empty ones dropped and duplicates removed."""
    response = await client.post(
        "/problems/",
        json=problem_payload(categories=[" Array ", "", "Stack", "Array", "   "]),
    )
    assert response.status_code == 201
    assert response.json()["categories"] == ["Array", "Stack"]


async def test_create_problem_accepts_lowercase_difficulty(client: AsyncClient) -> None:
    """Test that difficulty is accepted in any case and stored uppercase."""
    response = await client.post("/problems/", json=problem_payload(difficulty="medium"))
    assert response.status_code == 201
    assert response.json()["difficulty"] == "MEDIUM"


async def test_create_problem_with_date_solved(client: AsyncClient) -> None:
    """Test that an explicit date_solved is stored."""
    response = await client.post(
        "/problems/",
        json=problem_payload(date_solved="2024-03-15T10:00:00Z"),
    )
    assert response.status_code == 201
    assert response.json()["date_solved"].startswith("2024-03-15T10:00:00")


async def test_create_problem_invalid_difficulty(client: AsyncClient) -> None:
    """Test that an unknown difficulty is rejected."""
    response = await client.post("/problems/", json=problem_payload(difficulty="EXTREME"))
    assert response.status_code == 422


async def test_create_problem_missing_required_fields(client: AsyncClient) -> None:
    """Test that title, url, difficulty and language are required."""
    response = await client.post("/problems/", json={"title": "Only a title"})
    assert response.status_code == 422


async def test_create_problem_empty_title(client: AsyncClient) -> None:
    """Test that an empty title is rejected."""
    response = await client.post("/problems/", json=problem_payload(title=""))
    assert response.status_code == 422


async def test_get_problem(client: AsyncClient) -> None:
    """Test retrieving a problem by id."""
    created = (await client.post("/problems/", json=problem_payload())).json()

    response = await client.get(f"/problems/{created['id']}")
    assert response.status_code == 200

    data = response.json()
    assert data["id"] == created["id"]
    assert data["title"] == "Two Sum"
    assert data["categories"] == ["Array", "Hash Table"]


async def test_get_problem_not_found(client: AsyncClient) -> None:
    """Test that a missing problem returns 404 with an error body."""
    response = await client.get(f"/problems/{MISSING_PROBLEM_ID}")
    assert response.status_code == 404
    assert response.json() == {"error": "Problem not found"}


async def test_update_problem_replaces_fields(client: AsyncClient) -> None:
    """Test that PUT replaces every field and the category set."""
    created = (await client.post("/problems/", json=problem_payload())).json()

    response = await client.put(
        f"/problems/{created['id']}",
        json=problem_payload(
            title="Two Sum II",
            difficulty="MEDIUM",
            was_hard=True,
            what_went_wrong="Forgot the array is sorted.",
            categories=["Two Pointers"],
        ),
    )
    assert response.status_code == 200

    data = response.json()
    assert data["title"] == "Two Sum II"
    assert data["difficulty"] == "MEDIUM"
    assert data["was_hard"] is True
    assert data["what_went_wrong"] == "Forgot the array is sorted."
    assert data["categories"] == ["Two Pointers"]


async def test_update_problem_keeps_date_solved_when_omitted(client: AsyncClient) -> None:
    """Test that omitting date_solved on update keeps the stored value."""
    created = (
        await client.post("/problems/", json=problem_payload(date_solved="2024-01-02T00:00:00Z"))
    ).json()

    response = await client.put(
        f"/problems/{created['id']}",
        json=problem_payload(title="Renamed"),
    )
    assert response.status_code == 200
    assert response.json()["date_solved"].startswith("2024-01-02T00:00:00")


async def test_update_problem_clears_categories(client: AsyncClient) -> None:
    """Test that an empty category list removes all categories."""
    created = (await client.post("/problems/", json=problem_payload())).json()

    response = await client.put(
        f"/problems/{created['id']}",
        json=problem_payload(categories=[]),
    )
    assert response.status_code == 200
    assert response.json()["categories"] == []


async def test_update_problem_not_found(client: AsyncClient) -> None:
    """Test that updating a missing problem returns 404."""
    response = await client.put(f"/problems/{MISSING_PROBLEM_ID}", json=problem_payload())
    assert response.status_code == 404
    assert response.json()["error"] == "Problem not found"


async def test_delete_problem(client: AsyncClient) -> None:
    """Test that deleting a problem returns 204 and removes it."""
    created = (await client.post("/problems/", json=problem_payload())).json()

    response = await client.delete(f"/problems/{created['id']}")
    assert response.status_code == 204

    response = await client.get(f"/problems/{created['id']}")
    assert response.status_code == 404


async def test_delete_problem_not_found(client: AsyncClient) -> None:
    """Test that deleting a missing problem returns 404."""
    response = await client.delete(f"/problems/{MISSING_PROBLEM_ID}")
    assert response.status_code == 404


async def test_delete_problem_keeps_categories_for_other_problems(client: AsyncClient) -> None:
    """Test that deleting one problem leaves shared categories on the others."""
    first = (await client.post("/problems/", json=problem_payload(categories=["Array"]))).json()
    await client.post("/problems/", json=problem_payload(title="Other", categories=["Array"]))

    await client.delete(f"/problems/{first['id']}")

    response = await client.get("/categories/")
    assert response.json()["categories"] == [{"name": "Array", "count": 1}]


async def test_list_problems_empty(client: AsyncClient) -> None:
    """Test listing when no problems exist."""
    response = await client.get("/problems/")
    assert response.status_code == 200

    data = response.json()
    assert data["items"] == []
    assert data["total"] == 0
    assert data["has_more"] is False


async def test_list_problems_sorted_by_date_solved_desc(client: AsyncClient) -> None:
    """Test that the default order is most recently solved first."""
    await client.post("/problems/", json=problem_payload(title="Old", date_solved="2024-01-01T00:00:00Z"))  # noqa: E501
    await client.post("/problems/", json=problem_payload(title="New", date_solved="2024-06-01T00:00:00Z"))  # noqa: E501
    await client.post("/problems/", json=problem_payload(title="Mid", date_solved="2024-03-01T00:00:00Z"))  # noqa: E501

    response = await client.get("/problems/")
    titles = [item["title"] for item in response.json()["items"]]
    assert titles == ["New", "Mid", "Old"]


async def test_list_problems_excludes_long_text_fields(client: AsyncClient) -> None:
    """Test that list items omit solution notes and other long text fields."""
    await client.post("/problems/", json=problem_payload())

    item = (await client.get("/problems/")).json()["items"][0]
    assert "solution_notes" not in item
    assert "what_went_wrong" not in item
    assert item["categories"] == ["Array", "Hash Table"]


async def test_list_problems_pagination(client: AsyncClient) -> None:
    """Test offset/limit pagination and has_more."""
    for i in range(5):
        await client.post(
            "/problems/",
            json=problem_payload(title=f"Problem {i}", date_solved=f"2024-01-0{i + 1}T00:00:00Z"),
        )

    response = await client.get("/problems/", params={"offset": 0, "limit": 2})
    data = response.json()
    assert [item["title"] for item in data["items"]] == ["Problem 4", "Problem 3"]
    assert data["total"] == 5
    assert data["has_more"] is True

    response = await client.get("/problems/", params={"offset": 4, "limit": 2})
    data = response.json()
    assert [item["title"] for item in data["items"]] == ["Problem 0"]
    assert data["has_more"] is False


async def test_list_problems_limit_out_of_range(client: AsyncClient) -> None:
    """Test that limit must be between 1 and 100."""
    assert (await client.get("/problems/", params={"limit": 0})).status_code == 422
    assert (await client.get("/problems/", params={"limit": 101})).status_code == 422


async def test_list_problems_search(client: AsyncClient) -> None:
    """Test case-insensitive text search across title and trigger keywords."""
    await client.post("/problems/", json=problem_payload(title="Two Sum", trigger_keywords=""))
    await client.post(
        "/problems/",
        json=problem_payload(
            title="Coin Change",
            url="https://leetcode.com/problems/coin-change/",
            trigger_keywords="knapsack",
        ),
    )

    response = await client.get("/problems/", params={"q": "KNAPSACK"})
    assert [item["title"] for item in response.json()["items"]] == ["Coin Change"]

    response = await client.get("/problems/", params={"q": "two"})
    assert [item["title"] for item in response.json()["items"]] == ["Two Sum"]


async def test_list_problems_search_matches_url(client: AsyncClient) -> None:
    """Test that text search also matches the problem URL."""
    await client.post(
        "/problems/",
        json=problem_payload(
            title="LRU Cache",
            url="https://leetcode.com/problems/lru-cache/",
            trigger_keywords="",
            solution_notes="",
        ),
    )
    await client.post(
        "/problems/",
        json=problem_payload(
            title="Valid Parentheses",
            url="https://leetcode.com/problems/valid-parentheses/",
            trigger_keywords="",
            solution_notes="",
        ),
    )

    response = await client.get("/problems/", params={"q": "lru-cache"})
    assert [item["title"] for item in response.json()["items"]] == ["LRU Cache"]


async def test_list_problems_search_treats_wildcards_literally(client: AsyncClient) -> None:
    """Test that % and _ in the query match literally."""
    await client.post("/problems/", json=problem_payload(title="100% Accuracy"))
    await client.post("/problems/", json=problem_payload(title="Plain Title"))

    response = await client.get("/problems/", params={"q": "%"})
    assert [item["title"] for item in response.json()["items"]] == ["100% Accuracy"]


async def test_list_problems_filter_by_difficulty(client: AsyncClient) -> None:
    """Test filtering by one or more difficulties."""
    await client.post("/problems/", json=problem_payload(title="E", difficulty="EASY"))
    await client.post("/problems/", json=problem_payload(title="M", difficulty="MEDIUM"))
    await client.post("/problems/", json=problem_payload(title="H", difficulty="HARD"))

    response = await client.get("/problems/", params=[("difficulty", "EASY"), ("difficulty", "HARD")])  # noqa: E501
    titles = {item["title"] for item in response.json()["items"]}
    assert titles == {"E", "H"}


async def test_list_problems_filter_by_language_and_was_hard(client: AsyncClient) -> None:
    """Test filtering by language (case-insensitive) and the was-hard flag."""
    await client.post("/problems/", json=problem_payload(title="A", language_used="Python", was_hard=True))  # noqa: E501
    await client.post("/problems/", json=problem_payload(title="B", language_used="Python"))
    await client.post("/problems/", json=problem_payload(title="C", language_used="Go", was_hard=True))  # noqa: E501

    response = await client.get("/problems/", params={"language": "python"})
    assert {item["title"] for item in response.json()["items"]} == {"A", "B"}

    response = await client.get("/problems/", params={"was_hard": "true"})
    assert {item["title"] for item in response.json()["items"]} == {"A", "C"}


async def test_list_problems_filter_by_categories(client: AsyncClient) -> None:
    """Test category filtering in 'all' and 'any' modes."""
    await client.post("/problems/", json=problem_payload(title="Both", categories=["Array", "Stack"]))  # noqa: E501
    await client.post("/problems/", json=problem_payload(title="Array only", categories=["Array"]))  # noqa: E501
    await client.post("/problems/", json=problem_payload(title="Graph", categories=["Graph"]))

    response = await client.get(
        "/problems/", params=[("categories", "Array"), ("categories", "Stack")],
    )
    assert [item["title"] for item in response.json()["items"]] == ["Both"]

    response = await client.get(
        "/problems/",
        params=[("categories", "Stack"), ("categories", "Graph"), ("category_match", "any")],
    )
    assert {item["title"] for item in response.json()["items"]} == {"Both", "Graph"}


async def test_list_problems_sort_by_title_and_difficulty(client: AsyncClient) -> None:
    """Test sorting by title and by difficulty rank."""
    await client.post("/problems/", json=problem_payload(title="beta", difficulty="HARD"))
    await client.post("/problems/", json=problem_payload(title="Alpha", difficulty="EASY"))
    await client.post("/problems/", json=problem_payload(title="gamma", difficulty="MEDIUM"))

    response = await client.get("/problems/", params={"sort_by": "title", "sort_order": "asc"})
    assert [item["title"] for item in response.json()["items"]] == ["Alpha", "beta", "gamma"]

    response = await client.get(
        "/problems/", params={"sort_by": "difficulty", "sort_order": "asc"},
    )
    assert [item["difficulty"] for item in response.json()["items"]] == ["EASY", "MEDIUM", "HARD"]


async def test_list_problems_invalid_sort_field(client: AsyncClient) -> None:
    """Test that an unknown sort field is rejected."""
    response = await client.get("/problems/", params={"sort_by": "user_id"})
    assert response.status_code == 422
