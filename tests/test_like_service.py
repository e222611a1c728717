"""Like service tests: state, toggle semantics and subscriptions."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from socialfeed.errors import StorageError, ValidationError
from socialfeed.services.likes import LikeService
from tests.conftest import InMemoryLikeStore

POST_ID = "post-1"


# --- get_state ---


def test_get_state_anonymous_reports_not_liked(like_store: InMemoryLikeStore) -> None:
    like_store.seed(POST_ID, ["a", "b"])
    state = LikeService(like_store).get_state(POST_ID)

    assert state.likes_count == 2
    assert state.liked is False
    assert like_store.calls["find"] == 0


def test_get_state_for_liking_user(like_store: InMemoryLikeStore) -> None:
    like_store.seed(POST_ID, ["a"])
    service = LikeService(like_store)

    assert service.get_state(POST_ID, "a").liked is True
    assert service.get_state(POST_ID, "b").liked is False


def test_count_equals_distinct_likers(like_store: InMemoryLikeStore) -> None:
    """likesCount matches the number of distinct users with a record, per post."""
    like_store.seed(POST_ID, ["a", "b", "c"])
    like_store.seed("post-2", ["a"])
    service = LikeService(like_store)

    assert service.get_state(POST_ID).likes_count == 3
    assert service.get_state("post-2").likes_count == 1
    assert service.get_state("post-3").likes_count == 0


def test_get_state_requires_post_id(like_store: InMemoryLikeStore) -> None:
    with pytest.raises(ValidationError):
        LikeService(like_store).get_state("")


def test_get_state_propagates_storage_error(like_store: InMemoryLikeStore) -> None:
    like_store.fail_with = StorageError("Failed to count likes")

    with pytest.raises(StorageError):
        LikeService(like_store).get_state(POST_ID)


# --- toggle ---


def test_toggle_scenario_three_four_three(like_store: InMemoryLikeStore) -> None:
    """Unliked with 3 likes: like gives 4, like again gives 3."""
    like_store.seed(POST_ID, ["x", "y", "z"])
    service = LikeService(like_store)

    first = service.toggle(POST_ID, "a")
    assert (first.liked, first.likes_count) == (True, 4)

    second = service.toggle(POST_ID, "a")
    assert (second.liked, second.likes_count) == (False, 3)


def test_double_toggle_restores_original_state(like_store: InMemoryLikeStore) -> None:
    like_store.seed(POST_ID, ["a", "b"])
    service = LikeService(like_store)
    before = service.get_state(POST_ID, "a")

    service.toggle(POST_ID, "a")
    after = service.toggle(POST_ID, "a")

    assert after == before


def test_toggle_issues_exactly_one_mutation(like_store: InMemoryLikeStore) -> None:
    service = LikeService(like_store)

    service.toggle(POST_ID, "a")
    assert like_store.calls["insert"] == 1
    assert like_store.calls["delete"] == 0

    service.toggle(POST_ID, "a")
    assert like_store.calls["insert"] == 1
    assert like_store.calls["delete"] == 1


def test_toggle_treats_duplicate_insert_as_liked(like_store: InMemoryLikeStore) -> None:
    """A concurrent insert by the same user wins; the loser still reports liked."""
    service = LikeService(like_store)
    original_find = like_store.find

    def find_then_race(post_id: str, user_id: str):
        result = original_find(post_id, user_id)
        like_store.seed(post_id, [user_id])
        return result

    like_store.find = find_then_race  # type: ignore[method-assign]

    state = service.toggle(POST_ID, "a")

    assert state.liked is True
    assert state.likes_count == 1


def test_concurrent_distinct_users_are_all_counted(
    like_store: InMemoryLikeStore,
) -> None:
    service = LikeService(like_store)
    users = [f"user-{i}" for i in range(25)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda u: service.toggle(POST_ID, u), users))

    assert all(r.liked for r in results)
    assert service.get_state(POST_ID).likes_count == len(users)


@pytest.mark.parametrize(("post_id", "user_id"), [("", "a"), (POST_ID, ""), ("  ", "a")])
def test_toggle_rejects_empty_identifiers(
    like_store: InMemoryLikeStore, post_id: str, user_id: str
) -> None:
    with pytest.raises(ValidationError):
        LikeService(like_store).toggle(post_id, user_id)
    assert like_store.mutations == 0


# --- subscribe ---


@pytest.mark.asyncio
async def test_subscribe_delivers_first_value_immediately(
    like_store: InMemoryLikeStore,
) -> None:
    like_store.seed(POST_ID, ["a"])
    counts = LikeService(like_store).subscribe(POST_ID, interval=10.0)

    first = await asyncio.wait_for(anext(counts), timeout=1.0)

    assert first == 1
    await counts.aclose()


@pytest.mark.asyncio
async def test_subscribe_emits_every_tick_without_change_suppression(
    like_store: InMemoryLikeStore,
) -> None:
    like_store.seed(POST_ID, ["a", "b"])
    counts = LikeService(like_store).subscribe(POST_ID, interval=0.01)

    values = [await asyncio.wait_for(anext(counts), timeout=1.0) for _ in range(4)]
    await counts.aclose()

    assert values == [2, 2, 2, 2]
    assert like_store.calls["count"] == 4


@pytest.mark.asyncio
async def test_subscribe_reflects_new_likes(like_store: InMemoryLikeStore) -> None:
    service = LikeService(like_store)
    counts = service.subscribe(POST_ID, interval=0.01)

    assert await anext(counts) == 0
    service.toggle(POST_ID, "a")
    assert await asyncio.wait_for(anext(counts), timeout=1.0) == 1
    await counts.aclose()


@pytest.mark.asyncio
async def test_subscribe_stops_querying_after_close(
    like_store: InMemoryLikeStore,
) -> None:
    counts = LikeService(like_store).subscribe(POST_ID, interval=0.01)
    await anext(counts)
    await anext(counts)

    await counts.aclose()
    queries_at_close = like_store.calls["count"]
    await asyncio.sleep(0.05)

    assert like_store.calls["count"] == queries_at_close


@pytest.mark.asyncio
async def test_subscribe_cancelled_task_stops_querying(
    like_store: InMemoryLikeStore,
) -> None:
    received: list[int] = []

    async def consume() -> None:
        async for value in LikeService(like_store).subscribe(POST_ID, interval=0.01):
            received.append(value)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    delivered = len(received)
    queries = like_store.calls["count"]
    await asyncio.sleep(0.05)

    assert delivered >= 1
    assert len(received) == delivered
    assert like_store.calls["count"] == queries


@pytest.mark.asyncio
async def test_subscribe_skips_failed_ticks(like_store: InMemoryLikeStore) -> None:
    like_store.seed(POST_ID, ["a"])
    like_store.fail_with = StorageError("Failed to count likes")
    counts = LikeService(like_store).subscribe(POST_ID, interval=0.01)

    next_value = asyncio.ensure_future(anext(counts))
    await asyncio.sleep(0.05)
    assert not next_value.done()

    like_store.fail_with = None
    assert await asyncio.wait_for(next_value, timeout=1.0) == 1
    assert like_store.calls["count"] > 2
    await counts.aclose()


@pytest.mark.asyncio
async def test_subscribe_skip_first_waits_one_interval(
    like_store: InMemoryLikeStore,
) -> None:
    counts = LikeService(like_store).subscribe(POST_ID, interval=0.05, skip_first=True)
    next_value = asyncio.ensure_future(anext(counts))

    await asyncio.sleep(0.01)
    assert like_store.calls["count"] == 0

    assert await asyncio.wait_for(next_value, timeout=1.0) == 0
    await counts.aclose()
