"""
Tests match computation.
"""

from itertools import chain

import pytest

from groupmatch.core.media import MediaKey, encode_media_key
from groupmatch.core.uuid import uuid7
from groupmatch.service import groups as groups_service
from groupmatch.service import matches as matches_service
from groupmatch.service import media as media_service
from groupmatch.service import user as user_service


async def compute(session_manager, logger, group_id):
    async with session_manager.session() as conn:
        async with conn.begin():
            return await matches_service.compute_matches(
                group_id=group_id, conn=conn, log=logger
            )


def test_tally_collapses_key_order():
    votes = [
        {"media_id": {"media_type": "movie", "external_id": "1"}, "like": True},
        {"media_id": {"external_id": "1", "media_type": "movie"}, "like": True},
        {"media_id": {"media_type": "movie", "external_id": "2"}, "like": True},
        {"media_id": {"media_type": "movie", "external_id": "2"}, "like": False},
    ]

    tally = matches_service.tally_likes(votes)

    first = encode_media_key(MediaKey(media_type="movie", external_id="1"))
    second = encode_media_key(MediaKey(media_type="movie", external_id="2"))

    assert tally == {first: 2, second: 1}
    assert list(tally) == [first, second]
    assert matches_service.select_matches(tally) == [(first, 2)]


def test_tally_counts_repeated_votes():
    vote = {"media_id": {"media_type": "tv", "external_id": "9"}, "like": True}

    tally = matches_service.tally_likes([vote, vote, vote])

    assert list(tally.values()) == [3]


@pytest.mark.asyncio(loop_scope="session")
async def test_match_threshold(
    session_manager, logger, make_user, make_group, make_media, vote
):
    one, two, three = [await make_user(name) for name in ("one", "two", "three")]
    group_id = await make_group(one, two, three)
    media = await make_media("Shared")

    await vote(one, media, like=True)
    await vote(two, media, like=True)
    await vote(three, media, like=False)

    matches = await compute(session_manager, logger, group_id)

    assert len(matches) == 1
    assert matches[0].count == 2
    assert matches[0].media.external_id == media.external_id
    assert matches[0].media.title == "Shared"


@pytest.mark.asyncio(loop_scope="session")
async def test_single_like_is_not_a_match(
    session_manager, logger, make_user, make_group, make_media, vote
):
    one, two = await make_user("one"), await make_user("two")
    group_id = await make_group(one, two)
    media = await make_media()

    await vote(one, media, like=True)
    await vote(two, media, like=False)

    assert await compute(session_manager, logger, group_id) == []


@pytest.mark.asyncio(loop_scope="session")
async def test_votes_of_non_members_are_ignored(
    session_manager, logger, make_user, make_group, make_media, vote
):
    member = await make_user("member")
    outsider = await make_user("outsider")
    group_id = await make_group(member)
    media = await make_media()

    await vote(member, media)
    await vote(outsider, media)

    assert await compute(session_manager, logger, group_id) == []


@pytest.mark.asyncio(loop_scope="session")
async def test_empty_group_has_no_matches(
    session_manager, logger, make_user, make_group
):
    owner = await make_user("owner")
    group_id = await make_group(owner)

    async with session_manager.session() as conn:
        async with conn.begin():
            await groups_service.leave_by_id(
                group_id=group_id, requester_id=owner, conn=conn, log=logger
            )

    assert await compute(session_manager, logger, group_id) == []


@pytest.mark.asyncio(loop_scope="session")
async def test_matches_of_missing_group(session_manager, logger):
    with pytest.raises(groups_service.GroupNotFound):
        await compute(session_manager, logger, uuid7())


@pytest.mark.asyncio(loop_scope="session")
async def test_matches_do_not_modify_state(
    session_manager, logger, make_user, make_group, make_media, vote
):
    one, two = await make_user("one"), await make_user("two")
    group_id = await make_group(one, two)
    media = await make_media()
    await vote(one, media)
    await vote(two, media)

    first = await compute(session_manager, logger, group_id)
    second = await compute(session_manager, logger, group_id)

    assert first == second

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(
                group_id=group_id, conn=conn, log=logger
            )
            assert group.members_id == [one, two]


@pytest.mark.asyncio(loop_scope="session")
async def test_end_to_end(
    session_manager, logger, make_user, make_group, make_media, vote
):
    u1, u2, u3 = [await make_user(name) for name in ("u1", "u2", "u3")]
    x = await make_media("X")
    y = await make_media("Y")

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                name="end to end", requester_id=u1, conn=conn, log=logger
            )
            group_id = group.group_id

    for user in (u2, u3):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.join_by_id(
                    group_id=group_id, requester_id=user, conn=conn, log=logger
                )

    await vote(u1, x)
    await vote(u2, x)
    await vote(u3, y)

    matches = await compute(session_manager, logger, group_id)

    assert [(m.count, m.media.title) for m in matches] == [(2, "X")]
    assert matches[0].media.media_type == x.media_type
    assert matches[0].media.external_id == x.external_id


@pytest.mark.asyncio(loop_scope="session")
async def test_vote_on_unknown_media(session_manager, logger, make_user, vote):
    user = await make_user()

    with pytest.raises(media_service.MediaNotFound):
        await vote(user, MediaKey(media_type="movie", external_id=uuid7().hex))


@pytest.mark.asyncio(loop_scope="session")
async def test_repeated_member_ids_count_once(
    session_manager, logger, make_user, make_media, vote
):
    one, two = await make_user("one"), await make_user("two")
    media = await make_media()
    await vote(one, media)

    async with session_manager.session() as conn:
        async with conn.begin():
            members = await user_service.read_many_by_ids(
                user_ids=[one, one, two], conn=conn, log=logger
            )

    assert sorted(member.user_id for member in members) == sorted([one, two])

    tally = matches_service.tally_likes(
        chain.from_iterable(member.votes for member in members)
    )
    assert matches_service.select_matches(tally) == []
