"""
Match computation. A match is a media item liked by more than one member of a
group; matches are computed from the members' votes on every request and never
stored.
"""

from collections import Counter
from itertools import chain
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupmatch.core.group import MatchData
from groupmatch.core.media import decode_media_key, encode_media_key
from groupmatch.core.uuid import UUID

from . import groups as groups_service
from . import media as media_service
from . import user as user_service

MATCH_THRESHOLD = 1


def tally_likes(votes: Iterable[dict[str, Any]]) -> Counter[str]:
    """
    Count liking votes per media item, keyed by the canonical media key.
    Every liking vote record counts, including repeats from the same user.
    Keys appear in order of their first liking vote.
    """
    return Counter(
        encode_media_key(vote["media_id"]) for vote in votes if vote.get("like")
    )


def select_matches(tally: Counter[str]) -> list[tuple[str, int]]:
    return [(key, count) for key, count in tally.items() if count > MATCH_THRESHOLD]


async def compute_matches(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[MatchData]:
    """
    Compute the matches of a group.

    Parameters
    ----------
    group_id: UUID
        The group to compute matches for.

    Returns
    -------
    list[MatchData]
        One entry per media item with more than one like, with the number of
        likes and the resolved media record.

    Raises
    ------
    groups_service.GroupNotFound
        If the group does not exist.
    media_service.MediaNotFound
        If a matched media item has no record.
    """
    log = log.bind(group_id=group_id)

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    members = await user_service.read_many_by_ids(
        user_ids=group.members_id, conn=conn, log=log
    )

    tally = tally_likes(chain.from_iterable(member.votes for member in members))
    matched = select_matches(tally)

    matches = []
    for key, count in matched:
        media = await media_service.read_by_key(
            key=decode_media_key(key), conn=conn, log=log
        )
        matches.append(MatchData(count=count, media=media.to_core()))

    await log.ainfo(
        "match.computed",
        number_of_members=len(members),
        liked_media=len(tally),
        number_of_matches=len(matches),
    )

    return matches
