"""Join / leave resequencing."""

import pytest

from models.errors import AlreadyInGame, GameAlreadyComplete, GameNotFound, NotInGame, TurnAlreadyPlayed
from models.game import PlayerRef, Platform, RolePreference
from tests.helpers import make_refs
from tests.test_game_master import play_through


def ref_for(refs, player):
    return next(r for r in refs if r.id == player.platform_id)


@pytest.mark.asyncio
async def test_join_appends_and_keeps_played_prefix(gm, channel, slack_bot):
    game = await gm.start_game(make_refs(4), channel)
    game = await play_through(gm, game, 2)
    prefix = [t.model_dump() for t in game.turns[:3]]

    newcomer = PlayerRef(platform=Platform.SLACK, id="N1", name="newbie")
    joined = await gm.join_game(channel, newcomer, game.name)

    assert len(joined.turns) == 5
    assert [t.model_dump() for t in joined.turns[:3]] == prefix
    assert slack_bot.channel_texts[-1] == f"OK newbie, you are now in game {game.name}"


@pytest.mark.asyncio
async def test_join_errors(gm, channel):
    refs = make_refs(4)
    game = await gm.start_game(refs, channel)

    with pytest.raises(GameNotFound):
        await gm.join_game(channel, refs[0], "nosuchgame")
    with pytest.raises(AlreadyInGame):
        await gm.join_game(channel, refs[0], game.name)

    await play_through(gm, game, 4)
    with pytest.raises(GameAlreadyComplete):
        await gm.join_game(channel, PlayerRef(platform=Platform.SLACK, id="late"), game.name)


@pytest.mark.asyncio
async def test_artist_joining_takes_open_odd_slot(gm, channel):
    game = await gm.start_game(make_refs(4), channel)
    game = await play_through(gm, game, 1)

    artist = PlayerRef(platform=Platform.SLACK, id="ART", name="artist")
    await gm.set_role_preference(channel, artist, RolePreference.ARTIST)
    joined = await gm.join_game(channel, artist, game.name)

    artist_player = await gm.resolver.lookup(artist)
    idx = joined.find_player_turn(artist_player.id)
    # turns 0 (played) and 1 (active) are fixed; 3 is the only odd slot left
    assert idx == 3
    assert joined.turns[:2] == game.turns[:2]


@pytest.mark.asyncio
async def test_leave_pending_turn(gm, channel, slack_bot):
    refs = make_refs(5)
    game = await gm.start_game(refs, channel)
    game = await play_through(gm, game, 1)
    prefix = game.turns[:2]
    leaver = await gm.store.get_player(game.turns[3].player_id)
    dm_count = len(slack_bot.direct_messages)

    left = await gm.leave_game(channel, ref_for(refs, leaver), game.name)

    assert len(left.turns) == 4
    assert left.find_player_turn(leaver.id) is None
    assert left.turns[:2] == prefix
    assert len(slack_bot.direct_messages) == dm_count
    assert slack_bot.channel_texts[-1] == f"OK {leaver.name}, you have left game {game.name}"


@pytest.mark.asyncio
async def test_leaving_active_turn_notifies_new_holder_once(gm, channel, slack_bot):
    refs = make_refs(5)
    game = await gm.start_game(refs, channel)
    game = await play_through(gm, game, 1)
    leaver = await gm.store.get_player(game.turns[1].player_id)
    dm_count = len(slack_bot.direct_messages)

    left = await gm.leave_game(channel, ref_for(refs, leaver), game.name)

    new_holder = left.turns[1]
    assert len(slack_bot.direct_messages) == dm_count + 1
    assert slack_bot.direct_messages[-1][0] == new_holder.player_id
    assert f"/play/{game.name}/{new_holder.id}" in slack_bot.direct_messages[-1][1]


@pytest.mark.asyncio
async def test_leaving_last_active_turn_finishes_game(gm, channel, slack_bot):
    refs = make_refs(5)
    game = await gm.start_game(refs, channel)
    game = await play_through(gm, game, 4)
    leaver = await gm.store.get_player(game.turns[4].player_id)
    dm_count = len(slack_bot.direct_messages)

    left = await gm.leave_game(channel, ref_for(refs, leaver), game.name)

    assert left.is_complete
    assert len(left.turns) == 4
    assert len(slack_bot.direct_messages) == dm_count
    done = [t for t in slack_bot.channel_texts if t.startswith(f"Game {game.name} is done!")]
    assert len(done) == 1
    assert (await gm.get_game(game.name)).title_image is not None


@pytest.mark.asyncio
async def test_leave_errors(gm, channel):
    refs = make_refs(4)
    game = await gm.start_game(refs, channel)
    game = await play_through(gm, game, 1)
    played = await gm.store.get_player(game.turns[0].player_id)

    with pytest.raises(GameNotFound):
        await gm.leave_game(channel, refs[0], "nosuchgame")
    with pytest.raises(NotInGame):
        await gm.leave_game(channel, PlayerRef(platform=Platform.SLACK, id="stranger"), game.name)
    with pytest.raises(TurnAlreadyPlayed):
        await gm.leave_game(channel, ref_for(refs, played), game.name)

    await play_through(gm, await gm.get_game(game.name), 4)
    with pytest.raises(GameAlreadyComplete):
        await gm.leave_game(channel, refs[0], game.name)


@pytest.mark.asyncio
async def test_drop_turn_reports_whether_it_was_active(gm, channel):
    game = await gm.start_game(make_refs(6), channel)

    game, was_active = await gm.drop_turn(game.name, game.turns[4].id)
    assert was_active is False
    assert len(game.turns) == 5

    game, was_active = await gm.drop_turn(game.name, game.turns[0].id)
    assert was_active is True
    assert len(game.turns) == 4
