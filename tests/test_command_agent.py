"""Chat command parsing and error replies."""

import logging

import pytest

from models.game import PlayerRef, Platform, RolePreference
from tests.helpers import make_refs

ADA = PlayerRef(platform=Platform.SLACK, id="U_ADA", name="ada")


@pytest.fixture
def handler(engine):
    return engine.command_handler


@pytest.mark.asyncio
async def test_help(handler, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc help")

    text = slack_bot.channel_texts[-1]
    assert "Eat Poop You Cat" in text
    for command in ("start", "status", "join <game>", "leave <game>", "available", "role author|artist|none"):
        assert f"@epyc {command}" in text


@pytest.mark.asyncio
async def test_unknown_and_empty_commands(handler, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc dance")
    await handler.process_message(channel, ADA, "@epyc")

    assert slack_bot.channel_texts == ["🧐 huh?  Try @epyc help for help."] * 2


@pytest.mark.asyncio
async def test_start_uses_mentions_and_interest(handler, gm, channel, slack_bot, store):
    refs = make_refs(3)
    await handler.process_message(channel, ADA, "@epyc available")

    await handler.process_message(channel, ADA, "<@UBOT> start <@U0> <@U1> <@U2>", refs)

    [game] = await store.list_games()
    assert len(game.turns) == 4
    ada = await gm.resolver.lookup(ADA)
    assert game.find_player_turn(ada.id) is not None
    assert slack_bot.channel_texts[-1].startswith(f"Game {game.name} has begun!")


@pytest.mark.asyncio
async def test_game_logic_error_is_replied_verbatim(handler, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc start", make_refs(2))
    await handler.process_message(channel, ADA, "@epyc join nosuchgame")

    assert slack_bot.channel_texts == [
        "You need at least 4 people to start a game of Eat Poop You Cat",
        "Game nosuchgame does not exist",
    ]


@pytest.mark.asyncio
async def test_internal_error_gets_generic_reply(handler, gm, channel, slack_bot, monkeypatch, caplog):
    async def broken(channel):
        raise RuntimeError("firestore unavailable")

    monkeypatch.setattr(gm, "report_status", broken)

    with caplog.at_level(logging.ERROR, logger="agents.command_agent"):
        await handler.process_message(channel, ADA, "@epyc status")

    assert slack_bot.channel_texts == ["🧐 huh?  Try @epyc help for help."]
    assert any(r.exc_info for r in caplog.records)


@pytest.mark.asyncio
async def test_join_and_leave(handler, gm, channel, slack_bot):
    game = await gm.start_game(make_refs(4), channel)

    await handler.process_message(channel, ADA, f"@epyc join {game.name}")
    assert slack_bot.channel_texts[-1] == f"OK ada, you are now in game {game.name}"

    await handler.process_message(channel, ADA, f"@epyc leave {game.name}")
    assert slack_bot.channel_texts[-1] == f"OK ada, you have left game {game.name}"
    assert len((await gm.get_game(game.name)).turns) == 4


@pytest.mark.asyncio
async def test_join_without_game_name_shows_help(handler, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc join")

    assert "Bot Commands" in slack_bot.channel_texts[-1]


@pytest.mark.asyncio
async def test_availability(handler, store, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc available")
    assert [p.name for p in await store.get_interest(channel)] == ["ada"]
    assert slack_bot.channel_texts[-1] == "OK ada, you are now available for new games in this channel."

    await handler.process_message(channel, ADA, "@epyc unavailable")
    assert await store.get_interest(channel) == []
    assert slack_bot.channel_texts[-1] == "OK ada, you are no longer available for new games in this channel."


@pytest.mark.asyncio
async def test_role_preference(handler, gm, channel, slack_bot):
    await handler.process_message(channel, ADA, "@epyc role artist")
    assert (await gm.resolver.lookup(ADA)).preferred_game_role == RolePreference.ARTIST
    assert slack_bot.channel_texts[-1].endswith(" OK ada, you will now be seated to draw pictures where possible.")

    await handler.process_message(channel, ADA, "@epyc role author")
    assert slack_bot.channel_texts[-1].endswith(" OK ada, you will now be seated to write captions where possible.")
    assert slack_bot.channel_texts[-1].startswith("💁")

    await handler.process_message(channel, ADA, "@epyc role none")
    assert (await gm.resolver.lookup(ADA)).preferred_game_role is None
    assert slack_bot.channel_texts[-1] == "OK ada, you no longer have a preferred game role."

    await handler.process_message(channel, ADA, "@epyc role juggler")
    assert slack_bot.channel_texts[-1] == "Pick one of @epyc role author|artist|none"


@pytest.mark.asyncio
async def test_redirect(handler, gm, channel, slack_bot, discord_bot):
    other = PlayerRef(platform=Platform.DISCORD, id="D_ADA", name="ada on discord")

    await handler.process_message(channel, ADA, "@epyc redirect @ada", mentions=[other])
    assert (await gm.resolver.lookup(ADA)).name == "ada on discord"
    assert slack_bot.channel_texts[-1] == "OK ada, your turns and messages will now go to ada on discord."

    await handler.process_message(channel, ADA, "@epyc redirect none")
    assert (await gm.resolver.lookup(ADA)).name == "ada"
    assert slack_bot.channel_texts[-1] == "OK ada, your turns and messages will come to you directly."

    await handler.process_message(channel, ADA, "@epyc redirect")
    assert slack_bot.channel_texts[-1] == "Pick one of @epyc redirect @person|none"
