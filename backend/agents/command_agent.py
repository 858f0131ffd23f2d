"""
Chat command handling, shared by every platform adapter.

Adapters hand over the raw message text (leading bot mention included or
not), the sender and any mentioned people. Game-logic errors are answered
with their own message; anything else is logged and answered with a generic
"huh?".
"""
import logging
from typing import List, Optional

from agents.game_master import GameMaster
from agents.notifier import Notifier
from config import Settings, settings
from models.content import MessageChunk, bold, code
from models.errors import GameLogicError
from models.game import Channel, PlayerRef, RolePreference

logger = logging.getLogger(__name__)

ROLE_CHOICES = {
    "author": RolePreference.AUTHOR,
    "artist": RolePreference.ARTIST,
    "none": None,
}


def _help_message(bot_name: str) -> List[MessageChunk]:
    def line(command: str, text: str) -> List[MessageChunk]:
        return ["* ", code(f"{bot_name} {command}"), f": {text}\n"]

    return [
        "🧑🏾‍🎨 ",
        bold("Eat Poop You Cat"),
        "\n\n🤖 Bot Commands:\n",
        *line("start @person1 @person2 @person3 @person4", "Start a new game in this channel"),
        *line("status", "Show the status of all games in this channel"),
        *line("join <game>", "Join an in-progress game"),
        *line("leave <game>", "Leave an in-progress game"),
        *line("available", "Be included in new games started in this channel"),
        *line("unavailable", "Stop being included in new games in this channel"),
        *line("role author|artist|none", "Prefer writing captions or drawing pictures"),
        *line("redirect @person|none", "Have your turns and DMs sent to another account"),
    ]


class CommandHandler:
    def __init__(self, game_master: GameMaster, notifier: Notifier, cfg: Settings = settings):
        self.game_master = game_master
        self.notifier = notifier
        self.cfg = cfg

    def _tokens(self, text: str) -> List[str]:
        tokens = text.split()
        # Drop the leading bot mention ("@epyc", "<@U123>", ...)
        if tokens and (tokens[0] == self.cfg.bot_name or tokens[0].startswith(("@", "<@"))):
            tokens = tokens[1:]
        return tokens

    async def process_message(
        self,
        channel: Channel,
        player: PlayerRef,
        text: str,
        mentions: Optional[List[PlayerRef]] = None,
    ) -> None:
        tokens = self._tokens(text)
        if not tokens:
            await self._huh(channel)
            return

        command, args = tokens[0].lower(), tokens[1:]
        try:
            await self._dispatch(channel, player, command, args, mentions or [])
        except GameLogicError as exc:
            await self.notifier.send_channel(channel, *exc.content)
        except Exception:
            logger.exception("Command '%s' from %s:%s failed", text, player.platform.value, player.id)
            await self._huh(channel)

    async def _dispatch(
        self,
        channel: Channel,
        player: PlayerRef,
        command: str,
        args: List[str],
        mentions: List[PlayerRef],
    ) -> None:
        gm = self.game_master

        if command == "help":
            await self.notifier.send_channel(channel, *_help_message(self.cfg.bot_name))
        elif command == "start":
            await gm.start_game(mentions, channel, include_interested=True)
        elif command == "status":
            await gm.report_status(channel)
        elif command in ("join", "leave"):
            if not args:
                await self.notifier.send_channel(channel, *_help_message(self.cfg.bot_name))
                return
            if command == "join":
                await gm.join_game(channel, player, args[0])
            else:
                await gm.leave_game(channel, player, args[0])
        elif command in ("available", "unavailable"):
            await gm.set_available(channel, player, command == "available")
        elif command == "role":
            choice = args[0].lower() if args else ""
            if choice not in ROLE_CHOICES:
                await self.notifier.send_channel(
                    channel, "Pick one of ", code(f"{self.cfg.bot_name} role author|artist|none")
                )
                return
            await gm.set_role_preference(channel, player, ROLE_CHOICES[choice])
        elif command == "redirect":
            if args and args[0].lower() == "none":
                await gm.set_preferred_player(channel, player, None)
            elif mentions:
                await gm.set_preferred_player(channel, player, mentions[0])
            else:
                await self.notifier.send_channel(
                    channel, "Pick one of ", code(f"{self.cfg.bot_name} redirect @person|none")
                )
        else:
            await self._huh(channel)

    async def _huh(self, channel: Channel) -> None:
        await self.notifier.send_channel(channel, "🧐 huh?  Try ", code(f"{self.cfg.bot_name} help"), " for help.")
