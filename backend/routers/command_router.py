"""
Chat command ingestion.

Platform adapters that run out of process (Slack socket mode, Discord gateway)
forward each bot mention here. Replies go back through the bots, so the HTTP
response only acknowledges receipt.
"""
from fastapi import APIRouter, Request

from models.game import CommandRequest

router = APIRouter(tags=["commands"])


@router.post("/commands", status_code=202)
async def post_command(req: CommandRequest, request: Request):
    handler = request.app.state.engine.command_handler
    await handler.process_message(req.channel, req.player, req.text, req.mentions)
    return {"status": "accepted"}
