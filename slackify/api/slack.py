"""Slack slash-command and interactive-button webhooks."""
from typing import Awaitable, Callable
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from pydantic import ValidationError

from slackify.api.dependencies import get_context, verify_slack_request, build_redirect_uri
from slackify.core.context import AppContext
from slackify.schemas.slack import SlashCommand, InteractivePayload
from slackify.services.tracks_service import ADD_TRACK, SEE_MORE_TRACKS, CANCEL_SEARCH

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_slack_request)])

NOT_AUTHENTICATED = ":warning: Spotify is not authenticated. Use /auth to authenticate."

# Actions whose message is removed once clicked
DELETABLE = [ADD_TRACK, CANCEL_SEARCH]

async def slash_command(request: Request) -> SlashCommand:
    form = await request.form()
    try:
        return SlashCommand.model_validate(dict(form))
    except ValidationError as e:
        logger.error(f"Invalid slash command payload: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid slash command payload")

async def interactive_payload(request: Request) -> InteractivePayload:
    form = await request.form()
    payload = form.get("payload")
    if not payload:
        raise HTTPException(status_code=400, detail="Missing payload")
    try:
        return InteractivePayload.model_validate_json(payload)
    except ValidationError as e:
        logger.error(f"Invalid interactive payload: {str(e)}")
        raise HTTPException(status_code=400, detail="Invalid interactive payload")

def ack() -> Response:
    return Response(status_code=200)

async def run_authenticated(
    context: AppContext,
    response_url: str,
    name: str,
    func: Callable[[], Awaitable[None]]
) -> None:
    """Run a command once the Spotify credential is known to be live."""
    try:
        if context.auth_service.is_auth_expired():
            await context.slack.reply(NOT_AUTHENTICATED, None, response_url)
            return
        await func()
    except Exception as e:
        logger.error(f"{name} failed: {str(e)}")

@router.post("/commands/auth")
async def auth_command(
    request: Request,
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    """Start the Spotify authentication flow."""
    background_tasks.add_task(
        context.auth_service.setup_auth,
        command.trigger_id,
        command.response_url,
        command.channel_id,
        command.team_id,
        build_redirect_uri(request)
    )
    return ack()

@router.post("/commands/play")
async def play_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Play",
        lambda: context.player_service.play(command.response_url)
    )
    return ack()

@router.post("/commands/pause")
async def pause_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Pause",
        lambda: context.player_service.pause(command.response_url)
    )
    return ack()

@router.post("/commands/status")
async def status_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Status",
        lambda: context.player_service.status(command.response_url)
    )
    return ack()

@router.post("/commands/find")
async def find_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    """Search for tracks to add to the queue."""
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Finding song",
        lambda: context.tracks_service.find(command.text, command.trigger_id, command.response_url)
    )
    return ack()

@router.post("/commands/whom")
async def whom_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    logger.info("Whom triggered")
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Whom",
        lambda: context.tracks_service.whom(command.response_url)
    )
    return ack()

@router.post("/commands/skip")
async def skip_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Skip",
        lambda: context.skip_service.vote(command.user_id, command.response_url)
    )
    return ack()

@router.post("/commands/device")
async def device_command(
    background_tasks: BackgroundTasks,
    command: SlashCommand = Depends(slash_command),
    context: AppContext = Depends(get_context)
):
    background_tasks.add_task(
        run_authenticated, context, command.response_url, "Device",
        lambda: context.settings_service.device(command.text, command.response_url)
    )
    return ack()

@router.post("/actions")
async def actions(
    background_tasks: BackgroundTasks,
    payload: InteractivePayload = Depends(interactive_payload),
    context: AppContext = Depends(get_context)
):
    """Route button clicks on search results."""
    action = payload.actions[0]

    if action.name in DELETABLE:
        background_tasks.add_task(context.slack.delete_original, payload.response_url)

    if action.name == SEE_MORE_TRACKS:
        background_tasks.add_task(
            run_authenticated, context, payload.response_url, "See more tracks",
            lambda: context.tracks_service.get_three_tracks(
                payload.callback_id, action.value, payload.response_url
            )
        )
    elif action.name == ADD_TRACK:
        background_tasks.add_task(
            run_authenticated, context, payload.response_url, "Add track",
            lambda: context.tracks_service.add_track(
                payload.callback_id, action.value, payload.user.id, payload.response_url
            )
        )
    elif action.name == CANCEL_SEARCH:
        context.tracks_service.cancel_search(payload.callback_id)
    else:
        logger.warning(f"Unknown Slack action {action.name}")

    return ack()
