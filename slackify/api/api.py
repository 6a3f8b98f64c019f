"""API router for Slack and Spotify endpoints."""
from fastapi import APIRouter
from slackify.api import auth, slack

api_router = APIRouter()

api_router.include_router(slack.router, prefix="/slack", tags=["slack"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
