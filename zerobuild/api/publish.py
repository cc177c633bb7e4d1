"""Publish API endpoint."""

import logging

from fastapi import APIRouter

from zerobuild.api.models import ERROR_RESPONSES, PublishRequest, PublishResponse
from zerobuild.config import settings
from zerobuild.publish.service import publish_app

logger = logging.getLogger(__name__)

router = APIRouter(responses=ERROR_RESPONSES)


@router.post("/publish", response_model=PublishResponse)
async def publish(publish_request: PublishRequest) -> PublishResponse:
    """Publish app code as an Expo project in one commit.

    Creates the repository when needed; publishing the same app again adds
    a new commit to the existing repository.
    """
    result = await publish_app(
        publish_request.app_name,
        publish_request.description,
        publish_request.code,
        github_token=publish_request.github_token or settings.github_token,
        github_username=publish_request.github_username or settings.github_username,
        private=publish_request.private,
    )
    return PublishResponse.from_result(result)
