"""Publish generated code as an Expo project on GitHub."""

import logging

import httpx

from zerobuild.config import Settings, settings
from zerobuild.errors import ErrorKind, PublishError
from zerobuild.models import PublishResult, RepositoryTarget, slugify
from zerobuild.publish.manifest import build_expo_manifest
from zerobuild.publish.pipeline import PublishPipeline, SleepFunc, readiness_policy

logger = logging.getLogger(__name__)


def pipeline_from_settings(
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> PublishPipeline:
    config = config or settings
    return PublishPipeline(
        base_url=config.github_api_url,
        commit_message=config.github_commit_message,
        ready_policy=readiness_policy(config.repo_ready_attempts, config.repo_ready_delay),
        timeout=config.http_timeout,
        transport=transport,
        sleep=sleep,
    )


async def publish_app(
    app_name: str,
    description: str,
    code: str,
    github_token: str,
    github_username: str,
    private: bool = False,
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> PublishResult:
    """Build the Expo manifest for `code` and publish it in one commit.

    Raises:
        PublishError: A step failed; the branch is unchanged unless the
            failing step was the ref update itself
    """
    config = config or settings
    if not github_token or not github_username:
        raise PublishError(
            "GitHub token and username are required to publish",
            ErrorKind.NO_CREDENTIALS,
            hint="Add your GitHub token and username in Settings.",
            step="existence_check",
        )
    if not slugify(app_name).strip("-"):
        raise PublishError(
            f"App name {app_name!r} cannot be used as a repository name",
            ErrorKind.VALIDATION_FAILURE,
            hint="Use letters or digits in the app name.",
            step="existence_check",
        )

    target = RepositoryTarget(
        owner=github_username,
        name=app_name,
        description=description,
        private=private,
        branch=config.github_default_branch,
    )
    manifest = build_expo_manifest(app_name, code, branch=target.branch)
    logger.info(
        f"Publishing {len(manifest)} files",
        extra={"repo": f"{target.owner}/{target.slug}"},
    )
    pipeline = pipeline_from_settings(config, transport, sleep)
    return await pipeline.execute(manifest, target, github_token)
