"""Publishing generated apps to GitHub."""

from zerobuild.publish.github import GitHubClient
from zerobuild.publish.manifest import actions_url, build_expo_manifest, repo_url
from zerobuild.publish.pipeline import PublishPipeline, readiness_policy
from zerobuild.publish.service import publish_app

__all__ = [
    "GitHubClient",
    "PublishPipeline",
    "actions_url",
    "build_expo_manifest",
    "publish_app",
    "readiness_policy",
    "repo_url",
]
