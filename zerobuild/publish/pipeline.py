"""Publish a manifest as one commit through the git data API.

Steps run strictly in order:

    existence check -> create (if absent) -> branch readiness -> blobs
    -> tree -> commit -> ref update

Only the ref update is visible to anyone reading the branch, so a failure at
any earlier step leaves the repository as it was. Only the readiness wait is
retried; every other step fails the publish on its first error.
"""

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from zerobuild.errors import ErrorKind, GitHubAPIError, PublishError
from zerobuild.models import (
    CommitResult,
    PublishManifest,
    PublishResult,
    RepositoryDescriptor,
    RepositoryRef,
    RepositoryTarget,
)
from zerobuild.publish.github import GitHubClient
from zerobuild.publish.manifest import actions_url, repo_url, touches_workflows
from zerobuild.resilience.retry import RetryPolicy, fixed_backoff, retry_on

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

TOKEN_HINT = "Check your GitHub token in Settings. It may be invalid or expired."
REPO_SCOPE_HINT = (
    "Your GitHub token needs the 'repo' scope (classic token) or "
    "'Contents: Read and write' permission (fine-grained token)."
)
WORKFLOW_SCOPE_HINT = (
    "Your GitHub token needs the 'workflow' scope to push files under "
    ".github/workflows (classic token), or 'Workflows: Read and write' "
    "permission (fine-grained token)."
)


def readiness_policy(attempts: int = 3, delay: float = 2.0) -> RetryPolicy:
    """Fixed-delay retries of the branch-head read while it returns 404."""
    return RetryPolicy(
        max_attempts=attempts,
        backoff=fixed_backoff(delay),
        is_retryable=retry_on(404),
        max_delay=delay,
    )


class PublishPipeline:
    """Runs one publish attempt per call; holds no remote state between calls."""

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        commit_message: str = "Add generated app code via ZeroBuild AI",
        ready_policy: RetryPolicy | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        self.base_url = base_url
        self.commit_message = commit_message
        self.ready_policy = ready_policy or readiness_policy()
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep or asyncio.sleep

    def _client(self, credential: str) -> GitHubClient:
        return GitHubClient(
            credential,
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    def _failure(
        self,
        step: str,
        error: GitHubAPIError,
        manifest: PublishManifest | None = None,
    ) -> PublishError:
        """Classify a GitHub error raised during a step."""
        status = error.status_code
        if status == 401:
            return PublishError(
                f"GitHub rejected the token during {step}",
                ErrorKind.AUTH_INVALID,
                hint=TOKEN_HINT,
                step=step,
                status_code=status,
            )
        if status == 403:
            needs_workflow = step == "ref_update" and manifest is not None and touches_workflows(manifest)
            hint = WORKFLOW_SCOPE_HINT if needs_workflow else REPO_SCOPE_HINT
            return PublishError(
                f"GitHub denied {step}: {error.message}",
                ErrorKind.PERMISSION_DENIED,
                hint=hint,
                step=step,
                status_code=status,
            )
        if status == 429:
            return PublishError(
                f"GitHub rate limit reached during {step}: {error.message}",
                ErrorKind.TRANSIENT_RATE_LIMIT,
                hint="Wait a few minutes and publish again.",
                step=step,
                status_code=status,
            )
        return PublishError(
            f"GitHub {step} failed (HTTP {status}): {error.message}",
            ErrorKind.UNKNOWN_HTTP_ERROR,
            hint="Publishing again is safe; nothing was changed on the branch.",
            step=step,
            status_code=status,
        )

    async def ensure_repository(
        self,
        client: GitHubClient,
        target: RepositoryTarget,
    ) -> tuple[RepositoryDescriptor, bool]:
        """Reuse the repository when it exists, create it otherwise.

        Returns the descriptor and whether this call created it.
        """
        log_extra = {"repo": f"{target.owner}/{target.slug}", "step": "existence_check"}
        try:
            existing = await client.get_repo(target.owner, target.slug)
        except GitHubAPIError as e:
            raise self._failure("existence_check", e)
        if existing is not None:
            logger.info("Reusing existing repository", extra=log_extra)
            return RepositoryDescriptor.from_api(existing), False

        try:
            created = await client.create_repo(
                target.slug,
                description=target.description,
                private=target.private,
            )
        except GitHubAPIError as e:
            if e.status_code != 422 or "already exists" not in e.message.lower():
                raise self._failure("create", e)
            logger.info("Repository appeared concurrently, re-checking", extra={**log_extra, "step": "create"})
            try:
                existing = await client.get_repo(target.owner, target.slug)
            except GitHubAPIError as recheck_error:
                raise self._failure("existence_check", recheck_error)
            if existing is None:
                raise self._failure("create", e)
            return RepositoryDescriptor.from_api(existing), False

        logger.info("Created repository", extra={**log_extra, "step": "create"})
        return RepositoryDescriptor.from_api(created), True

    async def wait_for_branch(self, client: GitHubClient, target: RepositoryTarget) -> RepositoryRef:
        """Read the branch head, retrying while the new repository is not readable yet."""
        log_extra = {"repo": f"{target.owner}/{target.slug}", "step": "readiness"}
        for attempt in self.ready_policy.attempts():
            try:
                head = await client.get_branch_head(target.owner, target.slug, target.branch)
            except GitHubAPIError as e:
                if not self.ready_policy.is_retryable(e.status_code):
                    raise self._failure("readiness", e)
                head = None

            if head is not None:
                return RepositoryRef(
                    owner=target.owner,
                    slug=target.slug,
                    branch_name=target.branch,
                    head_sha=head,
                )

            if self.ready_policy.has_more(attempt):
                delay = self.ready_policy.delay_for(attempt)
                logger.info(
                    f"Branch {target.branch} not ready, retrying in {delay:.1f}s",
                    extra={**log_extra, "attempt": attempt},
                )
                await self._sleep(delay)

        raise PublishError(
            f"Branch {target.branch} of {target.owner}/{target.slug} was not ready "
            f"after {self.ready_policy.max_attempts} attempts",
            ErrorKind.REPOSITORY_NOT_READY,
            hint="GitHub is still initializing the repository. Wait a moment and publish again.",
            step="readiness",
            status_code=404,
        )

    async def write_commit(
        self,
        client: GitHubClient,
        manifest: PublishManifest,
        ref: RepositoryRef,
    ) -> CommitResult:
        """Blobs, tree, commit, then the ref update."""
        log_extra = {"repo": f"{ref.owner}/{ref.slug}"}
        step = "base_tree"
        try:
            base_tree = await client.get_commit_tree(ref.owner, ref.slug, ref.head_sha)

            step = "blob"
            blobs = []
            for entry in manifest:
                sha = await client.create_blob(ref.owner, ref.slug, entry.content)
                blobs.append((entry.path, sha))
            logger.debug(f"Uploaded {len(blobs)} blobs", extra={**log_extra, "step": step})

            step = "tree"
            tree_sha = await client.create_tree(ref.owner, ref.slug, base_tree, blobs)

            step = "commit"
            commit_sha = await client.create_commit(
                ref.owner, ref.slug, self.commit_message, tree_sha, [ref.head_sha]
            )

            step = "ref_update"
            await client.update_ref(ref.owner, ref.slug, ref.branch_name, commit_sha)
        except GitHubAPIError as e:
            logger.error(f"Publish failed at {step}: {e}", extra={**log_extra, "step": step})
            raise self._failure(step, e, manifest)

        logger.info(
            f"Published {len(manifest)} files as {commit_sha[:7]}",
            extra={**log_extra, "step": "ref_update"},
        )
        return CommitResult(tree_sha=tree_sha, commit_sha=commit_sha)

    async def execute(
        self,
        manifest: PublishManifest,
        target: RepositoryTarget,
        credential: str,
    ) -> PublishResult:
        """Run every step and describe the published repository."""
        if not credential:
            raise PublishError(
                "No GitHub token configured",
                ErrorKind.NO_CREDENTIALS,
                hint="Add your GitHub token and username in Settings.",
                step="existence_check",
            )

        async with self._client(credential) as client:
            try:
                repository, created = await self.ensure_repository(client, target)
                ref = await self.wait_for_branch(client, target)
                commit = await self.write_commit(client, manifest, ref)
            except httpx.TransportError as e:
                raise PublishError(
                    f"Could not reach GitHub: {e}",
                    ErrorKind.UNKNOWN_HTTP_ERROR,
                    hint="Check your network connection and publish again.",
                )

        return PublishResult(
            repository=repository,
            commit=commit,
            created=created,
            repo_url=repository.url or repo_url(target.owner, target.name),
            actions_url=actions_url(target.owner, target.name),
        )

    async def publish(
        self,
        manifest: PublishManifest,
        target: RepositoryTarget,
        credential: str,
    ) -> CommitResult:
        result = await self.execute(manifest, target, credential)
        return result.commit
