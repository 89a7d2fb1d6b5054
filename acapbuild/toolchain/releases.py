"""Keep one toolchain image per upstream Rust release.

A reconciliation pass compares recent stable Rust releases on GitHub with the
tags published for the toolchain image on Docker Hub, and dispatches the
image build workflow for every release that has no image yet. Releases that
already have an image are never dispatched again, so the pass can run on a
schedule.
"""

import os
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field

from acapbuild.core.errors import ProvisioningError
from acapbuild.core.structlog_logger import StructlogMixin


GITHUB_API = "https://api.github.com"
DOCKER_HUB_API = "https://hub.docker.com/v2"

RUST_REPOSITORY = "rust-lang/rust"
DEFAULT_IMAGE_REPOSITORY = "trunnion/cargo-acap"
DEFAULT_WORKFLOW_REPOSITORY = "trunnion/cargo-acap"
DEFAULT_WORKFLOW = "build-rust-image.yml"
DEFAULT_WORKFLOW_REF = "master"

# Older releases predate the toolchain images and are never provisioned
EARLIEST_RELEASE = datetime(2022, 1, 1, tzinfo=timezone.utc)
DEFAULT_LIMIT = 2

REQUEST_TIMEOUT = 30


class RustRelease(BaseModel):
    """A published Rust release as reported by the GitHub API."""

    model_config = ConfigDict(extra="ignore")

    tag_name: str
    created_at: datetime
    prerelease: bool = False
    draft: bool = False

    @property
    def version(self) -> str:
        return self.tag_name.lstrip("v")


class ReconcileAction(str, Enum):
    DISPATCHED = "dispatched"
    WOULD_DISPATCH = "would_dispatch"
    EXISTS = "exists"


class ReconcileOutcome(BaseModel):
    version: str
    action: ReconcileAction


class ReconcileReport(BaseModel):
    outcomes: list[ReconcileOutcome] = Field(default_factory=list)

    @property
    def dispatched(self) -> list[str]:
        return [
            o.version for o in self.outcomes if o.action == ReconcileAction.DISPATCHED
        ]

    @property
    def existing(self) -> list[str]:
        return [o.version for o in self.outcomes if o.action == ReconcileAction.EXISTS]


class ToolchainReconciler(StructlogMixin):
    """Reconcile Rust releases against published toolchain image tags."""

    def __init__(
        self,
        session: requests.Session | None = None,
        token: str | None = None,
        image_repository: str = DEFAULT_IMAGE_REPOSITORY,
        workflow_repository: str = DEFAULT_WORKFLOW_REPOSITORY,
        workflow: str = DEFAULT_WORKFLOW,
        ref: str = DEFAULT_WORKFLOW_REF,
    ) -> None:
        super().__init__()
        self.session = session or requests.Session()
        self.token = token
        self.image_repository = image_repository
        self.workflow_repository = workflow_repository
        self.workflow = workflow
        self.ref = ref

        self.session.headers.update({"accept": "application/vnd.github+json"})

    def _get_json(self, url: str, **params: Any) -> Any:
        try:
            response = self.session.get(url, params=params or None, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise ProvisioningError(f"GET {url} failed: {e}", {"url": url}) from e
        except ValueError as e:
            raise ProvisioningError(f"GET {url} returned invalid JSON", {"url": url}) from e

    def latest_releases(self, limit: int = DEFAULT_LIMIT) -> list[RustRelease]:
        """The ``limit`` newest stable releases created since 2022."""
        data = self._get_json(
            f"{GITHUB_API}/repos/{RUST_REPOSITORY}/releases", per_page=100
        )
        releases = [RustRelease.model_validate(item) for item in data]
        stable = [
            r
            for r in releases
            if not r.prerelease and not r.draft and r.created_at >= EARLIEST_RELEASE
        ]
        stable.sort(key=lambda r: r.created_at, reverse=True)
        return stable[:limit]

    def published_tags(self) -> set[str]:
        """All tags of the toolchain image on Docker Hub."""
        tags: set[str] = set()
        url: str | None = (
            f"{DOCKER_HUB_API}/repositories/{self.image_repository}/tags?page_size=100"
        )
        while url:
            page = self._get_json(url)
            tags.update(result["name"] for result in page.get("results", []))
            url = page.get("next")
        return tags

    def dispatch(self, version: str) -> None:
        """Trigger the image build workflow for one Rust version."""
        if not self.token:
            raise ProvisioningError(
                "A GitHub token is required to dispatch workflows (set GITHUB_TOKEN)"
            )
        url = (
            f"{GITHUB_API}/repos/{self.workflow_repository}"
            f"/actions/workflows/{self.workflow}/dispatches"
        )
        try:
            response = self.session.post(
                url,
                json={"ref": self.ref, "inputs": {"rustVersion": version}},
                headers={"authorization": f"Bearer {self.token}"},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ProvisioningError(
                f"Dispatching {self.workflow} for Rust {version} failed: {e}",
                {"version": version},
            ) from e

    def reconcile(
        self, limit: int = DEFAULT_LIMIT, dry_run: bool = False
    ) -> ReconcileReport:
        log = self.log_operation("reconcile", limit=limit, dry_run=dry_run)
        releases = self.latest_releases(limit)
        tags = self.published_tags()
        log.debug("reconcile_state", releases=[r.version for r in releases], tags=len(tags))

        report = ReconcileReport()
        for release in releases:
            version = release.version
            if version in tags:
                log.info("image_exists", version=version)
                action = ReconcileAction.EXISTS
            elif dry_run:
                log.info("image_missing", version=version)
                action = ReconcileAction.WOULD_DISPATCH
            else:
                self.dispatch(version)
                log.info("image_build_dispatched", version=version)
                action = ReconcileAction.DISPATCHED
            report.outcomes.append(ReconcileOutcome(version=version, action=action))
        return report


def create_toolchain_reconciler(
    image_repository: str = DEFAULT_IMAGE_REPOSITORY,
    workflow_repository: str = DEFAULT_WORKFLOW_REPOSITORY,
    ref: str = DEFAULT_WORKFLOW_REF,
) -> ToolchainReconciler:
    """Create a reconciler authenticated with ``$GITHUB_TOKEN`` if set."""
    return ToolchainReconciler(
        token=os.environ.get("GITHUB_TOKEN"),
        image_repository=image_repository,
        workflow_repository=workflow_repository,
        ref=ref,
    )
