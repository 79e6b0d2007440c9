"""Deploy sites when their CI workflow run completes successfully."""

import logging
import shlex
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from deploy_hook.deploy.launcher import Launcher, build_launcher
from deploy_hook.deploy.sites import Site, load_sites
from deploy_hook.errors import MissingFieldError
from deploy_hook.webhook.notification import Notification
from deploy_hook.webhook.response import Response

if TYPE_CHECKING:
    from deploy_hook.config import Settings
    from deploy_hook.webhook.dispatcher import EventHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowRun:
    """The fields of a ``workflow_run`` payload that decide a deployment."""

    repository: str
    branch: str
    workflow: str
    event: str
    status: str
    conclusion: str | None
    actor: str

    @classmethod
    def from_notification(cls, notification: Notification) -> "WorkflowRun":
        """
        Extract the workflow run from a notification's payload.

        Raises:
            MissingFieldError: If a required field is absent
        """
        repository = notification.get("workflow_run", "repository", "full_name")

        try:
            workflow = notification.get("workflow_run", "name")
        except MissingFieldError:
            workflow = notification.get("workflow", "name")

        return cls(
            repository=repository,
            branch=notification.get("workflow_run", "head_branch"),
            workflow=workflow,
            event=notification.get("workflow_run", "event"),
            status=notification.get("workflow_run", "status"),
            # GitHub sends null until the run completes
            conclusion=notification.get("workflow_run", "conclusion"),
            actor=notification.get("workflow_run", "actor", "login"),
        )


@dataclass(frozen=True)
class Deployer:
    """A deployer installation: its binary, deploy file and single-site task."""

    directory: Path
    task: str = "derafu:deploy:single"

    @property
    def binary(self) -> Path:
        return self.directory / "vendor" / "bin" / "dep"

    @property
    def deploy_file(self) -> Path:
        return self.directory / "deploy.php"

    def command(self, site: Site) -> str:
        """Shell command deploying one site, every external token quoted."""
        return " ".join(
            [
                shlex.quote(str(self.binary)),
                "-f",
                shlex.quote(str(self.deploy_file)),
                shlex.quote(self.task),
                "--site=" + shlex.quote(site.name),
            ]
        )


def find_site(run: WorkflowRun, sites: Iterable[Site], host: str = "github.com") -> Site | None:
    """Return the first site, in configured order, that the run should deploy."""
    for site in sites:
        if site.matches(run, host):
            return site
    return None


def deploy(
    notification: Notification,
    sites: Iterable[Site],
    deployer: Deployer,
    launcher: Launcher,
    host: str = "github.com",
) -> Response | None:
    """
    Deploy the site matching a workflow run notification.

    At most one site is deployed. The launch outcome becomes the
    notification's response, with the command's exit code as response code.

    Args:
        notification: A ``workflow_run`` notification
        sites: Configured sites, in priority order
        deployer: The deployer installation to invoke
        launcher: How to run the deploy command
        host: Git host used to build repository URLs

    Returns:
        The response that was set, or None if no site matched
    """
    run = WorkflowRun.from_notification(notification)
    site = find_site(run, sites, host)

    if site is None:
        logger.info(
            f"No site matches {run.repository} {run.workflow} on {run.branch} "
            f"({run.event}, {run.status}, {run.conclusion})"
        )
        return None

    logger.info(f"Deploying site {site.name} for {run.repository} on {run.branch}")
    result = launcher.launch(deployer.command(site))

    if result.result_code != 0:
        logger.error(f"Deployment of {site.name} failed with code {result.result_code}")

    notification.set_response(
        Response(
            {
                "code": result.result_code,
                "data": {
                    "site": site.name,
                    "command": result.command,
                    "output": result.output,
                    "result_code": result.result_code,
                },
            }
        )
    )
    return notification.response


def workflow_run_handler(settings: "Settings") -> "EventHandler":
    """Build the ``workflow_run`` handler from configuration."""
    deployer = Deployer(settings.deployer_dir, settings.deployer_task)

    def handle(notification: Notification) -> None:
        sites = load_sites(settings.sites_file)
        response = deploy(
            notification,
            sites,
            deployer,
            build_launcher(settings),
            host=settings.github_host,
        )
        if response is None:
            run = WorkflowRun.from_notification(notification)
            notification.set_response(
                f'No site matches workflow run "{run.workflow}" '
                f"of {run.repository} on {run.branch}."
            )

    return handle
