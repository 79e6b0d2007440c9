"""Site deployments triggered by workflow runs."""

from deploy_hook.deploy.launcher import AtLauncher, DetachedLauncher, SyncLauncher, build_launcher
from deploy_hook.deploy.sites import Site, load_sites
from deploy_hook.deploy.workflow_run import Deployer, WorkflowRun, deploy, workflow_run_handler

__all__ = [
    "AtLauncher",
    "DetachedLauncher",
    "SyncLauncher",
    "build_launcher",
    "Site",
    "load_sites",
    "Deployer",
    "WorkflowRun",
    "deploy",
    "workflow_run_handler",
]
