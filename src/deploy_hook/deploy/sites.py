"""Deployable site configuration."""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from deploy_hook.errors import ConfigError

if TYPE_CHECKING:
    from deploy_hook.deploy.workflow_run import WorkflowRun

logger = logging.getLogger(__name__)


def repository_urls(full_name: str, host: str = "github.com") -> tuple[str, str]:
    """Return the HTTPS and SSH clone URLs of a repository."""
    return f"https://{host}/{full_name}.git", f"git@{host}:{full_name}.git"


class Site(BaseModel):
    """A site the deployer can deploy, and the runs that trigger it."""

    model_config = ConfigDict(frozen=True)

    name: str
    repository: str
    workflow: str = "CI"
    branch: str = "main"
    actor: str | None = Field(
        default=None,
        validation_alias=AliasChoices("actor", "username"),
    )

    def matches(self, run: "WorkflowRun", host: str = "github.com") -> bool:
        """Check whether a workflow run should deploy this site."""
        return (
            self.repository in repository_urls(run.repository, host)
            and run.branch == self.branch
            and run.workflow == self.workflow
            and run.event == "push"
            and run.status == "completed"
            and run.conclusion == "success"
            and (self.actor is None or run.actor == self.actor)
        )


def parse_sites(raw: object) -> list[Site]:
    """
    Build sites from a ``{name: config}`` mapping, keeping its order.

    A config may be a plain string, taken as the repository URL.
    """
    if not isinstance(raw, dict):
        raise ConfigError("Site table must be a JSON object mapping site names to configs.")

    sites = []
    for name, config in raw.items():
        if isinstance(config, str):
            config = {"repository": config}
        if not isinstance(config, dict):
            raise ConfigError(f"Invalid config for site {name}.")
        try:
            sites.append(Site.model_validate({**config, "name": name}))
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid config for site {name}: {e}") from e
    return sites


def load_sites(path: Path) -> list[Site]:
    """Read the site table from a JSON file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Site table {path} not found.") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Site table {path} is not valid JSON: {e}") from e

    sites = parse_sites(raw)
    logger.debug(f"Loaded {len(sites)} sites from {path}")
    return sites
