"""
clasp push/deploy with deployment-id discovery.

clasp only reports deployment ids in human-readable output, so the ids are
scraped with the patterns below. Keep them in step with the clasp version
pinned in the project's package.json.
"""

import logging
import re
from typing import Optional

from gasbuild.config import BuildConfig, ConfigStore, settings
from gasbuild.tools.base import DeployCli

logger = logging.getLogger("gasbuild.deploy")

# `clasp deployments`:  "- AKfycb... @HEAD"
HEAD_PATTERN = re.compile(r"- ([a-zA-Z0-9_-]+)\s+@HEAD")
# `clasp deploy`:       "Deployed AKfycb... @3"
DEPLOYED_PATTERN = re.compile(r"Deployed\s+([a-zA-Z0-9_-]+)\s+@\d+")


def parse_head_deployment(output: str) -> Optional[str]:
    match = HEAD_PATTERN.search(output)
    return match.group(1) if match else None


def parse_new_deployment(output: str) -> Optional[str]:
    match = DEPLOYED_PATTERN.search(output)
    return match.group(1) if match else None


def dev_url(deployment_id: str, host: Optional[str] = None) -> str:
    return f"https://{host or settings.SCRIPT_HOST}/macros/s/{deployment_id}/dev"


def prod_url(deployment_id: str, host: Optional[str] = None) -> str:
    return f"https://{host or settings.SCRIPT_HOST}/macros/s/{deployment_id}/exec"


class Deployer:
    """Pushes built output and records the resulting deployment ids."""

    def __init__(self, cli: DeployCli, store: ConfigStore, config: BuildConfig):
        self.cli = cli
        self.store = store
        self.config = config

    def push(self) -> None:
        logger.info("Clasp Push...")
        self.cli.run("push", "--force")
        logger.info("Pushed.")

    def fetch_head_deployment(self) -> Optional[str]:
        deployment_id = parse_head_deployment(self.cli.run("deployments"))
        if deployment_id:
            self.store.record_deployment_id(self.config, "devDeploymentId", deployment_id)
        return deployment_id

    def dev_deployment_id(self) -> Optional[str]:
        if self.config.deployment.dev_deployment_id:
            return self.config.deployment.dev_deployment_id
        logger.info("Fetching Dev Deployment ID (@HEAD)...")
        return self.fetch_head_deployment()

    def push_and_link(self) -> Optional[str]:
        self.push()
        deployment_id = self.dev_deployment_id()
        if not deployment_id:
            # A first push may not list @HEAD yet.
            deployment_id = self.fetch_head_deployment()
        if not deployment_id:
            logger.warning("Could not find the @HEAD deployment ID.")
            return None
        logger.info(f"DEV Web App: {dev_url(deployment_id)}")
        return deployment_id

    def deploy(self) -> Optional[str]:
        logger.info("Clasp Deploy...")
        output = self.cli.run("deploy")
        logger.info("Deployed.")

        deployment_id = parse_new_deployment(output)
        if not deployment_id:
            logger.warning("Could not parse new deployment ID.")
            return None
        self.store.record_deployment_id(self.config, "prodDeploymentId", deployment_id)
        logger.info(f"PROD Web App: {prod_url(deployment_id)}")
        return deployment_id
