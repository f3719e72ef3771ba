import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from gasbuild.backend import build_backend
from gasbuild.config import BuildConfig, ConfigError, ConfigStore, settings
from gasbuild.deploy import Deployer
from gasbuild.frontend import build_frontend, start_dev_server
from gasbuild.tools.factory import Toolchain

logger = logging.getLogger("gasbuild.orchestrator")


@dataclass(frozen=True)
class BuildOptions:
    dev: bool = False
    push: bool = False
    deploy: bool = False

    @property
    def should_push(self) -> bool:
        return self.push or self.deploy


@dataclass
class BuildReport:
    dev_server: bool = False
    manifest: Optional[Path] = None
    frontend_files: List[Path] = field(default_factory=list)
    backend_files: List[Path] = field(default_factory=list)
    dev_deployment_id: Optional[str] = None
    prod_deployment_id: Optional[str] = None
    elapsed_ms: float = 0.0


class Pipeline:
    """
    clean -> copy manifest -> frontend -> backend -> [push] -> [deploy].

    ``--dev`` short-circuits to the dev server. Any stage raising stops the
    run; nothing is retried.
    """

    def __init__(self, config: BuildConfig, store: ConfigStore, toolchain: Toolchain, project_root: Path):
        self.config = config
        self.store = store
        self.toolchain = toolchain
        self.project_root = Path(project_root).resolve()

    @property
    def out_dir(self) -> Path:
        return (self.project_root / self.config.out_dir).resolve()

    def clean(self) -> None:
        out_dir = self.out_dir
        if out_dir == self.project_root or out_dir in self.project_root.parents:
            raise ConfigError(f"outDir must be inside the project, refusing to delete {out_dir}")
        if out_dir.exists():
            shutil.rmtree(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

    def copy_manifest(self) -> Optional[Path]:
        manifest = self.project_root / self.config.manifest
        if not manifest.is_file():
            logger.warning(f"Manifest not found at {self.config.manifest}")
            return None
        dest = self.out_dir / settings.MANIFEST_NAME
        shutil.copyfile(manifest, dest)
        logger.info("Manifest copied.")
        return dest

    def build_frontend(self) -> List[Path]:
        return build_frontend(self.config, self.toolchain, self.project_root)

    def build_backend(self) -> List[Path]:
        return build_backend(self.config, self.toolchain, self.project_root)

    def deployer(self) -> Deployer:
        return Deployer(self.toolchain.deploy_cli, self.store, self.config)

    def push(self) -> Optional[str]:
        return self.deployer().push_and_link()

    def deploy(self) -> Optional[str]:
        return self.deployer().deploy()

    def run(self, options: BuildOptions) -> BuildReport:
        report = BuildReport()
        if options.dev:
            report.dev_server = True
            start_dev_server(self.config, self.toolchain, self.project_root)
            return report

        start_time = time.time()
        self.clean()
        report.manifest = self.copy_manifest()
        report.frontend_files = self.build_frontend()
        report.backend_files = self.build_backend()
        report.elapsed_ms = (time.time() - start_time) * 1000
        logger.info(f"Build complete in {report.elapsed_ms:.0f}ms")

        if options.should_push:
            report.dev_deployment_id = self.push()
        if options.deploy:
            report.prod_deployment_id = self.deploy()
        return report
