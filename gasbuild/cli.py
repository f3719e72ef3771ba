import argparse
import logging
from pathlib import Path
from typing import List, Optional

from gasbuild.config import ConfigError, ConfigStore, settings
from gasbuild.esm_parser import SourceSyntaxError
from gasbuild.frontend import FrontendBuildError
from gasbuild.orchestrator import BuildOptions, Pipeline
from gasbuild.tools.base import ToolError
from gasbuild.tools.factory import Toolchain, get_toolchain

logger = logging.getLogger("gasbuild")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gasbuild", description="Build and deploy a Google Apps Script web app.")
    p.add_argument("--dev", action="store_true", help="Start the frontend dev server (ignores other flags)")
    p.add_argument("--push", action="store_true", help="Push the build with clasp")
    p.add_argument("--deploy", action="store_true", help="Push, then create a new deployment")
    p.add_argument("--config", default=None, help=f"Build config path (default: {settings.CONFIG_PATH})")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _log_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {settings.LOG_LEVEL}")
    return level


def main(argv: Optional[List[str]] = None, toolchain: Optional[Toolchain] = None) -> int:
    args = build_parser().parse_args(argv)

    config_path = Path(args.config or settings.CONFIG_PATH).resolve()
    project_root = config_path.parent
    store = ConfigStore(config_path)
    options = BuildOptions(dev=args.dev, push=args.push, deploy=args.deploy)

    try:
        logging.basicConfig(level=_log_level(args.verbose), format="%(levelname)s %(message)s")
        config = store.load()
        toolchain = toolchain or get_toolchain(cwd=project_root)
        Pipeline(config, store, toolchain, project_root).run(options)
    except (ConfigError, SourceSyntaxError, FrontendBuildError, ToolError, OSError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
