# modloader/__main__.py
"""
Dry-run entry point: resolves the mods directory and prints the final load
order without bringing anything into the process.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from modloader.app.settings import ModLoaderPaths, settingsBool
from modloader.core.errors import ModLoadingHalted
from modloader.core.logging import configureLogging
from modloader.mods.orchestrator import ModOrchestrator

logger = logging.getLogger("modloader")



class LoggingModuleLoader:
    """Loader that only reports what a real host would load."""
    def loadDynamicModule(self, path: Path) -> Any:
        logger.info("Would load module '%s'", path)
        return path

    def mountAssetPackage(self, path: Path) -> None:
        logger.info("Would mount asset package '%s'", path)



def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modloader", description="Resolve mods into a load order.")
    parser.add_argument("--mods-dir", type=Path, help="directory scanned for mods")
    parser.add_argument("--cache-dir", type=Path, help="content-addressed payload cache")
    parser.add_argument("--configs-dir", type=Path, help="per-mod config files")
    parser.add_argument("--dev", action="store_true", help="development mode: accept raw mods")
    parser.add_argument("--log-file", type=Path, help="JSON log file")
    return parser



def main(argv: list[str] | None = None) -> int:
    args = buildParser().parse_args(argv)
    devMode = args.dev or settingsBool("debug.devModeEnabled", False)
    configureLogging(devMode=devMode, logFile=args.log_file)

    defaults = ModLoaderPaths.fromSettings()
    paths = ModLoaderPaths(
        modsDir=args.mods_dir or defaults.modsDir,
        cacheDir=args.cache_dir or defaults.cacheDir,
        configsDir=args.configs_dir or defaults.configsDir,
    )

    orchestrator = ModOrchestrator(paths, LoggingModuleLoader(), devMode=devMode)
    try:
        orchestrator.run()
    except ModLoadingHalted as err:
        print(err, file=sys.stderr)
        return 1

    for position, modId in enumerate(orchestrator.getLoadedMods(), start=1):
        print(f"{position:3d}. {modId}")
    return 0



if __name__ == "__main__":
    sys.exit(main())
