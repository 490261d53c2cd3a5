"""
Build Service.

Turns a generated file set into deployable assets. The build itself is
simulated: the service assembles the project (package.json and build config
for the target framework), optionally writes it to storage, and returns a
fixed set of compiled assets. Failures are reported in the BuildResult and
never raised.
"""

from __future__ import annotations

import json
import secrets
import string
import time
from collections.abc import Sequence
from typing import Any

from ...core.logging import get_logger
from ...models.generation import BuildAsset, BuildRequest, BuildResult, GeneratedFile
from ...storage import StorageBackend

logger = get_logger(__name__)

BUILDS_PREFIX = "builds"
BUILD_PHASE = "build"

_BUILD_ID_ALPHABET = string.ascii_lowercase + string.digits

BASE_DEPENDENCIES = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
}

DEV_DEPENDENCIES = {
    "@types/react": "^18.2.0",
    "@types/react-dom": "^18.2.0",
    "@vitejs/plugin-react": "^4.0.0",
    "typescript": "^5.0.0",
    "vite": "^4.0.0",
}

VITE_BUILD_CONFIG = """import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
  build: {
    outDir: 'dist',
    sourcemap: false,
    minify: 'terser'
  }
});"""

VITE_INDEX_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Generated App</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>"""

VITE_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2020",
        "useDefineForClassFields": True,
        "lib": ["ES2020", "DOM", "DOM.Iterable"],
        "module": "ESNext",
        "skipLibCheck": True,
        "moduleResolution": "bundler",
        "allowImportingTsExtensions": True,
        "resolveJsonModule": True,
        "isolatedModules": True,
        "noEmit": True,
        "jsx": "react-jsx",
        "strict": True,
        "noUnusedLocals": True,
        "noUnusedParameters": True,
        "noFallthroughCasesInSwitch": True,
    },
    "include": ["src"],
}


def new_build_id() -> str:
    """``build_{epoch_ms}_{9 random base-36 chars}``."""
    suffix = "".join(secrets.choice(_BUILD_ID_ALPHABET) for _ in range(9))
    return f"build_{int(time.time() * 1000)}_{suffix}"


def latest_by_path(files: Sequence[GeneratedFile]) -> list[GeneratedFile]:
    """Collapse files sharing a path, keeping the last write."""
    latest: dict[str, GeneratedFile] = {}
    for f in files:
        latest[f.path] = f
    return list(latest.values())


class BuildService:
    """Simulated build adapter for generated apps."""

    def __init__(self, storage: StorageBackend | None = None) -> None:
        """Initialize the build service.

        Args:
            storage: If given, the assembled project is written under
                ``builds/{session_id}/``.
        """
        self.storage = storage

    @staticmethod
    def package_json(request: BuildRequest) -> dict[str, Any]:
        """package.json for the requested framework."""
        name = f"app-{request.session_id}"
        if request.framework == "vite":
            return {
                "name": name,
                "version": "1.0.0",
                "type": "module",
                "scripts": {
                    "dev": "vite",
                    "build": "vite build",
                    "preview": "vite preview",
                },
                "dependencies": {**BASE_DEPENDENCIES, **request.dependencies},
                "devDependencies": dict(DEV_DEPENDENCIES),
            }

        return {
            "name": name,
            "version": "1.0.0",
            "scripts": {
                "start": "react-scripts start",
                "build": "react-scripts build",
                "test": "react-scripts test",
                "eject": "react-scripts eject",
            },
            "dependencies": {
                **BASE_DEPENDENCIES,
                "react-scripts": "5.0.2",
                **request.dependencies,
            },
            "devDependencies": dict(DEV_DEPENDENCIES),
            "browserslist": {
                "production": [">0.2%", "not dead", "not op_mini all"],
                "development": [
                    "last 1 chrome version",
                    "last 1 firefox version",
                    "last 1 safari version",
                ],
            },
        }

    @staticmethod
    def build_config(framework: str) -> list[GeneratedFile]:
        """Framework build configuration files."""
        if framework != "vite":
            return []
        return [
            GeneratedFile(path="vite.config.ts", content=VITE_BUILD_CONFIG, phase=BUILD_PHASE),
            GeneratedFile(path="index.html", content=VITE_INDEX_HTML, phase=BUILD_PHASE),
            GeneratedFile(path="tsconfig.json", content=json.dumps(VITE_TSCONFIG, indent=2), phase=BUILD_PHASE),
        ]

    def assemble(self, request: BuildRequest) -> list[GeneratedFile]:
        """The project as built: generated files, package.json, then build config.

        Later entries supersede earlier ones at the same path.
        """
        package = GeneratedFile(
            path="package.json",
            content=json.dumps(self.package_json(request), indent=2),
            phase=BUILD_PHASE,
        )
        return latest_by_path([*request.files, package, *self.build_config(request.framework)])

    async def build(self, request: BuildRequest) -> BuildResult:
        """Build a generated app.

        Args:
            request: Files, framework and extra dependencies of the app.

        Returns:
            The build outcome. Failures are reported in ``errors``.
        """
        build_id = new_build_id()
        start_time = time.perf_counter()

        try:
            if not request.files:
                logger.warning("Nothing to build", session_id=request.session_id, build_id=build_id)
                return BuildResult(success=False, build_id=build_id, errors=["No files to build"])

            project = self.assemble(request)
            if self.storage is not None:
                await self._write_project(self.storage, request.session_id, project)

            logger.info(
                "Building app",
                session_id=request.session_id,
                build_id=build_id,
                framework=request.framework,
                files=len(project),
            )
            result = BuildResult(
                success=True,
                build_id=build_id,
                assets=self._compile(),
                warnings=["Some warnings about unused imports"],
            )

            logger.info(
                "Build completed",
                build_id=build_id,
                assets=len(result.assets),
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
            return result

        except Exception as e:
            logger.error("Build failed", session_id=request.session_id, build_id=build_id, error=str(e))
            return BuildResult(success=False, build_id=build_id, errors=[f"Build failed: {e}"])

    @staticmethod
    async def _write_project(
        storage: StorageBackend, session_id: str, project: Sequence[GeneratedFile]
    ) -> None:
        for f in project:
            await storage.put_text(f"{BUILDS_PREFIX}/{session_id}/{f.path}", f.content)

    @staticmethod
    def _compile() -> list[BuildAsset]:
        # No toolchain runs; the bundle is a fixed stand-in
        return [
            BuildAsset(
                path="index.html",
                content="<!DOCTYPE html><html><body><h1>Built App</h1></body></html>",
                type="html",
            ),
            BuildAsset(path="assets/index.js", content='console.log("Built JavaScript");', type="js"),
            BuildAsset(path="assets/index.css", content="body { font-family: Arial; }", type="css"),
        ]
