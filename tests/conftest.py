"""Shared test fixtures for sdkforge.

Pipeline fixtures are wired to the in-memory fakes in ``tests.fakes``.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from sdkforge.config import ForgeSettings
from sdkforge.core.cancellation import CancellationToken
from sdkforge.core.orchestrator import WorkspaceOrchestrator
from sdkforge.core.version_resolver import SDK_PACKAGES
from sdkforge.models.options import PipelineMode, PipelineOptions
from sdkforge.stages.context import Collaborators, PipelineContext
from tests.fakes import (
    FakeBuildTools,
    FakeCertificateGenerator,
    FakeDevMode,
    FakeHostPackages,
    FakeLayoutCopier,
    FakeManifestGenerator,
    FakeManifestReader,
    FakePackageInstaller,
    FakePrompter,
    FakeRuntimeInstaller,
    FakeToolchain,
    FakeTrustStore,
    FakeVersionLookup,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """The workspace root for a test run."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def forge_settings(tmp_path: Path) -> ForgeSettings:
    """Settings with the global cache redirected into the temp directory."""
    return ForgeSettings(_env_file=None, global_directory=tmp_path / "global")


@pytest.fixture
def fakes() -> dict[str, Any]:
    """The default set of fakes, keyed by ``Collaborators`` attribute name."""
    lookup = FakeVersionLookup()
    return {
        "version_lookup": lookup,
        "package_installer": FakePackageInstaller(lookup),
        "toolchain": FakeToolchain(),
        "layout_copier": FakeLayoutCopier(),
        "build_tools": FakeBuildTools(),
        "dev_mode": FakeDevMode(),
        "host_packages": FakeHostPackages(),
        "runtime_installer": FakeRuntimeInstaller(),
        "manifest_generator": FakeManifestGenerator(),
        "manifest_reader": FakeManifestReader(),
        "certificate_generator": FakeCertificateGenerator(),
        "trust_store": FakeTrustStore(),
        "prompter": FakePrompter(),
    }


@pytest.fixture
def services(fakes: dict[str, Any]) -> Collaborators:
    return Collaborators(**fakes)


@pytest.fixture
def make_options(project_dir: Path) -> Callable[..., PipelineOptions]:
    """Factory fixture: build PipelineOptions rooted at ``project_dir``."""

    def _factory(mode: PipelineMode = PipelineMode.SETUP, **overrides: Any) -> PipelineOptions:
        defaults: dict[str, Any] = {
            "mode": mode,
            "base_directory": project_dir,
            "config_directory": project_dir,
        }
        defaults.update(overrides)
        return PipelineOptions(**defaults)

    return _factory


@pytest.fixture
def output() -> io.StringIO:
    """Captured console output."""
    return io.StringIO()


@pytest.fixture
def orchestrator(
    services: Collaborators, forge_settings: ForgeSettings, output: io.StringIO
) -> WorkspaceOrchestrator:
    console = Console(file=output, width=200, color_system=None)
    return WorkspaceOrchestrator(
        services, settings=forge_settings, console=console, err_console=console
    )


@pytest.fixture
def make_context(
    services: Collaborators,
    forge_settings: ForgeSettings,
    make_options: Callable[..., PipelineOptions],
    output: io.StringIO,
) -> Callable[..., PipelineContext]:
    """Factory fixture: a PipelineContext for exercising single stages."""

    def _factory(
        mode: PipelineMode = PipelineMode.SETUP,
        cancel: CancellationToken | None = None,
        **overrides: Any,
    ) -> PipelineContext:
        console = Console(file=output, width=200, color_system=None)
        return PipelineContext(
            make_options(mode, **overrides),
            services,
            forge_settings,
            console=console,
            err_console=console,
            cancel=cancel or CancellationToken(),
        )

    return _factory


@pytest.fixture
def sdk_packages() -> tuple[str, ...]:
    return SDK_PACKAGES
