"""Tests for the host adapters that can run off Windows.

PowerShell and nuget are never started: commands go to recording fakes.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest
import requests

from sdkforge.adapters import nuget as nuget_adapters
from sdkforge.adapters.layout import PackageLayoutCopier
from sdkforge.adapters.manifest import (
    AppxManifestReader,
    ManifestError,
    TemplateManifestGenerator,
)
from sdkforge.adapters.nuget import (
    NuGetBuildToolsProvisioner,
    NuGetCliInstaller,
    NuGetVersionLookup,
    PackageLookupError,
    pick_latest,
)
from sdkforge.adapters.powershell import (
    AppxHostPackageQuery,
    PowerShellTrustStoreInstaller,
    RegistryDevModeService,
    quote,
)
from sdkforge.adapters.process import ProcessError, ProcessResult, run_process
from sdkforge.adapters.toolchain import CppWinrtToolchain, find_build_tool
from sdkforge.core.cancellation import CancellationToken, OperationCancelledError
from tests.fakes import FakeVersionLookup

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, payload: dict, status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> dict:
        return self._payload


class _FakeSession:
    def __init__(self, payload: dict, status: int = 200) -> None:
        self.response = _FakeResponse(payload, status)
        self.urls: list[str] = []

    def get(self, url: str, timeout: float) -> _FakeResponse:
        self.urls.append(url)
        return self.response


class _FakeRunner:
    """Stands in for PowerShellRunner; answers with scripted stdout."""

    def __init__(self, stdout: str = "", returncode: int = 0) -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.commands: list[str] = []
        self.elevated: list[str] = []

    def run(self, command: str, *, check: bool = False) -> ProcessResult:
        self.commands.append(command)
        return ProcessResult(args=[command], returncode=self.returncode, stdout=self.stdout)

    def run_elevated(self, command: str) -> ProcessResult:
        self.elevated.append(command)
        return ProcessResult(args=[command], returncode=0)


# ---------------------------------------------------------------------------
# Test: NuGet
# ---------------------------------------------------------------------------


class TestVersionOrdering:
    def test_release_beats_its_prerelease(self):
        assert pick_latest(["1.0.0-preview1", "1.0.0"], include_prerelease=True) == "1.0.0"

    def test_numeric_not_lexical(self):
        assert pick_latest(["1.9.0", "1.10.0", "1.2.0"], include_prerelease=False) == "1.10.0"

    def test_prerelease_excluded_by_default(self):
        assert pick_latest(["1.0.0", "2.0.0-experimental1"], include_prerelease=False) == "1.0.0"
        assert pick_latest(["1.0.0", "2.0.0-experimental1"], include_prerelease=True) == "2.0.0-experimental1"

    def test_nothing_eligible(self):
        assert pick_latest(["2.0.0-preview"], include_prerelease=False) is None
        assert pick_latest([], include_prerelease=True) is None


class TestNuGetVersionLookup:
    def test_queries_lowercased_id(self):
        session = _FakeSession({"versions": ["1.6.0", "1.7.250606001"]})
        lookup = NuGetVersionLookup("https://example.test/v3-flatcontainer/", session=session)

        assert lookup.get_latest_version("Microsoft.WindowsAppSDK", False) == "1.7.250606001"
        assert session.urls == ["https://example.test/v3-flatcontainer/microsoft.windowsappsdk/index.json"]

    def test_http_error_propagates(self):
        lookup = NuGetVersionLookup("https://example.test", session=_FakeSession({}, status=404))
        with pytest.raises(requests.HTTPError):
            lookup.get_latest_version("Missing.Package", False)

    def test_no_versions(self):
        lookup = NuGetVersionLookup("https://example.test", session=_FakeSession({"versions": []}))
        with pytest.raises(PackageLookupError):
            lookup.get_latest_version("Empty.Package", False)


class TestNuGetCliInstaller:
    @pytest.fixture
    def process_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
        calls: list[list[str]] = []

        def _fake_run_process(args, *, cwd=None, cancel=None, check=False):
            calls.append(list(args))
            return ProcessResult(args=list(args), returncode=0)

        monkeypatch.setattr(nuget_adapters, "run_process", _fake_run_process)
        return calls

    def test_pinned_versions_skip_lookup(self, tmp_path: Path, process_calls):
        lookup = FakeVersionLookup()
        installer = NuGetCliInstaller("nuget", lookup)
        used = installer.install_packages(
            tmp_path, ["A"], include_prerelease=False, ignore_pinned=False, pinned={"a": "1.0"}
        )
        assert used == {"A": "1.0"}
        assert lookup.calls == []
        assert process_calls == [
            ["nuget", "install", "A", "-Version", "1.0", "-OutputDirectory", str(tmp_path), "-NonInteractive"]
        ]

    def test_prerelease_flag(self, tmp_path: Path, process_calls):
        installer = NuGetCliInstaller("nuget", FakeVersionLookup())
        installer.install_one(tmp_path, "A", "2.0.0-preview1")
        assert process_calls[0][-1] == "-Prerelease"

    def test_existing_package_not_reinstalled(self, tmp_path: Path, process_calls):
        (tmp_path / "A.1.0").mkdir()
        NuGetCliInstaller("nuget", FakeVersionLookup()).install_one(tmp_path, "A", "1.0")
        assert process_calls == []

    def test_build_tools_prefers_bin(self, tmp_path: Path, process_calls):
        lookup = FakeVersionLookup()
        bin_dir = tmp_path / "Microsoft.Windows.SDK.BuildTools.10.0.1" / "bin"
        bin_dir.mkdir(parents=True)
        provisioner = NuGetBuildToolsProvisioner(NuGetCliInstaller("nuget", lookup), lookup, tmp_path)

        assert provisioner.ensure("10.0.1", force_latest=False) == bin_dir
        assert lookup.calls == []


# ---------------------------------------------------------------------------
# Test: layout and toolchain
# ---------------------------------------------------------------------------


class TestPackageLayoutCopier:
    def test_copies_headers_libs_and_runtimes(self, tmp_path: Path):
        packages = tmp_path / "packages"
        pkg = packages / "Microsoft.WindowsAppSDK.1.7.0"
        (pkg / "include").mkdir(parents=True)
        (pkg / "include" / "WindowsAppSDK-VersionInfo.h").write_text("//", encoding="utf-8")
        (pkg / "lib" / "win10-x64").mkdir(parents=True)
        (pkg / "lib" / "x64").mkdir(parents=True)
        (pkg / "lib" / "x64" / "Microsoft.WindowsAppRuntime.lib").write_bytes(b"lib")
        (pkg / "lib" / "win10-x64" / "ignored.lib").write_bytes(b"lib")
        (pkg / "runtimes" / "win-arm64" / "native").mkdir(parents=True)
        (pkg / "runtimes" / "win-arm64" / "native" / "Bootstrap.dll").write_bytes(b"dll")

        local = tmp_path / "local"
        copier = PackageLayoutCopier()
        copier.copy_includes(packages, local / "include")
        copier.copy_libs(packages, local / "lib")
        copier.copy_runtimes(packages, local / "bin")

        assert (local / "include" / "WindowsAppSDK-VersionInfo.h").is_file()
        assert (local / "lib" / "x64" / "Microsoft.WindowsAppRuntime.lib").is_file()
        assert not (local / "lib" / "win10-x64").exists()
        assert (local / "bin" / "arm64" / "Bootstrap.dll").is_file()

    def test_missing_packages_dir(self, tmp_path: Path):
        PackageLayoutCopier().copy_libs(tmp_path / "missing", tmp_path / "lib")
        assert not (tmp_path / "lib").exists()


class TestCppWinrtToolchain:
    def test_finds_tool_for_used_version(self, tmp_path: Path):
        tool = tmp_path / "Microsoft.Windows.CppWinRT.2.0.1" / "bin" / "cppwinrt.exe"
        tool.parent.mkdir(parents=True)
        tool.write_bytes(b"exe")
        found = CppWinrtToolchain().find_tool_executable(tmp_path, {"Microsoft.Windows.CppWinRT": "2.0.1"})
        assert found == tool

    def test_falls_back_to_any_installed_version(self, tmp_path: Path):
        tool = tmp_path / "Microsoft.Windows.CppWinRT.2.0.1" / "bin" / "cppwinrt.exe"
        tool.parent.mkdir(parents=True)
        tool.write_bytes(b"exe")
        assert CppWinrtToolchain().find_tool_executable(tmp_path, {}) == tool

    def test_tool_missing(self, tmp_path: Path):
        assert CppWinrtToolchain().find_tool_executable(tmp_path, {}) is None

    def test_inputs_only_from_used_packages(self, tmp_path: Path):
        used = tmp_path / "A.1.0" / "metadata"
        unused = tmp_path / "B.1.0"
        used.mkdir(parents=True)
        unused.mkdir()
        (used / "A.winmd").write_bytes(b"md")
        (used / "nested").mkdir()
        (used / "nested" / "A.winmd").write_bytes(b"dup")
        (unused / "B.winmd").write_bytes(b"md")

        inputs = CppWinrtToolchain().find_projection_inputs(tmp_path, {"A": "1.0"})

        assert [p.name for p in inputs] == ["A.winmd"]

    def test_response_file(self, tmp_path: Path):
        rsp = CppWinrtToolchain().write_response_file(
            [Path("one.winmd"), Path("two.winmd")], tmp_path / "include", tmp_path / "work"
        )
        lines = rsp.read_text(encoding="utf-8").splitlines()
        assert lines == [
            '-input "one.winmd"',
            '-input "two.winmd"',
            f'-output "{tmp_path / "include"}"',
        ]

    def test_find_build_tool(self, tmp_path: Path):
        signtool = tmp_path / "Microsoft.Windows.SDK.BuildTools.10.0.1" / "bin" / "10.0.26100.0" / "x64" / "signtool.exe"
        signtool.parent.mkdir(parents=True)
        signtool.write_bytes(b"exe")
        assert find_build_tool(tmp_path, "signtool.exe", "x64") == signtool
        assert find_build_tool(tmp_path, "signtool.exe", "arm64") is None


# ---------------------------------------------------------------------------
# Test: manifests
# ---------------------------------------------------------------------------


class TestManifests:
    def test_generated_manifest_round_trips_publisher(self, tmp_path: Path):
        path = TemplateManifestGenerator().generate_manifest(tmp_path, publisher="Contoso")
        assert AppxManifestReader().read_publisher(path) == "CN=Contoso"

    def test_sparse_manifest_is_well_formed(self, tmp_path: Path):
        path = TemplateManifestGenerator().generate_manifest(tmp_path, sparse=True, publisher="CN=A & B")
        assert AppxManifestReader().read_publisher(path) == "CN=A & B"
        assert "AllowExternalContent" in path.read_text(encoding="utf-8")

    def test_existing_manifest_requires_confirmation(self, tmp_path: Path):
        (tmp_path / "appxmanifest.xml").write_text("<Package/>", encoding="utf-8")
        with pytest.raises(ManifestError):
            TemplateManifestGenerator().generate_manifest(tmp_path)
        assert (tmp_path / "appxmanifest.xml").read_text(encoding="utf-8") == "<Package/>"

    def test_assume_yes_overwrites(self, tmp_path: Path):
        (tmp_path / "appxmanifest.xml").write_text("<Package/>", encoding="utf-8")
        TemplateManifestGenerator().generate_manifest(tmp_path, assume_yes=True)
        assert "Identity" in (tmp_path / "appxmanifest.xml").read_text(encoding="utf-8")

    def test_unparseable_manifest(self, tmp_path: Path):
        bad = tmp_path / "appxmanifest.xml"
        bad.write_text("<Package", encoding="utf-8")
        with pytest.raises(ManifestError):
            AppxManifestReader().read_publisher(bad)

    def test_find_project_manifest(self, tmp_path: Path):
        reader = AppxManifestReader()
        assert reader.find_project_manifest(tmp_path) is None
        (tmp_path / "package.appxmanifest").write_text("<Package/>", encoding="utf-8")
        assert reader.find_project_manifest(tmp_path) == tmp_path / "package.appxmanifest"


# ---------------------------------------------------------------------------
# Test: PowerShell adapters
# ---------------------------------------------------------------------------


class TestPowerShellAdapters:
    def test_quote_escapes_single_quotes(self):
        assert quote("it's") == "'it''s'"

    def test_installed_version_parses_output(self):
        runner = _FakeRunner(stdout="\nVersion\n-------\n7000.498.2246.0\n")
        assert AppxHostPackageQuery(runner).installed_version("Runtime") == "7000.498.2246.0"

    def test_installed_version_none_when_absent(self):
        assert AppxHostPackageQuery(_FakeRunner()).installed_version("Runtime") is None

    def test_dev_mode_already_enabled(self):
        runner = _FakeRunner(stdout="1\n")
        assert RegistryDevModeService(runner).ensure_enabled() == 0
        assert runner.elevated == []

    def test_trust_store_skips_already_trusted(self, tmp_path: Path):
        runner = _FakeRunner(stdout="CN=devcert")
        assert PowerShellTrustStoreInstaller(runner).install(tmp_path / "devcert.pfx", "pw", False) is False
        assert runner.elevated == []

    def test_trust_store_force(self, tmp_path: Path):
        runner = _FakeRunner(stdout="CN=devcert")
        assert PowerShellTrustStoreInstaller(runner).install(tmp_path / "devcert.pfx", "pw", True) is True
        assert "Import-PfxCertificate" in runner.elevated[0]


# ---------------------------------------------------------------------------
# Test: process runner
# ---------------------------------------------------------------------------


class TestRunProcess:
    def test_captures_output(self):
        result = run_process([sys.executable, "-c", "print('hello')"])
        assert result.ok
        assert result.stdout.strip() == "hello"

    def test_check_raises_on_failure(self):
        with pytest.raises(ProcessError, match="exited with code 3"):
            run_process([sys.executable, "-c", "import sys; sys.exit(3)"], check=True)

    def test_missing_executable(self, tmp_path: Path):
        with pytest.raises(ProcessError, match="Could not start"):
            run_process([str(tmp_path / "no-such-tool")])

    def test_cancellation_kills_child(self):
        token = CancellationToken()
        timer = threading.Timer(0.3, token.cancel)
        timer.start()
        try:
            with pytest.raises(OperationCancelledError):
                run_process([sys.executable, "-c", "import time; time.sleep(30)"], cancel=token)
        finally:
            timer.cancel()
