"""Tests for PublisherInferenceChain and CertificateProvisioner."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkforge.core.cancellation import OperationCancelledError
from sdkforge.core.certificates import (
    CertificateExistsError,
    CertificateGenerationError,
    CertificateProvisioner,
    sanitize_publisher,
    subject_for,
)
from sdkforge.core.publisher import PublisherInferenceChain, PublisherInferenceError
from sdkforge.models.certificates import CertificateState
from tests.fakes import (
    FakeCertificateGenerator,
    FakeManifestReader,
    FakeSigner,
    FakeTrustStore,
)


def write_manifest(directory: Path, publisher: str, name: str = "appxmanifest.xml") -> Path:
    path = directory / name
    path.write_text(f'<Package><Identity Publisher="{publisher}" /></Package>', encoding="utf-8")
    return path


def make_provisioner(
    directory: Path,
    generator: FakeCertificateGenerator | None = None,
    trust_store: FakeTrustStore | None = None,
    signer: FakeSigner | None = None,
) -> CertificateProvisioner:
    reader = FakeManifestReader()
    return CertificateProvisioner(
        generator or FakeCertificateGenerator(),
        trust_store or FakeTrustStore(),
        PublisherInferenceChain(reader),
        directory,
        project_discovery=lambda: reader.find_project_manifest(directory),
        signer=signer,
    )


class TestPublisherInferenceChain:
    def test_explicit_wins(self, tmp_path: Path):
        manifest = write_manifest(tmp_path, "CN=FromManifest")
        chain = PublisherInferenceChain(FakeManifestReader())
        assert chain.infer("CN=Explicit", manifest, lambda: manifest) == "CN=Explicit"

    def test_manifest_path_second(self, tmp_path: Path):
        manifest = write_manifest(tmp_path, "CN=FromManifest")
        chain = PublisherInferenceChain(FakeManifestReader())
        assert chain.infer(None, manifest, lambda: None) == "CN=FromManifest"

    def test_blank_explicit_is_ignored(self, tmp_path: Path):
        manifest = write_manifest(tmp_path, "CN=FromManifest")
        chain = PublisherInferenceChain(FakeManifestReader())
        assert chain.infer("   ", manifest, lambda: None) == "CN=FromManifest"

    def test_project_discovery_third(self, tmp_path: Path):
        discovered = write_manifest(tmp_path, "CN=Discovered")
        chain = PublisherInferenceChain(FakeManifestReader())
        assert chain.infer(None, None, lambda: discovered) == "CN=Discovered"

    def test_discovery_not_called_when_manifest_given(self, tmp_path: Path):
        manifest = write_manifest(tmp_path, "CN=FromManifest")
        calls = []
        chain = PublisherInferenceChain(FakeManifestReader())
        chain.infer(None, manifest, lambda: calls.append(1))
        assert calls == []

    def test_all_empty_fails_with_instructions(self):
        chain = PublisherInferenceChain(FakeManifestReader())
        with pytest.raises(PublisherInferenceError, match="--publisher"):
            chain.infer(None, None, lambda: None)

    def test_unreadable_manifest_is_fatal(self, tmp_path: Path):
        bad = tmp_path / "appxmanifest.xml"
        bad.write_text("<Package/>", encoding="utf-8")
        chain = PublisherInferenceChain(FakeManifestReader())
        with pytest.raises(PublisherInferenceError):
            chain.infer(None, bad, lambda: None)

    def test_empty_publisher_is_rejected(self, tmp_path: Path):
        manifest = write_manifest(tmp_path, "")
        chain = PublisherInferenceChain(FakeManifestReader())
        with pytest.raises(PublisherInferenceError):
            chain.infer(None, manifest, lambda: None)


class TestSubjectSanitation:
    @pytest.mark.parametrize(
        ("raw", "clean"),
        [("CN=Contoso", "Contoso"), ('"Contoso"', "Contoso"), ("'CN=Contoso'", "Contoso"), (" Contoso ", "Contoso")],
    )
    def test_sanitize(self, raw, clean):
        assert sanitize_publisher(raw) == clean

    def test_subject_is_canonical(self):
        assert subject_for('CN="Contoso Ltd"') == "CN=Contoso Ltd"


class TestCertificateProvisioner:
    def test_generates_certificate(self, tmp_path: Path):
        generator = FakeCertificateGenerator()
        result = make_provisioner(tmp_path, generator).provision(
            Path("devcert.pfx"), explicit_publisher="CN=Contoso"
        )

        assert result.state == CertificateState.GENERATED
        assert result.record.certificate_path == (tmp_path / "devcert.pfx").resolve()
        assert result.record.subject_name == "CN=Contoso"
        assert result.record.publisher == "Contoso"
        assert generator.calls == [("CN=Contoso", (tmp_path / "devcert.pfx").resolve(), "password", 365)]

    def test_existing_certificate_is_not_overwritten(self, tmp_path: Path):
        (tmp_path / "devcert.pfx").write_bytes(b"ORIGINAL")
        generator = FakeCertificateGenerator()
        with pytest.raises(CertificateExistsError):
            make_provisioner(tmp_path, generator).provision(
                tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso"
            )
        assert generator.calls == []
        assert (tmp_path / "devcert.pfx").read_bytes() == b"ORIGINAL"

    def test_failed_generation_leaves_no_file(self, tmp_path: Path):
        generator = FakeCertificateGenerator(error=RuntimeError("boom"), produce_file=True)
        with pytest.raises(CertificateGenerationError):
            make_provisioner(tmp_path, generator).provision(
                tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso"
            )
        assert not (tmp_path / "devcert.pfx").exists()

    def test_cancelled_generation_leaves_no_file(self, tmp_path: Path):
        generator = FakeCertificateGenerator(error=OperationCancelledError("Operation cancelled"))
        with pytest.raises(OperationCancelledError):
            make_provisioner(tmp_path, generator).provision(
                tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso"
            )
        assert not (tmp_path / "devcert.pfx").exists()

    def test_generator_producing_nothing_is_an_error(self, tmp_path: Path):
        generator = FakeCertificateGenerator(produce_file=False)
        with pytest.raises(CertificateGenerationError):
            make_provisioner(tmp_path, generator).provision(
                tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso"
            )

    def test_updates_gitignore(self, tmp_path: Path):
        result = make_provisioner(tmp_path).provision(
            tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso"
        )
        assert result.gitignore_updated
        assert "devcert.pfx" in (tmp_path / ".gitignore").read_text(encoding="utf-8")

    def test_nested_output_is_ignored_from_working_directory(self, tmp_path: Path):
        result = make_provisioner(tmp_path).provision(
            Path("build") / "certs" / "dev.pfx", explicit_publisher="CN=Contoso"
        )
        assert result.record.certificate_path == (tmp_path / "build" / "certs" / "dev.pfx").resolve()
        assert "dev.pfx" in (tmp_path / ".gitignore").read_text(encoding="utf-8")
        assert not (tmp_path / "build" / "certs" / ".gitignore").exists()

    def test_publisher_from_project_manifest(self, tmp_path: Path):
        write_manifest(tmp_path, "CN=Discovered Corp")
        result = make_provisioner(tmp_path).provision(tmp_path / "devcert.pfx")
        assert result.record.subject_name == "CN=Discovered Corp"

    def test_no_publisher_fails_before_generation(self, tmp_path: Path):
        generator = FakeCertificateGenerator()
        with pytest.raises(PublisherInferenceError):
            make_provisioner(tmp_path, generator).provision(tmp_path / "devcert.pfx")
        assert generator.calls == []

    def test_install_after_generation(self, tmp_path: Path):
        trust_store = FakeTrustStore()
        result = make_provisioner(tmp_path, trust_store=trust_store).provision(
            tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso", install=True
        )
        assert result.state == CertificateState.INSTALLED
        assert trust_store.calls[0][2] is False

    def test_already_trusted_is_a_noop(self, tmp_path: Path):
        result = make_provisioner(tmp_path, trust_store=FakeTrustStore(already_trusted=True)).provision(
            tmp_path / "devcert.pfx", explicit_publisher="CN=Contoso", install=True
        )
        assert result.state == CertificateState.GENERATED
        assert result.already_trusted

    def test_install_missing_certificate(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            make_provisioner(tmp_path).install(tmp_path / "missing.pfx", "password")


class TestSignFile:
    def test_sign_delegates_to_signer(self, tmp_path: Path):
        signer = FakeSigner()
        (tmp_path / "app.msix").write_bytes(b"msix")
        (tmp_path / "devcert.pfx").write_bytes(b"pfx")
        make_provisioner(tmp_path, signer=signer).sign_file(
            Path("app.msix"), Path("devcert.pfx"), "secret", "http://ts.example"
        )
        assert signer.calls == [
            ((tmp_path / "app.msix").resolve(), (tmp_path / "devcert.pfx").resolve(), "secret", "http://ts.example")
        ]

    def test_sign_missing_file(self, tmp_path: Path):
        (tmp_path / "devcert.pfx").write_bytes(b"pfx")
        with pytest.raises(FileNotFoundError):
            make_provisioner(tmp_path, signer=FakeSigner()).sign_file(
                tmp_path / "missing.msix", tmp_path / "devcert.pfx"
            )
