"""Development certificate provisioning.

Wraps the certificate generator with the idempotency gate, subject
sanitation, .gitignore maintenance and optional trust-store installation.
A failed generation never leaves a file behind at the output path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from sdkforge.collaborators import (
    CertificateGenerator,
    FileSigner,
    TrustStoreInstaller,
)
from sdkforge.core.cancellation import OperationCancelledError
from sdkforge.core.gitignore import ignore_certificate
from sdkforge.core.publisher import PublisherInferenceChain
from sdkforge.models.certificates import (
    CertificateProvisionResult,
    CertificateRecord,
    CertificateState,
)

logger = logging.getLogger(__name__)


class CertificateExistsError(RuntimeError):
    """Raised when the output certificate already exists and must not be overwritten."""


class CertificateGenerationError(RuntimeError):
    """Raised when the generator fails; no certificate file remains afterwards."""


def sanitize_publisher(publisher: str) -> str:
    """Strip any ``CN=`` prefix and quote characters."""
    return publisher.replace("CN=", "").replace('"', "").replace("'", "").strip()


def subject_for(publisher: str) -> str:
    return f"CN={sanitize_publisher(publisher)}"


class CertificateProvisioner:
    """Generates, and optionally trusts, a development signing certificate.

    Parameters
    ----------
    generator:
        Produces the certificate file.
    trust_store:
        Installs the certificate as trusted (only used when ``install=True``).
    publisher_chain:
        Resolves the subject when no explicit publisher is given.
    working_directory:
        Base for relative output paths, project manifest discovery and the
        .gitignore that receives the certificate file name.
    """

    def __init__(
        self,
        generator: CertificateGenerator,
        trust_store: TrustStoreInstaller,
        publisher_chain: PublisherInferenceChain,
        working_directory: Path,
        *,
        project_discovery: Callable[[], Path | None] | None = None,
        signer: FileSigner | None = None,
    ) -> None:
        self._generator = generator
        self._trust_store = trust_store
        self._publisher_chain = publisher_chain
        self._working_directory = Path(working_directory)
        self._project_discovery = project_discovery or (lambda: None)
        self._signer = signer

    def _absolute(self, path: Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else (self._working_directory / path).resolve()

    def provision(
        self,
        output_path: Path,
        explicit_publisher: str | None = None,
        manifest_path: Path | None = None,
        password: str = "password",
        valid_days: int = 365,
        *,
        skip_if_exists: bool = True,
        update_gitignore: bool = True,
        install: bool = False,
    ) -> CertificateProvisionResult:
        output = self._absolute(output_path)

        if skip_if_exists and output.exists():
            raise CertificateExistsError(f"Certificate file already exists: {output}")

        publisher = self._publisher_chain.infer(
            explicit_publisher, manifest_path, self._project_discovery
        )
        clean_publisher = sanitize_publisher(publisher)
        subject_name = subject_for(publisher)
        logger.info("Generating development certificate for publisher: %s", clean_publisher)
        logger.debug("Certificate subject: %s", subject_name)

        self._generate(subject_name, output, password, valid_days)
        record = CertificateRecord(
            certificate_path=output,
            password=password,
            publisher=clean_publisher,
            subject_name=subject_name,
        )
        state = CertificateState.GENERATED

        gitignore_updated = False
        if update_gitignore:
            gitignore_updated = bool(ignore_certificate(self._working_directory, output.name))

        already_trusted = False
        if install:
            if self.install(output, password):
                state = CertificateState.INSTALLED
            else:
                already_trusted = True

        return CertificateProvisionResult(
            record=record,
            state=state,
            gitignore_updated=gitignore_updated,
            already_trusted=already_trusted,
        )

    def install(self, cert_path: Path, password: str, force: bool = False) -> bool:
        """Trust *cert_path*.  Returns False when it was already trusted."""
        path = self._absolute(cert_path)
        if not path.is_file():
            raise FileNotFoundError(f"Certificate file not found: {path}")
        installed = self._trust_store.install(path, password, force)
        if installed:
            logger.info("Certificate installed to the trusted store: %s", path)
        else:
            logger.info("Certificate appears to already be installed: %s", path)
        return installed

    def sign_file(
        self,
        file_path: Path,
        certificate_path: Path,
        password: str = "password",
        timestamp_url: str | None = None,
    ) -> None:
        if self._signer is None:
            raise RuntimeError("No file signer configured")
        target = self._absolute(file_path)
        cert = self._absolute(certificate_path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {target}")
        if not cert.is_file():
            raise FileNotFoundError(f"Certificate file not found: {cert}")
        self._signer.sign(target, cert, password, timestamp_url)
        logger.info("Signed %s", target)

    def _generate(self, subject_name: str, output: Path, password: str, valid_days: int) -> None:
        output.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._generator.generate(subject_name, output, password, valid_days)
        except OperationCancelledError:
            output.unlink(missing_ok=True)
            raise
        except Exception as exc:
            output.unlink(missing_ok=True)
            raise CertificateGenerationError(
                f"Failed to generate development certificate: {exc}"
            ) from exc
        if not output.is_file():
            raise CertificateGenerationError(
                f"Certificate generator did not produce {output}"
            )
