"""Certificate provisioning: the final setup stage.

An existing certificate is reported as skipped, never overwritten.
"""

from __future__ import annotations

from sdkforge.core.certificates import CertificateExistsError, CertificateProvisioner
from sdkforge.core.publisher import PublisherInferenceChain
from sdkforge.models.stages import StageOutcome
from sdkforge.stages.base import BaseStage
from sdkforge.stages.context import PipelineContext


class CertificateProvisioningStage(BaseStage):
    @property
    def stage_id(self) -> str:
        return "certificate_provisioning"

    @property
    def display_name(self) -> str:
        return "Certificate Provisioning"

    def execute(self, ctx: PipelineContext) -> StageOutcome:
        if ctx.options.no_cert:
            return StageOutcome.skipped(self.stage_id, "disabled by --no-cert")

        services = ctx.services
        base = ctx.base_directory
        provisioner = CertificateProvisioner(
            services.certificate_generator,
            services.trust_store,
            PublisherInferenceChain(services.manifest_reader),
            base,
            project_discovery=lambda: services.manifest_reader.find_project_manifest(base),
        )

        output = base / ctx.settings.default_certificate_name
        ctx.say("Generating development certificate...")
        try:
            result = provisioner.provision(
                output,
                password=ctx.settings.default_certificate_password,
                valid_days=ctx.settings.default_certificate_valid_days,
                skip_if_exists=True,
                update_gitignore=not ctx.options.no_gitignore,
                install=False,
            )
        except CertificateExistsError:
            ctx.say(f"Development certificate already exists: {output}")
            return StageOutcome.skipped(self.stage_id, f"certificate exists: {output}")

        ctx.certificate = result.record
        ctx.announce(f"Development certificate → {result.record.certificate_path}")
        ctx.detail(f"Publisher: {result.record.publisher}")
        return StageOutcome.ok(self.stage_id, result.record.subject_name)
