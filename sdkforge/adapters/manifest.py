"""Application manifest reader and template generator (``appxmanifest.xml``)."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAMES: tuple[str, ...] = ("appxmanifest.xml", "package.appxmanifest")

_MANIFEST_TEMPLATE = """\
<?xml version="1.0" encoding="utf-8"?>
<Package
  xmlns="http://schemas.microsoft.com/appx/manifest/foundation/windows10"
  xmlns:uap="http://schemas.microsoft.com/appx/manifest/uap/windows10"
  xmlns:uap10="http://schemas.microsoft.com/appx/manifest/uap/windows10/10"
  xmlns:rescap="http://schemas.microsoft.com/appx/manifest/foundation/windows10/restrictedcapabilities"
  IgnorableNamespaces="uap uap10 rescap">
  <Identity Name="{name}" Publisher="{publisher}" Version="{version}" />
  <Properties>
    <DisplayName>{name}</DisplayName>
    <PublisherDisplayName>{publisher_display}</PublisherDisplayName>
    <Description>{description}</Description>
    <Logo>{logo}</Logo>
{sparse_properties}  </Properties>
  <Dependencies>
    <TargetDeviceFamily Name="Windows.Desktop" MinVersion="10.0.17763.0" MaxVersionTested="10.0.26100.0" />
  </Dependencies>
  <Resources>
    <Resource Language="en-us" />
  </Resources>
  <Applications>
    <Application Id="App" Executable="{executable}" EntryPoint="Windows.FullTrustApplication">
      <uap:VisualElements DisplayName="{name}" Description="{description}"
        BackgroundColor="transparent" Square150x150Logo="{logo}" Square44x44Logo="{logo}" />
    </Application>
  </Applications>
  <Capabilities>
    <rescap:Capability Name="runFullTrust" />
{sparse_capability}  </Capabilities>
</Package>
"""


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be read or written."""


def _escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace('"', "&quot;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )


def _package_name_from(directory: Path) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9.\-]", "", directory.resolve().name)
    return cleaned or "App"


class AppxManifestReader:
    """``ManifestReader`` using ``xml.etree``."""

    def read_publisher(self, manifest_path: Path) -> str:
        try:
            root = ET.parse(manifest_path).getroot()
        except (ET.ParseError, OSError) as exc:
            raise ManifestError(f"Could not parse manifest {manifest_path}: {exc}") from exc

        for element in root.iter():
            if element.tag.rsplit("}", 1)[-1] == "Identity":
                publisher = element.get("Publisher", "")
                if publisher:
                    return publisher
        raise ManifestError(f"No Identity/@Publisher in {manifest_path}")

    def find_project_manifest(self, directory: Path) -> Path | None:
        for name in MANIFEST_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None


class TemplateManifestGenerator:
    """``ManifestGenerator`` that fills in a minimal ``appxmanifest.xml``.

    Unless ``assume_yes`` is set, overwriting an existing manifest asks
    *confirm* first.
    """

    def __init__(
        self,
        default_publisher: str = "CN=Developer",
        confirm: Callable[[str], bool] | None = None,
    ) -> None:
        self._default_publisher = default_publisher
        self._confirm = confirm or (lambda _message: False)

    def generate_manifest(
        self,
        directory: Path,
        *,
        package_name: str | None = None,
        publisher: str | None = None,
        version: str = "1.0.0.0",
        description: str = "Windows Application",
        executable: str | None = None,
        sparse: bool = False,
        logo_path: Path | None = None,
        assume_yes: bool = False,
    ) -> Path:
        target = directory / MANIFEST_FILE_NAMES[0]
        if target.exists() and not assume_yes:
            if not self._confirm(f"{target.name} already exists. Overwrite?"):
                raise ManifestError(f"Manifest already exists: {target}")

        name = package_name or _package_name_from(directory)
        publisher_value = publisher or self._default_publisher
        if not publisher_value.startswith("CN="):
            publisher_value = f"CN={publisher_value}"

        document = _MANIFEST_TEMPLATE.format(
            name=_escape(name),
            publisher=_escape(publisher_value),
            publisher_display=_escape(publisher_value[3:]),
            version=_escape(version),
            description=_escape(description),
            logo=_escape(str(logo_path) if logo_path else "Assets\\StoreLogo.png"),
            executable=_escape(executable or f"{name}.exe"),
            sparse_properties=(
                "    <uap10:AllowExternalContent>true</uap10:AllowExternalContent>\n"
                if sparse
                else ""
            ),
            sparse_capability=(
                '    <rescap:Capability Name="unvirtualizedResources" />\n' if sparse else ""
            ),
        )
        directory.mkdir(parents=True, exist_ok=True)
        target.write_text(document, encoding="utf-8")
        logger.info("Generated manifest %s", target)
        return target
